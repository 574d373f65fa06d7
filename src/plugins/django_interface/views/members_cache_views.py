from drf_yasg.utils import swagger_auto_schema
from rest_framework import status
from rest_framework.response import Response

from members_core.adapters.config.composition_root import container as members_container
from members_core.core.application.commands.sync_commands import SyncMembersCacheCommand
from members_core.core.application.queries.assignment_queries import GetMembersCacheStatusQuery
from plugins.django_interface.errors import DomainAPIView
from plugins.django_interface.permissions import IsAdminUser, IsStaffMember
from plugins.django_interface.serializers import MembersCacheSyncSerializer

members_command_bus = members_container.command_bus()
members_query_bus = members_container.query_bus()


class MembersCacheStatusView(DomainAPIView):
    """GET /api/members-cache/status/ → fresh | stale | empty, row count, last run summary."""
    permission_classes = [IsStaffMember]

    def get(self, request):
        res = members_query_bus.dispatch(GetMembersCacheStatusQuery(filtros={}))
        return Response(res, status=status.HTTP_200_OK)


class MembersCacheSyncView(DomainAPIView):
    """
    POST /api/admin/members-cache/sync/

    Inline by default; `background: true` only enqueues the Celery task.
    """
    permission_classes = [IsAdminUser]

    @swagger_auto_schema(request_body=MembersCacheSyncSerializer)
    def post(self, request):
        body = MembersCacheSyncSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        data = body.validated_data

        if data["background"]:
            from calaim_api.tasks import enqueue_members_refresh

            queued = enqueue_members_refresh(data["mode"], force=data["force"])
            return Response({"queued": queued, "mode": data["mode"]}, status=status.HTTP_202_ACCEPTED)

        result = members_command_bus.dispatch(SyncMembersCacheCommand(mode=data["mode"], force=data["force"]))
        return Response(result.to_dict(), status=status.HTTP_200_OK)

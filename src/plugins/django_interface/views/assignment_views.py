from drf_yasg.utils import swagger_auto_schema
from rest_framework import status
from rest_framework.response import Response

from members_core.adapters.config.composition_root import container as members_container
from members_core.core.application.queries.assignment_queries import ResolveAssignedMembersQuery
from plugins.django_interface.errors import DomainAPIView
from plugins.django_interface.permissions import IsStaffMember
from plugins.django_interface.serializers import AssignmentQuerySerializer

members_query_bus = members_container.query_bus()


# ╭──────────────────────────────────────────────╮
# │        ASSIGNED MEMBERS BY RCFE (GET)       │
# ╰──────────────────────────────────────────────╯
class AssignmentsView(DomainAPIView):
    """
    GET /api/assignments/?staffId=<id>

    Members assigned to a social worker, grouped by facility. Without
    `staffId` the caller's own e-mail (or uid) is used.
    """
    permission_classes = [IsStaffMember]

    @swagger_auto_schema(query_serializer=AssignmentQuerySerializer)
    def get(self, request):
        params = AssignmentQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        staff_id = (params.validated_data.get("staffId") or "").strip()
        if not staff_id:
            staff_id = request.user.email or request.user.uid
        if not staff_id:
            return Response(
                {"error": "validation_error", "message": "staffId is required"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        result = members_query_bus.dispatch(ResolveAssignedMembersQuery(filtros={"staff_id": staff_id}))
        return Response(result.to_dict(), status=status.HTTP_200_OK)

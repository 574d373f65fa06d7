from drf_yasg.utils import swagger_auto_schema
from rest_framework import status
from rest_framework.response import Response

from plugins.django_interface.errors import DomainAPIView
from plugins.django_interface.permissions import IsAdminUser, IsStaffMember, owns_or_administers
from plugins.django_interface.serializers import (
    ClaimListQuerySerializer,
    ClaimStatusUpdateSerializer,
    PaginatedResponseSerializer,
)
from sw_visits.adapters.config.composition_root import container as visits_container
from sw_visits.core.application.commands.claim_commands import SubmitClaimCommand, UpdateClaimStatusCommand
from sw_visits.core.application.queries.claim_queries import GetClaimQuery, ListClaimsQuery

claims_command_bus = visits_container.command_bus()
claims_query_bus = visits_container.query_bus()


# ╭──────────────────────────────────────────────╮
# │                 CLAIMS (GET)                │
# ╰──────────────────────────────────────────────╯
class ClaimListView(DomainAPIView):
    """GET /api/claims/?month=YYYY-MM → own claims; admins may pass `staffIdentity`."""
    permission_classes = [IsStaffMember]

    @swagger_auto_schema(query_serializer=ClaimListQuerySerializer, responses={200: PaginatedResponseSerializer})
    def get(self, request):
        params = ClaimListQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        data = params.validated_data

        staff_identity = request.user.identity
        if request.user.is_admin:
            staff_identity = data.get("staffIdentity") or None
        filtros = {"staff_identity": staff_identity, "month": data.get("month"), "status": data.get("status")}

        page = claims_query_bus.dispatch(
            ListClaimsQuery(filtros=filtros, page=data["page"], page_size=data["page_size"])
        )
        return Response(page.to_dict(lambda c: c.to_dict()), status=status.HTTP_200_OK)


class ClaimDetailView(DomainAPIView):
    permission_classes = [IsStaffMember]

    def get(self, request, claim_id: str):
        claim = claims_query_bus.dispatch(GetClaimQuery(filtros={"claim_id": claim_id}))
        if not owns_or_administers(request.user, claim["staffIdentity"]):
            return Response({"error": "forbidden", "message": "Not your claim"}, status=status.HTTP_403_FORBIDDEN)
        return Response(claim, status=status.HTTP_200_OK)


# ╭──────────────────────────────────────────────╮
# │              CLAIM TRANSITIONS              │
# ╰──────────────────────────────────────────────╯
class ClaimSubmitView(DomainAPIView):
    """POST /api/claims/<claim_id>/submit/ → owner only, from draft."""
    permission_classes = [IsStaffMember]

    def post(self, request, claim_id: str):
        claim = claims_command_bus.dispatch(
            SubmitClaimCommand(claim_id=claim_id, staff_uid=request.user.uid, staff_email=request.user.email)
        )
        return Response(claim.to_dict(), status=status.HTTP_200_OK)


class AdminClaimStatusView(DomainAPIView):
    """POST /api/admin/claims/<claim_id>/status/ → reviewer transitions."""
    permission_classes = [IsAdminUser]

    @swagger_auto_schema(request_body=ClaimStatusUpdateSerializer)
    def post(self, request, claim_id: str):
        body = ClaimStatusUpdateSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        claim = claims_command_bus.dispatch(
            UpdateClaimStatusCommand(
                claim_id=claim_id,
                status=body.validated_data["status"],
                actor=request.user.identity,
                notes=body.validated_data.get("notes", ""),
            )
        )
        return Response(claim.to_dict(), status=status.HTTP_200_OK)

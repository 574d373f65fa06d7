from drf_yasg import openapi
from drf_yasg.utils import swagger_auto_schema
from rest_framework import status
from rest_framework.response import Response

from plugins.django_interface.errors import DomainAPIView
from plugins.django_interface.permissions import IsStaffMember
from plugins.django_interface.serializers import VisitSignOffSerializer
from sw_visits.adapters.config.composition_root import container as visits_container
from sw_visits.core.application.commands.visit_commands import SignOffVisitsCommand, SubmitVisitCommand
from sw_visits.core.application.queries.claim_queries import ListVisitsQuery

visits_command_bus = visits_container.command_bus()
visits_query_bus = visits_container.query_bus()


# ╭──────────────────────────────────────────────╮
# │           MONTHLY QUESTIONNAIRE             │
# ╰──────────────────────────────────────────────╯
class VisitsView(DomainAPIView):
    """
    POST /api/visits/  → submit one monthly questionnaire
    GET  /api/visits/?month=YYYY-MM → caller's own visits
    """
    permission_classes = [IsStaffMember]

    @swagger_auto_schema(
        request_body=openapi.Schema(type=openapi.TYPE_OBJECT, description="Visit questionnaire (camelCase)"),
        responses={201: "accepted", 400: "validation_error", 403: "not eligible", 409: "conflict"},
    )
    def post(self, request):
        user = request.user
        cmd = SubmitVisitCommand(
            payload=dict(request.data),
            staff_uid=user.uid,
            staff_email=user.email,
            staff_name=user.name,
        )
        result = visits_command_bus.dispatch(cmd)
        return Response(
            result.to_dict(),
            status=status.HTTP_201_CREATED if result.created else status.HTTP_200_OK,
        )

    def get(self, request):
        visits = visits_query_bus.dispatch(
            ListVisitsQuery(filtros={"staff_identity": request.user.identity, "month": request.query_params.get("month")})
        )
        return Response({"results": [v.to_dict() for v in visits], "total": len(visits)})


class VisitSignOffView(DomainAPIView):
    """POST /api/visits/signoff/ → RCFE sign-off of the caller's visits."""
    permission_classes = [IsStaffMember]

    @swagger_auto_schema(request_body=VisitSignOffSerializer)
    def post(self, request):
        body = VisitSignOffSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        data = body.validated_data
        updated = visits_command_bus.dispatch(
            SignOffVisitsCommand(
                visit_ids=tuple(data["visitIds"]),
                staff_uid=request.user.uid,
                staff_email=request.user.email,
                signer_name=data["signerName"],
                notes=data.get("notes", ""),
            )
        )
        return Response({"updated": len(updated), "visitIds": updated}, status=status.HTTP_200_OK)

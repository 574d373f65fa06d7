from django.conf import settings
from django.urls import path
from drf_yasg import openapi
from drf_yasg.views import get_schema_view
from rest_framework import permissions

from .views.assignment_views import AssignmentsView
from .views.claim_views import AdminClaimStatusView, ClaimDetailView, ClaimListView, ClaimSubmitView
from .views.health_views import HealthCheckView
from .views.members_cache_views import MembersCacheStatusView, MembersCacheSyncView
from .views.visit_views import VisitSignOffView, VisitsView

swagger_permissions = [permissions.AllowAny] if settings.DEBUG else [permissions.IsAuthenticated]

schema_view = get_schema_view(
    openapi.Info(
        title="CalAIM Case Management",
        default_version="v1",
        description="Social worker assignments, monthly visits and daily claims",
    ),
    public=settings.DEBUG,
    permission_classes=swagger_permissions,
)

urlpatterns = [
    path("healthz/", HealthCheckView.as_view(), name="healthz"),

    path("assignments/", AssignmentsView.as_view(), name="assignments"),

    path("visits/",         VisitsView.as_view(),       name="visits"),
    path("visits/signoff/", VisitSignOffView.as_view(), name="visits-signoff"),

    path("claims/",                          ClaimListView.as_view(),        name="claims"),
    path("claims/<str:claim_id>/",           ClaimDetailView.as_view(),      name="claim-detail"),
    path("claims/<str:claim_id>/submit/",    ClaimSubmitView.as_view(),      name="claim-submit"),
    path("admin/claims/<str:claim_id>/status/", AdminClaimStatusView.as_view(), name="admin-claim-status"),

    path("members-cache/status/",      MembersCacheStatusView.as_view(), name="members-cache-status"),
    path("admin/members-cache/sync/",  MembersCacheSyncView.as_view(),   name="members-cache-sync"),

    path("swagger/",     schema_view.with_ui("swagger", cache_timeout=0), name="swagger-ui"),
    path("swagger.json", schema_view.without_ui(cache_timeout=0),         name="swagger-json"),
    path("redoc/",       schema_view.with_ui("redoc",   cache_timeout=0), name="redoc-ui"),
]

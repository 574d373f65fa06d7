"""
Admin site registry
-------------------
Registers every CalAIM model dynamically from one option table.
"""

import structlog
from django.contrib import admin as django_admin

from . import models

logger = structlog.get_logger(__name__)

# ╭──────────────────────────────────────────────╮
# │ ModelAdmin options per model                │
# ╰──────────────────────────────────────────────╯
MODEL_ADMIN_REGISTRY: dict[type[models.models.Model], dict] = {
    # 1. Members cache
    models.MemberCache: dict(
        list_display=("client_id", "last_name", "first_name", "calaim_status", "calaim_mco", "on_hold", "rcfe_name"),
        list_filter=("calaim_status", "calaim_mco", "on_hold"),
        search_fields=("client_id", "last_name", "first_name", "social_worker_assigned", "staff_assigned"),
        readonly_fields=("search_keys", "search_keys_text", "raw", "cached_at"),
    ),
    models.MembersSyncState: dict(
        list_display=("key", "last_synced_at", "watermark", "last_mode", "complete"),
    ),
    # 2. Staff
    models.StaffDirectoryEntry: dict(
        list_display=("email", "name", "sw_id", "is_active", "is_supervisor"),
        list_filter=("is_active", "is_supervisor"),
        search_fields=("email", "name", "sw_id"),
    ),
    # 3. Visits
    models.SWVisit: dict(
        list_display=("visit_id", "member_id", "staff_identity", "visit_date", "total_score", "flagged", "status"),
        list_filter=("status", "flagged", "urgency", "visit_month"),
        search_fields=("visit_id", "member_id", "member_name", "staff_identity", "rcfe_name"),
    ),
    models.MonthlyVisitLock: dict(
        list_display=("member_id", "month", "visit_id", "staff_identity", "claim_id"),
        search_fields=("member_id", "visit_id"),
    ),
    # 4. Claims
    models.SWClaim: dict(
        list_display=("claim_id", "staff_identity", "claim_date", "visit_count", "total_amount", "status"),
        list_filter=("status", "claim_month"),
        search_fields=("claim_id", "staff_identity", "staff_name"),
    ),
    models.SWClaimEvent: dict(
        list_display=("claim", "from_status", "to_status", "actor", "created_at"),
        list_filter=("to_status",),
    ),
}

# ╭──────────────────────────────────────────────╮
# │ Dynamic registration                        │
# ╰──────────────────────────────────────────────╯
for model, opts in MODEL_ADMIN_REGISTRY.items():
    admin_class = type(f"{model.__name__}Admin", (django_admin.ModelAdmin,), opts)
    django_admin.site.register(model, admin_class)
    logger.debug("Registered model in admin", model=model.__name__)

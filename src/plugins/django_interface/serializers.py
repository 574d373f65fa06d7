from rest_framework import serializers

from members_core.core.application.commands.sync_commands import SYNC_MODE_INCREMENTAL, SYNC_MODES
from sw_visits.core.domain.entities.claim_entity import CLAIM_STATUSES


# ───────────────────────────────────────────────
# Generic pagination
# ───────────────────────────────────────────────
class PaginatedResponseSerializer(serializers.Serializer):
    results = serializers.ListField(child=serializers.DictField(), help_text="Page items")
    total = serializers.IntegerField(help_text="Total items available")
    page = serializers.IntegerField()
    page_size = serializers.IntegerField()
    total_pages = serializers.IntegerField()


# ───────────────────────────────────────────────
# Requests
# ───────────────────────────────────────────────
class AssignmentQuerySerializer(serializers.Serializer):
    staffId = serializers.CharField(
        required=False, allow_blank=True, help_text="uid, display name, 'Last, First' or e-mail; defaults to the caller"
    )


class VisitSignOffSerializer(serializers.Serializer):
    visitIds = serializers.ListField(child=serializers.CharField(max_length=128), allow_empty=False)
    signerName = serializers.CharField(max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ClaimListQuerySerializer(serializers.Serializer):
    month = serializers.RegexField(r"^\d{4}-\d{2}$", required=False)
    status = serializers.ChoiceField(choices=CLAIM_STATUSES, required=False)
    staffIdentity = serializers.CharField(required=False, help_text="admins only")
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    page_size = serializers.IntegerField(min_value=1, max_value=200, required=False, default=50)


class ClaimStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=CLAIM_STATUSES)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class MembersCacheSyncSerializer(serializers.Serializer):
    mode = serializers.ChoiceField(choices=SYNC_MODES, default=SYNC_MODE_INCREMENTAL)
    force = serializers.BooleanField(default=False)
    background = serializers.BooleanField(default=False, help_text="enqueue instead of running inline")

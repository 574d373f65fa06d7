"""
Domain ➜ ORM for the CalAIM social-worker visit program.

⚑ Members cache rows are keyed by the remote `client_id` and overwritten in place
⚑ One monthly visit lock per (member, month), one claim per (staff, day)
⚑ Search keys are stored pipe-delimited so containment lookups stay portable
"""

from __future__ import annotations

import uuid

from django.db import models
from django.db.models import Index, UniqueConstraint


# ╭──────────────────────────────────────────────╮
# │ 1. Members cache                            │
# ╰──────────────────────────────────────────────╯
class MemberCache(models.Model):
    """Local copy of one row of the remote members table."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    client_id = models.CharField(max_length=64, unique=True)
    first_name = models.CharField(max_length=128, blank=True, default="")
    last_name = models.CharField(max_length=128, blank=True, default="")

    social_worker_assigned = models.CharField(max_length=255, blank=True, default="")
    staff_assigned = models.CharField(max_length=255, blank=True, default="")
    kaiser_user_assignment = models.CharField(max_length=255, blank=True, default="")
    sw_id = models.CharField(max_length=64, blank=True, default="")

    calaim_status = models.CharField(max_length=64, blank=True, default="")
    calaim_mco = models.CharField(max_length=128, blank=True, default="")
    hold_for_social_worker = models.CharField(max_length=255, blank=True, default="")
    on_hold = models.BooleanField(default=False)
    authorization_end_date = models.DateField(null=True, blank=True)

    rcfe_registered_id = models.CharField(max_length=64, blank=True, default="")
    rcfe_name = models.CharField(max_length=255, blank=True, default="")
    rcfe_address = models.CharField(max_length=255, blank=True, default="")
    rcfe_city = models.CharField(max_length=128, blank=True, default="")
    rcfe_zip = models.CharField(max_length=16, blank=True, default="")
    rcfe_county = models.CharField(max_length=128, blank=True, default="")
    rcfe_administrator = models.CharField(max_length=255, blank=True, default="")
    rcfe_administrator_email = models.CharField(max_length=255, blank=True, default="")

    member_county = models.CharField(max_length=128, blank=True, default="")
    member_city = models.CharField(max_length=128, blank=True, default="")
    date_modified = models.DateTimeField(null=True, blank=True)

    search_keys = models.JSONField(default=list, blank=True)
    search_keys_text = models.TextField(blank=True, default="")
    raw = models.JSONField(default=dict, blank=True)
    cached_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "calaim_members_cache"
        ordering = ["client_id"]
        indexes = [
            Index(fields=["calaim_status"]),
            Index(fields=["rcfe_registered_id"]),
        ]

    def __str__(self) -> str:
        return f"{self.client_id} {self.first_name} {self.last_name}".strip()


class MembersSyncState(models.Model):
    """Sync metadata, kept apart from the cached rows."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    key = models.CharField(max_length=64, unique=True)
    last_synced_at = models.DateTimeField(null=True, blank=True)
    watermark = models.DateTimeField(null=True, blank=True)
    last_run_at = models.DateTimeField(null=True, blank=True)
    last_mode = models.CharField(max_length=16, blank=True, default="")
    complete = models.BooleanField(default=True)
    summary = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "calaim_members_sync_state"

    def __str__(self) -> str:
        return f"{self.key} @ {self.last_synced_at}"


# ╭──────────────────────────────────────────────╮
# │ 2. Staff directory                          │
# ╰──────────────────────────────────────────────╯
class StaffDirectoryEntry(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(max_length=255, unique=True)
    name = models.CharField(max_length=255)
    sw_id = models.CharField(max_length=64, blank=True, default="")
    phone = models.CharField(max_length=32, blank=True, default="")
    is_active = models.BooleanField(default=True)
    is_supervisor = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "calaim_staff_directory"
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


# ╭──────────────────────────────────────────────╮
# │ 3. Visits                                   │
# ╰──────────────────────────────────────────────╯
class SWVisit(models.Model):
    class Status(models.TextChoices):
        PENDING_SIGNOFF = "pending_signoff", "Pending sign-off"
        FLAGGED = "flagged", "Flagged"
        SIGNED_OFF = "signed_off", "Signed off"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    visit_id = models.CharField(max_length=128, unique=True)
    member_id = models.CharField(max_length=64)
    member_name = models.CharField(max_length=255, blank=True, default="")

    staff_id = models.CharField(max_length=255, blank=True, default="")
    staff_email = models.CharField(max_length=255, blank=True, default="")
    staff_name = models.CharField(max_length=255, blank=True, default="")
    staff_identity = models.CharField(max_length=255)

    rcfe_id = models.CharField(max_length=64, blank=True, default="")
    rcfe_name = models.CharField(max_length=255, blank=True, default="")
    rcfe_address = models.CharField(max_length=255, blank=True, default="")

    visit_date = models.DateField()
    visit_month = models.CharField(max_length=7)
    questionnaire = models.JSONField(default=dict, blank=True)
    total_score = models.PositiveSmallIntegerField(default=0)
    flagged = models.BooleanField(default=False)
    flag_reasons = models.JSONField(default=list, blank=True)
    urgency = models.CharField(max_length=16, blank=True, default="standard")
    geolocation = models.JSONField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING_SIGNOFF)

    signed_off_at = models.DateTimeField(null=True, blank=True)
    signed_off_by = models.CharField(max_length=255, blank=True, default="")
    signoff_notes = models.TextField(blank=True, default="")

    claim_id = models.CharField(max_length=255, blank=True, default="")
    claim_status = models.CharField(max_length=20, blank=True, default="")

    submitted_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "calaim_sw_visits"
        ordering = ["-visit_date", "visit_id"]
        indexes = [
            Index(fields=["member_id", "visit_month"]),
            Index(fields=["staff_identity", "visit_date"]),
        ]

    def __str__(self) -> str:
        return f"{self.visit_id} ({self.member_id} {self.visit_date})"


class MonthlyVisitLock(models.Model):
    """First accepted visit per member per month; the winner never changes."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    member_id = models.CharField(max_length=64)
    month = models.CharField(max_length=7)
    visit_id = models.CharField(max_length=128)
    staff_identity = models.CharField(max_length=255, blank=True, default="")
    staff_name = models.CharField(max_length=255, blank=True, default="")
    claim_id = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "calaim_sw_monthly_visit_locks"
        constraints = [
            UniqueConstraint(fields=["member_id", "month"], name="uq_monthly_visit_lock"),
        ]

    def __str__(self) -> str:
        return f"{self.member_id}_{self.month} -> {self.visit_id}"


# ╭──────────────────────────────────────────────╮
# │ 4. Claims                                   │
# ╰──────────────────────────────────────────────╯
class SWClaim(models.Model):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SUBMITTED = "submitted", "Submitted"
        APPROVED = "approved", "Approved"
        PAID = "paid", "Paid"
        REJECTED = "rejected", "Rejected"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    claim_id = models.CharField(max_length=255, unique=True)
    staff_identity = models.CharField(max_length=255)
    staff_email = models.CharField(max_length=255, blank=True, default="")
    staff_name = models.CharField(max_length=255, blank=True, default="")
    claim_date = models.DateField()
    claim_month = models.CharField(max_length=7)

    visit_ids = models.JSONField(default=list, blank=True)
    visit_count = models.PositiveIntegerField(default=0)
    visit_fee_rate = models.PositiveIntegerField(default=0)
    gas_amount = models.PositiveIntegerField(default=0)
    total_member_visit_fees = models.PositiveIntegerField(default=0)
    total_amount = models.PositiveIntegerField(default=0)
    member_visits = models.JSONField(default=list, blank=True)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    submitted_at = models.DateTimeField(null=True, blank=True)
    reviewer_notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "calaim_sw_claims"
        ordering = ["-claim_date"]
        constraints = [
            UniqueConstraint(fields=["staff_identity", "claim_date"], name="uq_claim_staff_day"),
        ]
        indexes = [Index(fields=["staff_identity", "claim_month"])]

    def __str__(self) -> str:
        return f"{self.claim_id} [{self.status}] ${self.total_amount}"


class SWClaimEvent(models.Model):
    """Audit trail of claim status transitions."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    claim = models.ForeignKey(SWClaim, on_delete=models.CASCADE, related_name="events")
    from_status = models.CharField(max_length=20, blank=True, default="")
    to_status = models.CharField(max_length=20)
    actor = models.CharField(max_length=255, blank=True, default="")
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "calaim_sw_claim_events"
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.claim_id}: {self.from_status} -> {self.to_status}"

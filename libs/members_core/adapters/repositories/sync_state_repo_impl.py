from __future__ import annotations

from django.db import transaction

from members_core.core.domain.entities.sync_state_entity import MEMBERS_SYNC_KEY, MembersSyncStateEntity
from members_core.core.domain.repositories.sync_state_repository import SyncStateRepository
from plugins.django_interface.models import MembersSyncState as MembersSyncStateModel


class SyncStateRepoImpl(SyncStateRepository):
    def __init__(self, key: str = MEMBERS_SYNC_KEY) -> None:
        self.key = key

    def get(self) -> MembersSyncStateEntity:
        try:
            return MembersSyncStateEntity.from_model(MembersSyncStateModel.objects.get(key=self.key))
        except MembersSyncStateModel.DoesNotExist:
            return MembersSyncStateEntity(key=self.key)

    @transaction.atomic
    def save(self, state: MembersSyncStateEntity) -> MembersSyncStateEntity:
        obj, _ = MembersSyncStateModel.objects.update_or_create(
            key=self.key,
            defaults=dict(
                last_synced_at=state.last_synced_at,
                watermark=state.watermark,
                last_run_at=state.last_run_at,
                last_mode=state.last_mode,
                complete=state.complete,
                summary=state.summary,
            ),
        )
        return MembersSyncStateEntity.from_model(obj)

from __future__ import annotations

from django.db import transaction

from members_core.core.domain.entities.staff_entity import StaffDirectoryEntity
from members_core.core.domain.repositories.staff_directory_repository import StaffDirectoryRepository
from plugins.django_interface.models import StaffDirectoryEntry as StaffDirectoryModel


class StaffDirectoryRepoImpl(StaffDirectoryRepository):
    def find_by_email(self, email: str) -> StaffDirectoryEntity | None:
        if not email:
            return None
        try:
            return StaffDirectoryEntity.from_model(
                StaffDirectoryModel.objects.get(email__iexact=email.strip())
            )
        except StaffDirectoryModel.DoesNotExist:
            return None

    def list_active(self) -> list[StaffDirectoryEntity]:
        return [StaffDirectoryEntity.from_model(m) for m in StaffDirectoryModel.objects.filter(is_active=True)]

    def list_supervisors(self) -> list[StaffDirectoryEntity]:
        qs = StaffDirectoryModel.objects.filter(is_active=True, is_supervisor=True)
        return [StaffDirectoryEntity.from_model(m) for m in qs]

    @transaction.atomic
    def upsert(self, entry: StaffDirectoryEntity) -> StaffDirectoryEntity:
        obj, _ = StaffDirectoryModel.objects.update_or_create(
            email=entry.email.strip().lower(),
            defaults=dict(
                name=entry.name.strip(),
                sw_id=entry.sw_id,
                phone=entry.phone,
                is_active=entry.is_active,
                is_supervisor=entry.is_supervisor,
            ),
        )
        return StaffDirectoryEntity.from_model(obj)

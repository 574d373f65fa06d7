from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from django.db import transaction

from members_core.core.domain.entities.member_entity import MemberEntity
from members_core.core.domain.repositories.member_cache_repository import MemberCacheRepository
from plugins.django_interface.models import MemberCache as MemberCacheModel


def search_keys_text(keys: list[str]) -> str:
    """['baggins', 'frodo'] -> '|baggins|frodo|'"""
    return f"|{'|'.join(keys)}|" if keys else ""


class MemberCacheRepoImpl(MemberCacheRepository):
    """Django ORM implementation of the members cache."""

    @staticmethod
    def _defaults(member: MemberEntity) -> dict[str, Any]:
        return dict(
            first_name=member.first_name,
            last_name=member.last_name,
            social_worker_assigned=member.social_worker_assigned,
            staff_assigned=member.staff_assigned,
            kaiser_user_assignment=member.kaiser_user_assignment,
            sw_id=member.sw_id,
            calaim_status=member.calaim_status,
            calaim_mco=member.calaim_mco,
            hold_for_social_worker=member.hold_for_social_worker,
            on_hold=member.on_hold,
            authorization_end_date=member.authorization_end_date,
            rcfe_registered_id=member.rcfe_registered_id,
            rcfe_name=member.rcfe_name,
            rcfe_address=member.rcfe_address,
            rcfe_city=member.rcfe_city,
            rcfe_zip=member.rcfe_zip,
            rcfe_county=member.rcfe_county,
            rcfe_administrator=member.rcfe_administrator,
            rcfe_administrator_email=member.rcfe_administrator_email,
            member_county=member.member_county,
            member_city=member.member_city,
            date_modified=member.date_modified,
            search_keys=list(member.search_keys),
            search_keys_text=search_keys_text(member.search_keys),
            raw=member.raw,
        )

    # ────────────────────────────────── #
    # Writes
    # ────────────────────────────────── #
    @transaction.atomic
    def upsert(self, member: MemberEntity) -> MemberEntity:
        obj, _ = MemberCacheModel.objects.update_or_create(
            client_id=member.client_id,
            defaults=self._defaults(member),
        )
        return MemberEntity.from_model(obj)

    @transaction.atomic
    def upsert_many(self, members: list[MemberEntity]) -> int:
        for member in members:
            MemberCacheModel.objects.update_or_create(
                client_id=member.client_id,
                defaults=self._defaults(member),
            )
        return len(members)

    # ────────────────────────────────── #
    # Reads
    # ────────────────────────────────── #
    def find_by_client_id(self, client_id: str) -> MemberEntity | None:
        try:
            return MemberEntity.from_model(MemberCacheModel.objects.get(client_id=str(client_id).strip()))
        except MemberCacheModel.DoesNotExist:
            return None

    def count(self) -> int:
        return MemberCacheModel.objects.count()

    def find_by_search_key(self, token: str) -> list[MemberEntity]:
        if not token or "|" in token:
            return []
        qs = MemberCacheModel.objects.filter(search_keys_text__contains=f"|{token}|")
        return [MemberEntity.from_model(m) for m in qs]

    def scan_page(self, offset: int, limit: int) -> list[MemberEntity]:
        qs = MemberCacheModel.objects.order_by("client_id")[offset : offset + limit]
        return [MemberEntity.from_model(m) for m in qs]

    def iter_all(self, chunk_size: int = 1000) -> Iterator[MemberEntity]:
        for m in MemberCacheModel.objects.order_by("client_id").iterator(chunk_size=chunk_size):
            yield MemberEntity.from_model(m)

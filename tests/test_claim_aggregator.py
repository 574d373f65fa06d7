"""Daily claim drafts: set semantics and from-scratch pricing."""

from __future__ import annotations

from datetime import date

from django.test import SimpleTestCase, TestCase

from plugins.django_interface.models import SWClaim
from sw_visits.adapters.repositories.claim_repo_impl import ClaimRepoImpl
from sw_visits.adapters.repositories.monthly_lock_repo_impl import MonthlyVisitLockRepoImpl
from sw_visits.adapters.repositories.visit_repo_impl import VisitRepoImpl
from sw_visits.core.application.services.claim_aggregator import ClaimAggregator
from sw_visits.core.domain.entities.claim_entity import build_claim_id, compute_claim_total, staff_key
from sw_visits.core.domain.entities.visit_entity import VisitEntity
from sw_visits.core.domain.exceptions import ClaimClosedError
from tests.helpers.races import lost_insert_race

DAY = date(2026, 10, 6)


def _visit(visit_id: str, member_id: str = "C-1", staff: str = "uid-frodo", on: date = DAY) -> VisitEntity:
    return VisitEntity(
        visit_id=visit_id,
        member_id=member_id,
        staff_identity=staff,
        visit_date=on,
        member_name=f"Member {member_id}",
        staff_email="frodo@shire.org",
        staff_name="Frodo Baggins",
        rcfe_name="Green Dragon Care Home",
    )


class ClaimPricingTests(SimpleTestCase):
    def test_total(self) -> None:
        self.assertEqual(compute_claim_total(0, 45, 20), 0)
        self.assertEqual(compute_claim_total(1, 45, 20), 65)
        self.assertEqual(compute_claim_total(3, 45, 20), 155)

    def test_claim_id(self) -> None:
        self.assertEqual(build_claim_id("uid-frodo", DAY), "swClaim_uid-frodo_20261006")
        self.assertEqual(build_claim_id(" Frodo Baggins/SW ", DAY), "swClaim_Frodo_Baggins_SW-fd91202e_20261006")
        self.assertEqual(staff_key("   "), "unknown")

    def test_rewritten_identities_stay_distinct(self) -> None:
        self.assertEqual(staff_key("a b"), "a_b-7dbde935")
        self.assertEqual(staff_key("a_b"), "a_b")
        self.assertNotEqual(build_claim_id("a b", DAY), build_claim_id("a_b", DAY))


class ClaimAggregatorTests(TestCase):
    def setUp(self) -> None:
        self.aggregator = ClaimAggregator(
            ClaimRepoImpl(), VisitRepoImpl(), MonthlyVisitLockRepoImpl(), fee_rate=45, gas_rate=20
        )

    def test_three_visits_same_day(self) -> None:
        for i, member in enumerate(("C-3", "C-1", "C-2"), start=1):
            claim = self.aggregator.upsert_visit_into_claim(_visit(f"v{i}", member))

        self.assertEqual(claim.claim_id, "swClaim_uid-frodo_20261006")
        self.assertEqual(claim.visit_ids, ["v1", "v2", "v3"])
        self.assertEqual(claim.visit_count, 3)
        self.assertEqual(claim.total_member_visit_fees, 135)
        self.assertEqual(claim.gas_amount, 20)
        self.assertEqual(claim.total_amount, 155)
        self.assertEqual([item["member_id"] for item in claim.member_visits], ["C-3", "C-1", "C-2"])
        self.assertEqual(claim.staff_name, "Frodo Baggins")

        row = SWClaim.objects.get()
        self.assertEqual(row.total_amount, 155)
        self.assertEqual(row.claim_month, "2026-10")
        self.assertEqual(row.status, "draft")

    def test_same_visit_is_counted_once(self) -> None:
        self.aggregator.upsert_visit_into_claim(_visit("v1"))
        claim = self.aggregator.upsert_visit_into_claim(_visit("v1"))
        self.assertEqual(claim.visit_count, 1)
        self.assertEqual(claim.total_amount, 65)
        self.assertEqual(len(claim.member_visits), 1)

    def test_one_claim_per_staff_and_day(self) -> None:
        self.aggregator.upsert_visit_into_claim(_visit("v1"))
        self.aggregator.upsert_visit_into_claim(_visit("v2", on=date(2026, 10, 7)))
        self.aggregator.upsert_visit_into_claim(_visit("v3", staff="uid-sam"))

        self.assertEqual(SWClaim.objects.count(), 3)
        self.assertEqual(set(SWClaim.objects.values_list("total_amount", flat=True)), {65})

    def test_amounts_recomputed_from_stored_ids(self) -> None:
        self.aggregator.upsert_visit_into_claim(_visit("v1"))
        # drifted amounts are repaired on the next fold
        SWClaim.objects.update(total_amount=999, visit_count=7)
        claim = self.aggregator.upsert_visit_into_claim(_visit("v2", "C-2"))
        self.assertEqual(claim.visit_count, 2)
        self.assertEqual(claim.total_amount, 110)

    def test_closed_claim_rejects_new_visits(self) -> None:
        self.aggregator.upsert_visit_into_claim(_visit("v1"))
        SWClaim.objects.update(status="submitted")

        with self.assertRaises(ClaimClosedError) as ctx:
            self.aggregator.upsert_visit_into_claim(_visit("v2", "C-2"))
        self.assertEqual(ctx.exception.status, "submitted")
        self.assertEqual(SWClaim.objects.get().visit_ids, ["v1"])

    def test_closed_claim_accepts_retry_of_folded_visit(self) -> None:
        self.aggregator.upsert_visit_into_claim(_visit("v1"))
        SWClaim.objects.update(status="approved")
        claim = self.aggregator.upsert_visit_into_claim(_visit("v1"))
        self.assertEqual(claim.status, "approved")
        self.assertEqual(claim.total_amount, 65)

    def test_look_alike_identities_get_separate_claims(self) -> None:
        first = self.aggregator.upsert_visit_into_claim(_visit("v1", staff="a b"))
        second = self.aggregator.upsert_visit_into_claim(_visit("v2", "C-2", staff="a_b"))

        self.assertNotEqual(first.claim_id, second.claim_id)
        self.assertEqual(SWClaim.objects.count(), 2)
        self.assertEqual(second.visit_ids, ["v2"])


class ClaimInsertRaceTests(TestCase):
    """The loser of a concurrent draft insert folds into the winner's row."""

    def setUp(self) -> None:
        self.repo = ClaimRepoImpl()
        self.aggregator = ClaimAggregator(
            self.repo, VisitRepoImpl(), MonthlyVisitLockRepoImpl(), fee_rate=45, gas_rate=20
        )

    def test_repository_returns_the_winner_row(self) -> None:
        self.aggregator.upsert_visit_into_claim(_visit("v1"))

        with lost_insert_race(SWClaim):
            claim = self.repo.get_or_create_for_update(
                staff_identity="uid-frodo",
                claim_date=DAY,
                claim_id=build_claim_id("uid-frodo", DAY),
                defaults={"status": "draft"},
            )

        self.assertEqual(claim.visit_ids, ["v1"])
        self.assertEqual(SWClaim.objects.count(), 1)

    def test_both_visits_land_in_one_claim(self) -> None:
        self.aggregator.upsert_visit_into_claim(_visit("v1"))

        with lost_insert_race(SWClaim):
            claim = self.aggregator.upsert_visit_into_claim(_visit("v2", "C-2"))

        self.assertEqual(claim.visit_ids, ["v1", "v2"])
        self.assertEqual(claim.total_amount, 110)
        self.assertEqual(SWClaim.objects.get().visit_ids, ["v1", "v2"])

"""
Monthly questionnaire ingestion end to end, against the ORM repositories.

Every rejection must leave no visit, lock or claim behind; alerts and domain
events only fire from `on_commit` callbacks.
"""

from __future__ import annotations

import threading
from datetime import date
from unittest.mock import MagicMock, patch

from django.db import connection
from django.test import TestCase, TransactionTestCase, skipUnlessDBFeature

from members_core.adapters.repositories.member_cache_repo_impl import MemberCacheRepoImpl
from members_core.adapters.repositories.staff_directory_repo_impl import StaffDirectoryRepoImpl
from members_core.adapters.repositories.sync_state_repo_impl import SyncStateRepoImpl
from members_core.core.application.services.members_cache_service import MembersCacheService
from members_core.core.application.services.staff_directory_service import StaffDirectoryService
from members_core.core.domain.exceptions import CacheEmptyError
from members_core.core.domain.services.event_dispatcher import EventDispatcher
from plugins.django_interface.models import MemberCache, MonthlyVisitLock, SWClaim, SWVisit
from sw_visits.adapters.notifiers.log_only import LogOnlyNotifier
from sw_visits.adapters.repositories.claim_repo_impl import ClaimRepoImpl
from sw_visits.adapters.repositories.monthly_lock_repo_impl import MonthlyVisitLockRepoImpl
from sw_visits.adapters.repositories.visit_repo_impl import VisitRepoImpl
from sw_visits.core.application.services.claim_aggregator import ClaimAggregator
from sw_visits.core.application.services.staff_notification_resolver import StaffNotificationResolver
from sw_visits.core.application.services.visit_ingestion_service import VisitIngestionService
from sw_visits.core.application.services.visit_notification_service import VisitNotificationService
from sw_visits.core.domain.events.events import VisitAcceptedEvent
from sw_visits.core.domain.exceptions import VisitRejectedError
from tests.helpers.factories import mark_cache_fresh, seed_member, visit_payload
from tests.helpers.races import lost_insert_race

TODAY = date(2026, 10, 19)
FRODO_UID = "uid-frodo"


class VisitIngestionCase(TestCase):
    def setUp(self) -> None:
        visit_repo = VisitRepoImpl()
        lock_repo = MonthlyVisitLockRepoImpl()
        self.directory = StaffDirectoryService(StaffDirectoryRepoImpl())
        self.notifier = LogOnlyNotifier()
        self.dispatcher = EventDispatcher()
        self.accepted_events: list[VisitAcceptedEvent] = []
        self.dispatcher.subscribe(VisitAcceptedEvent, self.accepted_events.append)

        self.service = VisitIngestionService(
            members_cache=MembersCacheService(
                api_client=MagicMock(),
                token_provider=MagicMock(),
                member_repo=MemberCacheRepoImpl(),
                state_repo=SyncStateRepoImpl(),
            ),
            visit_repo=visit_repo,
            lock_repo=lock_repo,
            aggregator=ClaimAggregator(ClaimRepoImpl(), visit_repo, lock_repo, fee_rate=45, gas_rate=20),
            alert_publisher=VisitNotificationService(
                StaffNotificationResolver(self.directory),
                notifier_factory=lambda: self.notifier,
                supervisor_emails=["Boss@CalAIM.org"],
            ).notify_flagged,
            staff_directory=self.directory,
            dispatcher=self.dispatcher,
            low_score_threshold=40,
            auth_expiry_plans=["kaiser"],
            today=lambda: TODAY,
        )
        mark_cache_fresh()
        seed_member("C-1001")

    def submit(self, payload=None, **kwargs):
        opts = {"staff_uid": FRODO_UID, "staff_email": "frodo@shire.org"}
        opts.update(kwargs)
        return self.service.submit_visit(payload or visit_payload(), **opts)

    def assertRejected(self, reason: str, payload=None, **kwargs) -> VisitRejectedError:
        visits = SWVisit.objects.count()
        locks = MonthlyVisitLock.objects.count()
        with self.assertRaises(VisitRejectedError) as ctx:
            self.submit(payload, **kwargs)
        self.assertEqual(ctx.exception.reason, reason)
        self.assertEqual(SWVisit.objects.count(), visits)
        self.assertEqual(MonthlyVisitLock.objects.count(), locks)
        return ctx.exception


class AcceptedVisitTests(VisitIngestionCase):
    def test_accepted_visit_is_stored_with_lock_and_claim(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            result = self.submit()

        self.assertTrue(result.created)
        self.assertFalse(result.flagged)
        self.assertEqual(result.status, "pending_signoff")
        self.assertEqual(result.total_score, 80)
        self.assertEqual(result.claim_id, "swClaim_uid-frodo_20261006")
        self.assertEqual(result.claim_total, 65)

        visit = SWVisit.objects.get(visit_id="visit-1")
        self.assertEqual(visit.staff_identity, FRODO_UID)
        self.assertEqual(visit.visit_month, "2026-10")
        self.assertEqual(visit.member_name, "Rosie Cotton")
        self.assertEqual(visit.rcfe_id, "RCFE-7")
        self.assertEqual(visit.claim_id, result.claim_id)
        self.assertEqual(visit.claim_status, "draft")
        self.assertEqual(visit.questionnaire["memberWellbeing"]["physicalHealth"], 4)

        lock = MonthlyVisitLock.objects.get(member_id="C-1001", month="2026-10")
        self.assertEqual(lock.visit_id, "visit-1")
        self.assertEqual(lock.claim_id, result.claim_id)

        claim = SWClaim.objects.get(claim_id=result.claim_id)
        self.assertEqual(claim.visit_ids, ["visit-1"])
        self.assertEqual((claim.visit_count, claim.gas_amount, claim.total_amount), (1, 20, 65))

        self.assertEqual(len(self.accepted_events), 1)
        self.assertEqual(self.notifier.sent, [])

    def test_timestamp_visit_date_is_truncated(self) -> None:
        result = self.submit(visit_payload(visit_date="2026-10-06T18:30:00.000Z"))
        self.assertEqual(SWVisit.objects.get(visit_id=result.visit_id).visit_date, date(2026, 10, 6))

    def test_idempotent_retry_returns_stored_visit(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            first = self.submit(visit_payload(rating=1))
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            retry = self.submit(visit_payload(rating=5))

        self.assertFalse(retry.created)
        self.assertEqual(callbacks, [])
        self.assertEqual(retry.total_score, first.total_score)
        self.assertTrue(retry.flagged)
        self.assertEqual(retry.claim_total, 65)
        self.assertEqual(SWVisit.objects.count(), 1)
        self.assertEqual(SWClaim.objects.get().visit_count, 1)
        self.assertEqual(len(self.notifier.sent), 1)

    def test_retry_with_another_date_keeps_the_stored_month(self) -> None:
        self.submit()
        retry = self.submit(visit_payload(visit_date="2026-11-02"))

        self.assertFalse(retry.created)
        self.assertEqual(SWVisit.objects.get().visit_month, "2026-10")
        self.assertEqual(
            list(MonthlyVisitLock.objects.values_list("month", "visit_id")), [("2026-10", "visit-1")]
        )

        november = self.submit(visit_payload(visit_id="visit-2", visit_date="2026-11-15"))
        self.assertTrue(november.created)
        self.assertEqual(MonthlyVisitLock.objects.get(month="2026-11").visit_id, "visit-2")

    def test_next_month_is_a_new_visit(self) -> None:
        self.submit()
        result = self.submit(visit_payload(visit_id="visit-2", visit_date="2026-11-03"))
        self.assertTrue(result.created)
        self.assertEqual(MonthlyVisitLock.objects.count(), 2)
        self.assertEqual(SWClaim.objects.count(), 2)

    def test_staff_name_from_directory(self) -> None:
        self.directory.upsert_entries([{"email": "frodo@shire.org", "name": "Frodo B."}])
        payload = visit_payload(socialWorkerName="")
        self.submit(payload)
        self.assertEqual(SWVisit.objects.get().staff_name, "Frodo B.")
        self.assertEqual(SWClaim.objects.get().staff_name, "Frodo B.")

    def test_identity_falls_back_to_email(self) -> None:
        result = self.submit(staff_uid="", staff_email="Frodo@Shire.org")
        self.assertEqual(result.claim_id, "swClaim_frodo@shire.org_20261006")


class FlaggedVisitTests(VisitIngestionCase):
    def test_flagged_visit_alerts_after_commit(self) -> None:
        self.directory.upsert_entries(
            [
                {"email": "frodo@shire.org", "name": "Frodo Baggins"},
                {"email": "sam@shire.org", "name": "Samwise Gamgee"},
                {"email": "gandalf@shire.org", "name": "Gandalf Grey", "is_supervisor": True},
            ]
        )
        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            result = self.submit(visit_payload(rating=1))
        self.assertEqual(self.notifier.sent, [])

        for callback in callbacks:
            callback()

        self.assertTrue(result.flagged)
        self.assertEqual(result.status, "flagged")
        self.assertEqual(result.urgency, "immediate")
        self.assertEqual(len(self.notifier.sent), 1)
        message = self.notifier.sent[0]
        self.assertEqual(message["recipients"], ["boss@calaim.org", "frodo@shire.org", "gandalf@shire.org"])
        self.assertTrue(message["subject"].startswith("[IMMEDIATE]"))
        self.assertIn("Low overall score (20)", message["html"])

    def test_alert_failure_keeps_the_visit(self) -> None:
        self.notifier.send = MagicMock(side_effect=RuntimeError("smtp down"))
        with self.captureOnCommitCallbacks(execute=True):
            result = self.submit(visit_payload(rating=1))
        self.assertTrue(result.flagged)
        self.assertTrue(SWVisit.objects.filter(visit_id="visit-1").exists())


class RejectedVisitTests(VisitIngestionCase):
    def test_missing_visit_id(self) -> None:
        payload = visit_payload()
        del payload["visitId"]
        exc = self.assertRejected("validation_error", payload)
        self.assertEqual(exc.details["errors"][0]["field"], "visitId")

    def test_invalid_rating(self) -> None:
        payload = visit_payload(rcfeAssessment={"overallRating": 9})
        self.assertRejected("validation_error", payload)

    def test_missing_identity(self) -> None:
        payload = visit_payload(socialWorkerEmail="")
        self.assertRejected("validation_error", payload, staff_uid="", staff_email="")

    def test_unknown_member(self) -> None:
        exc = self.assertRejected("validation_error", visit_payload(member_id="C-404"))
        self.assertEqual(exc.details["memberId"], "C-404")

    def test_empty_cache_is_not_a_validation_error(self) -> None:
        MemberCache.objects.all().delete()
        with self.assertRaises(CacheEmptyError):
            self.submit()

    def test_not_authorized(self) -> None:
        seed_member("C-2", CalAIM_Status="Pending")
        exc = self.assertRejected("not_authorized", visit_payload(member_id="C-2"))
        self.assertEqual(exc.details["calaimStatus"], "Pending")

    def test_on_hold(self) -> None:
        seed_member("C-2", Hold_For_Social_Worker_Visit="On hold")
        self.assertRejected("on_hold", visit_payload(member_id="C-2"))

    def test_authorization_expired(self) -> None:
        seed_member("C-2", CalAIM_MCO="Kaiser", Authorization_End_Date_T2038="2026-09-30")
        exc = self.assertRejected("auth_expired", visit_payload(member_id="C-2"))
        self.assertEqual(exc.details["authorizationEndDate"], "2026-09-30")
        self.assertIn("2026-09-30", exc.message)

    def test_expiry_ignored_for_other_plans(self) -> None:
        seed_member("C-2", CalAIM_MCO="Health Net", Authorization_End_Date_T2038="2026-09-30")
        self.assertTrue(self.submit(visit_payload(member_id="C-2")).created)

    def test_second_visit_in_same_month(self) -> None:
        self.submit()
        exc = self.assertRejected(
            "duplicate_monthly_visit", visit_payload(visit_id="visit-2", visit_date="2026-10-20"), staff_uid="uid-sam"
        )
        self.assertTrue(exc.is_conflict)
        self.assertEqual(exc.details["existingVisitId"], "visit-1")
        self.assertEqual(exc.details["month"], "2026-10")
        self.assertEqual(SWClaim.objects.count(), 1)

    def test_visit_stored_concurrently_for_another_month(self) -> None:
        self.submit()
        # the stored row appears between the retry lookup and the insert
        with patch.object(self.service.visit_repo, "find_by_id", return_value=None):
            exc = self.assertRejected("validation_error", visit_payload(visit_date="2026-11-02"))

        self.assertEqual(exc.details["month"], "2026-10")
        self.assertFalse(MonthlyVisitLock.objects.filter(month="2026-11").exists())

    def test_lost_lock_insert_race(self) -> None:
        self.submit()
        with lost_insert_race(MonthlyVisitLock):
            exc = self.assertRejected(
                "duplicate_monthly_visit",
                visit_payload(visit_id="visit-2", visit_date="2026-10-20"),
                staff_uid="uid-sam",
            )
        self.assertEqual(exc.details["existingVisitId"], "visit-1")
        self.assertFalse(SWVisit.objects.filter(visit_id="visit-2").exists())

    def test_visit_id_reused_for_another_member(self) -> None:
        seed_member("C-2")
        self.submit()
        self.assertRejected("validation_error", visit_payload(member_id="C-2"))
        self.assertFalse(MonthlyVisitLock.objects.filter(member_id="C-2").exists())

    def test_visit_into_closed_claim(self) -> None:
        seed_member("C-2")
        first = self.submit()
        SWClaim.objects.filter(claim_id=first.claim_id).update(status="submitted")

        exc = self.assertRejected("claim_closed", visit_payload(visit_id="visit-2", member_id="C-2"))

        self.assertEqual(exc.details["claimId"], first.claim_id)
        self.assertFalse(MonthlyVisitLock.objects.filter(member_id="C-2").exists())
        self.assertEqual(SWClaim.objects.get().visit_ids, ["visit-1"])


@skipUnlessDBFeature("has_select_for_update")
class ConcurrentSubmissionTests(TransactionTestCase):
    """Real threads, real row locks; needs a database with SELECT ... FOR UPDATE."""

    def setUp(self) -> None:
        visit_repo = VisitRepoImpl()
        lock_repo = MonthlyVisitLockRepoImpl()
        self.service = VisitIngestionService(
            members_cache=MembersCacheService(
                api_client=MagicMock(),
                token_provider=MagicMock(),
                member_repo=MemberCacheRepoImpl(),
                state_repo=SyncStateRepoImpl(),
            ),
            visit_repo=visit_repo,
            lock_repo=lock_repo,
            aggregator=ClaimAggregator(ClaimRepoImpl(), visit_repo, lock_repo, fee_rate=45, gas_rate=20),
            today=lambda: TODAY,
        )
        mark_cache_fresh()
        seed_member("C-1001")
        seed_member("C-1002")

    def race(self, *payloads) -> tuple[list, list[VisitRejectedError]]:
        barrier = threading.Barrier(len(payloads))
        accepted, rejected = [], []

        def worker(payload):
            try:
                barrier.wait()
                accepted.append(self.service.submit_visit(payload, staff_uid=FRODO_UID))
            except VisitRejectedError as exc:
                rejected.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker, args=(p,)) for p in payloads]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)
        return accepted, rejected

    def test_one_winner_per_member_and_month(self) -> None:
        accepted, rejected = self.race(
            visit_payload(visit_id="visit-a", visit_date="2026-10-06"),
            visit_payload(visit_id="visit-b", visit_date="2026-10-06"),
        )

        self.assertEqual(len(accepted), 1)
        self.assertEqual([exc.reason for exc in rejected], ["duplicate_monthly_visit"])
        lock = MonthlyVisitLock.objects.get(member_id="C-1001", month="2026-10")
        self.assertEqual(lock.visit_id, accepted[0].visit_id)
        self.assertEqual(SWVisit.objects.count(), 1)

    def test_same_day_visits_share_one_claim(self) -> None:
        accepted, rejected = self.race(
            visit_payload(visit_id="visit-a", member_id="C-1001"),
            visit_payload(visit_id="visit-b", member_id="C-1002"),
        )

        self.assertEqual((len(accepted), rejected), (2, []))
        claim = SWClaim.objects.get()
        self.assertEqual(claim.visit_ids, ["visit-a", "visit-b"])
        self.assertEqual((claim.visit_count, claim.total_amount), (2, 110))

from __future__ import annotations

from datetime import date, datetime, timezone as dt_timezone

from django.test import TestCase

from members_core.core.domain.services.event_dispatcher import EventDispatcher
from plugins.django_interface.models import SWVisit
from sw_visits.adapters.repositories.visit_repo_impl import VisitRepoImpl
from sw_visits.core.application.services.visit_signoff_service import VisitSignOffService
from sw_visits.core.domain.entities.visit_entity import VisitEntity
from sw_visits.core.domain.events.events import VisitsSignedOffEvent
from sw_visits.core.domain.exceptions import VisitAccessDeniedError, VisitNotFoundError, VisitRejectedError

NOW = datetime(2026, 10, 19, 18, 30, tzinfo=dt_timezone.utc)
OWNER = "uid-frodo"


class VisitSignOffTests(TestCase):
    def setUp(self) -> None:
        self.repo = VisitRepoImpl()
        self.dispatcher = EventDispatcher()
        self.events: list[VisitsSignedOffEvent] = []
        self.dispatcher.subscribe(VisitsSignedOffEvent, self.events.append)
        self.service = VisitSignOffService(self.repo, dispatcher=self.dispatcher, clock=lambda: NOW)
        for n, visit_id in enumerate(("v1", "v2")):
            self.repo.create_if_absent(
                VisitEntity(visit_id=visit_id, member_id=f"C-{n}", staff_identity=OWNER, visit_date=date(2026, 10, 6))
            )
        self.repo.create_if_absent(
            VisitEntity(visit_id="s1", member_id="C-9", staff_identity="uid-sam", visit_date=date(2026, 10, 6))
        )

    def test_signs_own_visits(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            updated = self.service.sign_off_visits(["v1", "v2", "v1"], OWNER, " Bilbo Baggins ", notes="all good")

        self.assertEqual(updated, ["v1", "v2"])
        row = SWVisit.objects.get(visit_id="v1")
        self.assertEqual(row.status, "signed_off")
        self.assertEqual(row.signed_off_by, "Bilbo Baggins")
        self.assertEqual(row.signed_off_at, NOW)
        self.assertEqual(row.signoff_notes, "all good")
        self.assertEqual([(e.visit_ids, e.signed_off_by) for e in self.events], [(("v1", "v2"), "Bilbo Baggins")])

    def test_already_signed_visits_are_left_alone(self) -> None:
        self.service.sign_off_visits(["v1"], OWNER, "Bilbo Baggins")
        with self.captureOnCommitCallbacks(execute=True):
            updated = self.service.sign_off_visits(["v1", "v2"], OWNER, "Lobelia Sackville")

        self.assertEqual(updated, ["v2"])
        self.assertEqual(SWVisit.objects.get(visit_id="v1").signed_off_by, "Bilbo Baggins")
        self.assertEqual(SWVisit.objects.get(visit_id="v2").signed_off_by, "Lobelia Sackville")

    def test_nothing_pending_dispatches_nothing(self) -> None:
        self.service.sign_off_visits(["v1"], OWNER, "Bilbo Baggins")
        self.events.clear()
        with self.captureOnCommitCallbacks(execute=True):
            self.assertEqual(self.service.sign_off_visits(["v1"], OWNER, "Bilbo Baggins"), [])
        self.assertEqual(self.events, [])

    def test_foreign_visit(self) -> None:
        with self.assertRaises(VisitAccessDeniedError):
            self.service.sign_off_visits(["v1", "s1"], OWNER, "Bilbo Baggins")
        self.assertEqual(SWVisit.objects.filter(status="signed_off").count(), 0)

    def test_unknown_visit(self) -> None:
        with self.assertRaises(VisitNotFoundError):
            self.service.sign_off_visits(["v1", "nope"], OWNER, "Bilbo Baggins")

    def test_signer_and_selection_are_required(self) -> None:
        for ids, signer in ((["v1"], "  "), ([], "Bilbo Baggins"), (["  "], "Bilbo Baggins")):
            with self.assertRaises(VisitRejectedError) as ctx:
                self.service.sign_off_visits(ids, OWNER, signer)
            self.assertEqual(ctx.exception.reason, "validation_error")

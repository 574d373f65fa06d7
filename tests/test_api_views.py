"""HTTP surface: identity headers, status codes and response bodies."""

from __future__ import annotations

from unittest.mock import patch

from django.test import TestCase
from rest_framework.test import APIClient

from plugins.django_interface.models import SWClaim, SWVisit
from tests.helpers.factories import mark_cache_fresh, seed_member, visit_payload

FRODO = {"HTTP_X_STAFF_UID": "uid-frodo", "HTTP_X_STAFF_EMAIL": "frodo@shire.org", "HTTP_X_STAFF_NAME": "Frodo Baggins"}
SAM = {"HTTP_X_STAFF_UID": "uid-sam", "HTTP_X_STAFF_EMAIL": "sam@shire.org", "HTTP_X_STAFF_NAME": "Samwise Gamgee"}
ADMIN = {"HTTP_X_STAFF_UID": "uid-gandalf", "HTTP_X_STAFF_EMAIL": "gandalf@calaim.org", "HTTP_X_STAFF_ROLE": "admin"}


class ApiTestCase(TestCase):
    def setUp(self) -> None:
        self.client = APIClient()

    def _post_visit(self, headers=FRODO, **kwargs):
        return self.client.post("/api/visits/", visit_payload(**kwargs), format="json", **headers)


class AuthenticationTests(ApiTestCase):
    def test_anonymous_is_refused(self) -> None:
        resp = self.client.get("/api/assignments/")
        self.assertIn(resp.status_code, (401, 403))

    def test_unknown_role(self) -> None:
        resp = self.client.get("/api/assignments/", HTTP_X_STAFF_UID="uid-x", HTTP_X_STAFF_ROLE="root")
        self.assertIn(resp.status_code, (401, 403))

    def test_invalid_email_header(self) -> None:
        resp = self.client.get("/api/assignments/", HTTP_X_STAFF_EMAIL="not-an-email")
        self.assertIn(resp.status_code, (401, 403))

    def test_health_needs_no_identity(self) -> None:
        resp = self.client.get("/api/healthz/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok"})

    def test_metrics(self) -> None:
        resp = self.client.get("/metrics/")
        self.assertEqual(resp.status_code, 200)
        self.assertIn(b"sw_visit_submissions_total", resp.content)


class AssignmentsApiTests(ApiTestCase):
    def test_empty_cache_is_unavailable(self) -> None:
        resp = self.client.get("/api/assignments/", {"staffId": "Frodo Baggins"}, **FRODO)
        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.json()["error"], "cache_empty")

    def test_defaults_to_caller(self) -> None:
        mark_cache_fresh()
        seed_member("C-1", Social_Worker_Assigned="frodo@shire.org")
        seed_member("C-2", Social_Worker_Assigned="Samwise Gamgee")

        resp = self.client.get("/api/assignments/", **FRODO)

        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["totalMembers"], 1)
        self.assertEqual(body["rcfeList"][0]["members"][0]["id"], "C-1")

    def test_explicit_staff_id(self) -> None:
        mark_cache_fresh()
        seed_member("C-2", Social_Worker_Assigned="Gamgee, Samwise")

        body = self.client.get("/api/assignments/", {"staffId": "Samwise Gamgee"}, **FRODO).json()

        self.assertEqual(body["totalMembers"], 1)
        self.assertEqual(body["cacheStatus"], "fresh")


class VisitsApiTests(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        mark_cache_fresh()
        seed_member("C-1001")

    def test_created_then_retried(self) -> None:
        first = self._post_visit()
        self.assertEqual(first.status_code, 201)
        body = first.json()
        self.assertEqual(body["visitId"], "visit-1")
        self.assertEqual(body["claimId"], "swClaim_uid-frodo_20261006")
        self.assertEqual(body["claimTotal"], 65)
        self.assertFalse(body["flagged"])

        retry = self._post_visit()
        self.assertEqual(retry.status_code, 200)
        self.assertEqual(retry.json()["claimTotal"], 65)
        self.assertEqual(SWVisit.objects.count(), 1)

    def test_invalid_payload(self) -> None:
        resp = self.client.post("/api/visits/", {"memberId": "C-1001"}, format="json", **FRODO)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "validation_error")
        self.assertTrue(resp.json()["errors"])

    def test_member_on_hold(self) -> None:
        seed_member("C-2", Hold_For_Social_Worker_Visit="Hold")
        resp = self._post_visit(member_id="C-2")
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["error"], "on_hold")
        self.assertFalse(SWVisit.objects.exists())

    def test_second_visit_same_month(self) -> None:
        self._post_visit()
        resp = self._post_visit(headers=SAM, visit_id="visit-2", visit_date="2026-10-12")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["error"], "duplicate_monthly_visit")
        self.assertEqual(resp.json()["existingVisitId"], "visit-1")

    def test_list_own_visits(self) -> None:
        self._post_visit()
        body = self.client.get("/api/visits/", {"month": "2026-10"}, **FRODO).json()
        self.assertEqual(body["total"], 1)
        self.assertEqual(self.client.get("/api/visits/", **SAM).json()["total"], 0)

    def test_signoff(self) -> None:
        self._post_visit()
        resp = self.client.post(
            "/api/visits/signoff/", {"visitIds": ["visit-1"], "signerName": "Bilbo Baggins"}, format="json", **FRODO
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"updated": 1, "visitIds": ["visit-1"]})

        foreign = self.client.post(
            "/api/visits/signoff/", {"visitIds": ["visit-1"], "signerName": "Rosie"}, format="json", **SAM
        )
        self.assertEqual(foreign.status_code, 403)


class ClaimsApiTests(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        mark_cache_fresh()
        seed_member("C-1001")
        seed_member("C-1002")
        self._post_visit()
        self._post_visit(visit_id="visit-2", member_id="C-1002")
        self.claim_id = "swClaim_uid-frodo_20261006"

    def test_list_own_claims(self) -> None:
        body = self.client.get("/api/claims/", **FRODO).json()
        self.assertEqual(body["total"], 1)
        self.assertEqual(body["results"][0]["totalAmount"], 110)
        self.assertEqual(self.client.get("/api/claims/", **SAM).json()["total"], 0)

    def test_detail_is_owner_or_admin(self) -> None:
        url = f"/api/claims/{self.claim_id}/"
        self.assertEqual(self.client.get(url, **FRODO).json()["visitCount"], 2)
        self.assertEqual(self.client.get(url, **SAM).status_code, 403)
        self.assertEqual(self.client.get(url, **ADMIN).status_code, 200)
        self.assertEqual(self.client.get("/api/claims/swClaim_x_20260101/", **FRODO).status_code, 404)

    def test_submit_and_review(self) -> None:
        submit = self.client.post(f"/api/claims/{self.claim_id}/submit/", **FRODO)
        self.assertEqual(submit.status_code, 200)
        self.assertEqual(submit.json()["status"], "submitted")

        again = self.client.post(f"/api/claims/{self.claim_id}/submit/", **FRODO)
        self.assertEqual(again.status_code, 409)
        self.assertEqual(again.json()["error"], "invalid_transition")

        url = f"/api/admin/claims/{self.claim_id}/status/"
        self.assertEqual(self.client.post(url, {"status": "approved"}, format="json", **FRODO).status_code, 403)
        approved = self.client.post(url, {"status": "approved"}, format="json", **ADMIN)
        self.assertEqual(approved.status_code, 200)
        self.assertEqual(SWClaim.objects.get().status, "approved")

        detail = self.client.get(f"/api/claims/{self.claim_id}/", **FRODO).json()
        self.assertEqual([e["toStatus"] for e in detail["events"]], ["submitted", "approved"])

    def test_visit_for_closed_claim(self) -> None:
        self.client.post(f"/api/claims/{self.claim_id}/submit/", **FRODO)
        seed_member("C-1003")
        resp = self._post_visit(visit_id="visit-3", member_id="C-1003")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["error"], "claim_closed")


class MembersCacheApiTests(ApiTestCase):
    def test_status(self) -> None:
        body = self.client.get("/api/members-cache/status/", **FRODO).json()
        self.assertEqual(body["status"], "empty")
        self.assertEqual(body["count"], 0)

    def test_sync_is_admin_only(self) -> None:
        resp = self.client.post("/api/admin/members-cache/sync/", {"background": True}, format="json", **FRODO)
        self.assertEqual(resp.status_code, 403)

    @patch("calaim_api.tasks.enqueue_members_refresh", return_value=True)
    def test_background_sync_is_enqueued(self, enqueue) -> None:
        resp = self.client.post(
            "/api/admin/members-cache/sync/", {"background": True, "mode": "full"}, format="json", **ADMIN
        )
        self.assertEqual(resp.status_code, 202)
        self.assertEqual(resp.json(), {"queued": True, "mode": "full"})
        enqueue.assert_called_once_with("full", force=False)

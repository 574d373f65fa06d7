"""Scoring, flagging and urgency of monthly questionnaires."""

from django.test import SimpleTestCase

from sw_visits.core.application.dtos.visit_dtos import VisitSubmissionDTO
from sw_visits.core.domain.services.visit_scoring import (
    NEXT_ACTION_CONCERNS,
    NEXT_ACTION_SIGNOFF,
    NEXT_ACTION_SUPERVISORS,
    assess_visit,
    compute_score,
    next_actions,
)
from tests.helpers.factories import visit_payload


def _dto(**kwargs) -> VisitSubmissionDTO:
    return VisitSubmissionDTO.model_validate(visit_payload(**kwargs))


class ScoreTests(SimpleTestCase):
    def test_all_answered(self) -> None:
        self.assertEqual(compute_score(_dto(rating=4)), (80, 56, 70))
        self.assertEqual(compute_score(_dto(rating=5)), (100, 70, 70))

    def test_unanswered_ratings_count_as_zero(self) -> None:
        dto = _dto(
            memberWellbeing={"physicalHealth": 0, "mentalHealth": "", "socialEngagement": None, "overallMood": "0"}
        )
        self.assertIsNone(dto.member_wellbeing.physical_health)
        self.assertEqual(compute_score(dto), (57, 40, 70))

    def test_non_responsive_member_scores_facility_only(self) -> None:
        dto = _dto(
            rating=1,
            memberConcerns={"nonResponsive": True, "nonResponsiveReason": "asleep"},
            rcfeAssessment={
                "facilityCondition": 5,
                "staffProfessionalism": 5,
                "safetyCompliance": 5,
                "careQuality": 5,
                "overallRating": 5,
            },
        )
        self.assertEqual(compute_score(dto), (100, 25, 25))

    def test_client_summary_is_ignored(self) -> None:
        dto = _dto(visitSummary={"totalScore": 3, "flagged": True})
        self.assertEqual(assess_visit(dto).total_score, 80)
        self.assertFalse(assess_visit(dto).flagged)


class FlagTests(SimpleTestCase):
    def test_good_visit_is_not_flagged(self) -> None:
        assessment = assess_visit(_dto(rating=4))
        self.assertFalse(assessment.flagged)
        self.assertEqual(assessment.flag_reasons, [])
        self.assertEqual(assessment.urgency, "standard")
        self.assertEqual(assessment.status, "pending_signoff")

    def test_threshold_is_exclusive(self) -> None:
        # 28 / 70 -> 40
        assessment = assess_visit(_dto(rating=2))
        self.assertEqual(assessment.total_score, 40)
        self.assertFalse(assessment.flagged)

    def test_low_score_is_immediate(self) -> None:
        assessment = assess_visit(_dto(rating=1))
        self.assertTrue(assessment.flagged)
        self.assertEqual(assessment.status, "flagged")
        self.assertEqual(assessment.urgency, "immediate")
        self.assertIn("Low overall score (20)", assessment.flag_reasons)
        self.assertIn("Poor RCFE rating (1/5)", assessment.flag_reasons)
        self.assertIn("Poor care satisfaction (1/5)", assessment.flag_reasons)

    def test_custom_threshold(self) -> None:
        # 42 / 70 -> 60
        assessment = assess_visit(_dto(rating=3), low_score_threshold=70)
        self.assertTrue(assessment.flagged)
        self.assertEqual(assessment.urgency, "urgent")

    def test_critical_urgency(self) -> None:
        assessment = assess_visit(_dto(memberConcerns={"hasConcerns": True, "urgencyLevel": "CRITICAL"}))
        self.assertTrue(assessment.flagged)
        self.assertEqual(assessment.urgency, "immediate")
        self.assertEqual(assessment.flag_reasons, ["Critical member concerns reported"])

    def test_action_required(self) -> None:
        assessment = assess_visit(_dto(memberConcerns={"actionRequired": True}))
        self.assertTrue(assessment.flagged)
        self.assertEqual(assessment.urgency, "urgent")
        self.assertEqual(assessment.flag_reasons, ["Immediate action required"])

    def test_flag_for_review(self) -> None:
        rcfe = {
            "facilityCondition": 4,
            "staffProfessionalism": 4,
            "safetyCompliance": 4,
            "careQuality": 4,
            "overallRating": 4,
            "flagForReview": True,
        }
        assessment = assess_visit(_dto(rcfeAssessment=rcfe))
        self.assertTrue(assessment.flagged)
        self.assertEqual(assessment.urgency, "standard")
        self.assertEqual(assessment.flag_reasons, ["RCFE flagged for review"])

    def test_high_urgency_alone_does_not_flag(self) -> None:
        assessment = assess_visit(_dto(memberConcerns={"hasConcerns": True, "urgencyLevel": "high"}))
        self.assertFalse(assessment.flagged)
        self.assertEqual(assessment.urgency, "urgent")

    def test_safety_concern_raises_urgency(self) -> None:
        concerns = {"hasConcerns": True, "concernTypes": {"safety": True}, "urgencyLevel": "medium"}
        self.assertEqual(assess_visit(_dto(memberConcerns=concerns)).urgency, "immediate")

    def test_safety_type_without_has_concerns_is_ignored(self) -> None:
        concerns = {"hasConcerns": False, "concernTypes": {"safety": True}}
        self.assertEqual(assess_visit(_dto(memberConcerns=concerns)).urgency, "standard")

    def test_flag_reasons_list_every_trigger(self) -> None:
        concerns = {
            "hasConcerns": True,
            "concernTypes": {"safety": True, "medical": True},
            "urgencyLevel": "critical",
            "actionRequired": True,
        }
        reasons = assess_visit(_dto(memberConcerns=concerns)).flag_reasons
        self.assertEqual(
            reasons,
            [
                "Critical member concerns reported",
                "Safety concerns identified",
                "Medical concerns reported",
                "Immediate action required",
            ],
        )


class NextActionTests(SimpleTestCase):
    def test_plain_visit(self) -> None:
        dto = _dto()
        self.assertEqual(next_actions(dto, assess_visit(dto)), [NEXT_ACTION_SIGNOFF])

    def test_flagged_visit_with_concerns(self) -> None:
        dto = _dto(rating=1, memberConcerns={"hasConcerns": True})
        actions = next_actions(dto, assess_visit(dto))
        self.assertEqual(actions[0], NEXT_ACTION_SUPERVISORS)
        self.assertIn(NEXT_ACTION_CONCERNS, actions)
        self.assertEqual(actions[-1], NEXT_ACTION_SIGNOFF)

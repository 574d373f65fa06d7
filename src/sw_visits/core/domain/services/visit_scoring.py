from __future__ import annotations

from dataclasses import dataclass, field

from sw_visits.core.application.dtos.visit_dtos import VisitSubmissionDTO
from sw_visits.core.domain.entities.visit_entity import (
    URGENCY_IMMEDIATE,
    URGENCY_STANDARD,
    URGENCY_URGENT,
    VISIT_STATUS_FLAGGED,
    VISIT_STATUS_PENDING_SIGNOFF,
)

RATING_MAX = 5
DEFAULT_LOW_SCORE_THRESHOLD = 40
IMMEDIATE_SCORE_THRESHOLD = 25
POOR_RATING_MAX = 2

MEMBER_WELLBEING_ITEMS = ("physical_health", "mental_health", "social_engagement", "overall_mood")
CARE_SATISFACTION_ITEMS = (
    "staff_attentiveness",
    "meal_quality",
    "cleanliness_of_room",
    "activities_programs",
    "overall_satisfaction",
)
RCFE_ASSESSMENT_ITEMS = (
    "facility_condition",
    "staff_professionalism",
    "safety_compliance",
    "care_quality",
    "overall_rating",
)

NEXT_ACTION_SUPERVISORS = "Supervisors have been notified"
NEXT_ACTION_FOLLOW_UP = "Follow-up will be scheduled if required"
NEXT_ACTION_CONCERNS = "Member concerns will be addressed within 24 hours"
NEXT_ACTION_SIGNOFF = "Complete RCFE sign-off for this visit"


@dataclass(frozen=True)
class VisitAssessment:
    total_score: int
    raw_total: int
    raw_max: int
    flagged: bool
    urgency: str
    flag_reasons: list[str] = field(default_factory=list)

    @property
    def status(self) -> str:
        return VISIT_STATUS_FLAGGED if self.flagged else VISIT_STATUS_PENDING_SIGNOFF


def _sum_section(section: object, items: tuple[str, ...]) -> int:
    return sum(getattr(section, name) or 0 for name in items)


def compute_score(dto: VisitSubmissionDTO) -> tuple[int, int, int]:
    """
    `(total_score, raw_total, raw_max)` on a 0-100 scale.

    Unanswered ratings count as 0. When the member could not respond, the
    member wellbeing and care satisfaction sections leave both the total and
    the maximum, so the score reflects the facility assessment only.
    """
    raw = _sum_section(dto.rcfe_assessment, RCFE_ASSESSMENT_ITEMS)
    raw_max = len(RCFE_ASSESSMENT_ITEMS) * RATING_MAX
    if not dto.member_concerns.non_responsive:
        raw += _sum_section(dto.member_wellbeing, MEMBER_WELLBEING_ITEMS)
        raw += _sum_section(dto.care_satisfaction, CARE_SATISFACTION_ITEMS)
        raw_max += (len(MEMBER_WELLBEING_ITEMS) + len(CARE_SATISFACTION_ITEMS)) * RATING_MAX
    total = round(raw / raw_max * 100) if raw_max else 0
    return total, raw, raw_max


def _has_concern(dto: VisitSubmissionDTO, kind: str) -> bool:
    concerns = dto.member_concerns
    return concerns.has_concerns and bool(getattr(concerns.concern_types, kind))


def flag_reasons(dto: VisitSubmissionDTO, total_score: int, low_score_threshold: int) -> list[str]:
    concerns = dto.member_concerns
    rcfe = dto.rcfe_assessment
    reasons: list[str] = []
    if total_score < low_score_threshold:
        reasons.append(f"Low overall score ({total_score})")
    if concerns.urgency_level == "critical":
        reasons.append("Critical member concerns reported")
    if _has_concern(dto, "safety"):
        reasons.append("Safety concerns identified")
    if _has_concern(dto, "medical"):
        reasons.append("Medical concerns reported")
    if rcfe.overall_rating and rcfe.overall_rating <= POOR_RATING_MAX:
        reasons.append(f"Poor RCFE rating ({rcfe.overall_rating}/5)")
    satisfaction = dto.care_satisfaction.overall_satisfaction
    if not concerns.non_responsive and satisfaction and satisfaction <= POOR_RATING_MAX:
        reasons.append(f"Poor care satisfaction ({satisfaction}/5)")
    if concerns.action_required:
        reasons.append("Immediate action required")
    if rcfe.flag_for_review:
        reasons.append("RCFE flagged for review")
    return reasons


def compute_urgency(dto: VisitSubmissionDTO, total_score: int, low_score_threshold: int) -> str:
    level = dto.member_concerns.urgency_level
    if level == "critical" or total_score < IMMEDIATE_SCORE_THRESHOLD or _has_concern(dto, "safety"):
        return URGENCY_IMMEDIATE
    if level == "high" or total_score < low_score_threshold or dto.member_concerns.action_required:
        return URGENCY_URGENT
    return URGENCY_STANDARD


def assess_visit(dto: VisitSubmissionDTO, low_score_threshold: int = DEFAULT_LOW_SCORE_THRESHOLD) -> VisitAssessment:
    total, raw, raw_max = compute_score(dto)
    concerns = dto.member_concerns
    flagged = (
        dto.rcfe_assessment.flag_for_review
        or concerns.urgency_level == "critical"
        or concerns.action_required
        or total < low_score_threshold
    )
    return VisitAssessment(
        total_score=total,
        raw_total=raw,
        raw_max=raw_max,
        flagged=flagged,
        urgency=compute_urgency(dto, total, low_score_threshold),
        flag_reasons=flag_reasons(dto, total, low_score_threshold) if flagged else [],
    )


def next_actions(dto: VisitSubmissionDTO, assessment: VisitAssessment) -> list[str]:
    actions: list[str] = []
    if assessment.flagged:
        actions += [NEXT_ACTION_SUPERVISORS, NEXT_ACTION_FOLLOW_UP]
    if dto.member_concerns.has_concerns:
        actions.append(NEXT_ACTION_CONCERNS)
    actions.append(NEXT_ACTION_SIGNOFF)
    return actions

from __future__ import annotations

from datetime import date
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# ───────────────────────────────────────────────
# Monthly questionnaire payload (camelCase on the wire)
# ───────────────────────────────────────────────

Rating = Annotated[int, Field(ge=1, le=5)] | None


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _rating(v: Any) -> Any:
    # the form posts 0 / "" for unanswered questions
    if v in (None, "", 0, "0"):
        return None
    return v


class MeetingLocationDTO(_CamelModel):
    location: str = ""
    other_location: str = ""
    notes: str = ""


class MemberWellbeingDTO(_CamelModel):
    physical_health: Rating = None
    mental_health: Rating = None
    social_engagement: Rating = None
    overall_mood: Rating = None
    notes: str = ""

    normalize_blank_ratings = field_validator(
        "physical_health", "mental_health", "social_engagement", "overall_mood", mode="before"
    )(_rating)


class CareSatisfactionDTO(_CamelModel):
    staff_attentiveness: Rating = None
    meal_quality: Rating = None
    cleanliness_of_room: Rating = None
    activities_programs: Rating = None
    overall_satisfaction: Rating = None
    notes: str = ""

    normalize_blank_ratings = field_validator(
        "staff_attentiveness",
        "meal_quality",
        "cleanliness_of_room",
        "activities_programs",
        "overall_satisfaction",
        mode="before",
    )(_rating)


class ConcernTypesDTO(_CamelModel):
    medical: bool = False
    staff: bool = False
    safety: bool = False
    food: bool = False
    social: bool = False
    financial: bool = False
    other: bool = False


class MemberConcernsDTO(_CamelModel):
    non_responsive: bool = False
    non_responsive_reason: str = ""
    non_responsive_details: str = ""
    has_concerns: bool = False
    concern_types: ConcernTypesDTO = Field(default_factory=ConcernTypesDTO)
    urgency_level: str = "low"
    detailed_concerns: str = ""
    action_required: bool = False

    @field_validator("urgency_level", mode="before")
    @classmethod
    def _lower(cls, v: Any) -> str:
        return str(v or "low").strip().lower()


class RcfeAssessmentDTO(_CamelModel):
    facility_condition: Rating = None
    staff_professionalism: Rating = None
    safety_compliance: Rating = None
    care_quality: Rating = None
    overall_rating: Rating = None
    notes: str = ""
    flag_for_review: bool = False

    normalize_blank_ratings = field_validator(
        "facility_condition",
        "staff_professionalism",
        "safety_compliance",
        "care_quality",
        "overall_rating",
        mode="before",
    )(_rating)


class GeolocationDTO(_CamelModel):
    latitude: float
    longitude: float
    accuracy: float | None = None


class VisitSubmissionDTO(_CamelModel):
    """
    Body of `POST /api/visits/`.

    Client-computed summaries (`visitSummary`) are ignored: score, flag and
    urgency are always derived server-side.
    """

    visit_id: str = Field(min_length=1, max_length=128)
    member_id: str = Field(min_length=1, max_length=64)
    visit_date: date
    member_name: str = ""
    social_worker_id: str = ""
    social_worker_email: str = ""
    social_worker_name: str = ""
    social_worker_uid: str = ""
    rcfe_id: str = ""
    rcfe_name: str = ""
    rcfe_address: str = ""
    meeting_location: MeetingLocationDTO = Field(default_factory=MeetingLocationDTO)
    member_wellbeing: MemberWellbeingDTO = Field(default_factory=MemberWellbeingDTO)
    care_satisfaction: CareSatisfactionDTO = Field(default_factory=CareSatisfactionDTO)
    member_concerns: MemberConcernsDTO = Field(default_factory=MemberConcernsDTO)
    rcfe_assessment: RcfeAssessmentDTO = Field(default_factory=RcfeAssessmentDTO)
    geolocation: GeolocationDTO | None = None

    @field_validator("visit_id", "member_id", mode="before")
    @classmethod
    def _strip_id(cls, v: Any) -> Any:
        return str(v).strip() if v is not None else v

    @field_validator("visit_date", mode="before")
    @classmethod
    def _date_only(cls, v: Any) -> Any:
        # timestamps are truncated to their calendar day
        if isinstance(v, str) and len(v) > 10:
            return v[:10]
        return v

    def questionnaire(self) -> dict[str, Any]:
        """Answer sections as stored on the visit row."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            include={
                "meeting_location",
                "member_wellbeing",
                "care_satisfaction",
                "member_concerns",
                "rcfe_assessment",
            },
        )


class VisitResultDTO(BaseModel):
    visit_id: str
    flagged: bool
    status: str
    total_score: int
    flag_reasons: list[str] = Field(default_factory=list)
    urgency: str
    claim_id: str
    claim_total: int = 0
    next_actions: list[str] = Field(default_factory=list)
    created: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "visitId": self.visit_id,
            "flagged": self.flagged,
            "status": self.status,
            "totalScore": self.total_score,
            "flagReasons": list(self.flag_reasons),
            "urgency": self.urgency,
            "claimId": self.claim_id,
            "claimTotal": self.claim_total,
            "nextActions": list(self.next_actions),
        }

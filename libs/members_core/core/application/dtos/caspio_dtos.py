from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ───────────────────────────────────────────────
# Caspio REST v2 payloads
# ───────────────────────────────────────────────

class CaspioTokenDTO(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int | None = None


class CaspioRecordsPageDTO(BaseModel):
    """`GET /rest/v2/tables/{table}/records` response."""
    Result: list[dict[str, Any]] = Field(default_factory=list)


class CaspioMemberRowDTO(BaseModel):
    """One row of the members table; unknown columns are kept in `extra`."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    client_id: str | None = Field(None, alias="Client_ID2")
    senior_first: str | None = Field(None, alias="Senior_First")
    senior_last: str | None = Field(None, alias="Senior_Last")
    social_worker_assigned: str | None = Field(None, alias="Social_Worker_Assigned")
    staff_assigned: str | None = Field(None, alias="Staff_Assigned")
    kaiser_user_assignment: str | None = Field(None, alias="Kaiser_User_Assignment")
    sw_id: str | None = Field(None, alias="SW_ID")
    calaim_status: str | None = Field(None, alias="CalAIM_Status")
    calaim_mco: str | None = Field(None, alias="CalAIM_MCO")
    hold_for_social_worker: str | None = Field(None, alias="Hold_For_Social_Worker")
    hold_for_social_worker_visit: str | None = Field(None, alias="Hold_For_Social_Worker_Visit")
    authorization_end_date: str | None = Field(None, alias="Authorization_End_Date_T2038")
    rcfe_registered_id: str | None = Field(None, alias="RCFE_Registered_ID")
    rcfe_name: str | None = Field(None, alias="RCFE_Name")
    rcfe_address: str | None = Field(None, alias="RCFE_Address")
    rcfe_city: str | None = Field(None, alias="RCFE_City")
    rcfe_zip: str | None = Field(None, alias="RCFE_Zip")
    rcfe_county: str | None = Field(None, alias="RCFE_County")
    rcfe_user_first: str | None = Field(None, alias="RCFE_Registered_User_First")
    rcfe_user_last: str | None = Field(None, alias="RCFE_Registered_User_Last")
    rcfe_user_email: str | None = Field(None, alias="RCFE_Registered_User_Email")
    member_county: str | None = Field(None, alias="Member_County")
    member_city: str | None = Field(None, alias="MemberCity")
    date_modified: str | None = Field(None, alias="Date_Modified")

    @field_validator("*", mode="before")
    @classmethod
    def _as_text(cls, v: Any) -> Any:
        # Caspio returns numeric ids/zips and Yes/No booleans as JSON scalars
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, float) and v.is_integer():
            return str(int(v))
        return str(v)

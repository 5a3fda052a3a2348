"""Pydantic models for the ``candidates`` table.

``embedding`` is write-only from the service's point of view: it is stored by
the enrichment pipeline and read exclusively by the ``search_candidates``
function, so it never appears on the read models below.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.enums import CandidateStatus


class WorkPreferences(BaseModel):
    """Work arrangement signals extracted from resume text."""
    remote_work: bool | None = None
    work_schedule: str | None = None
    travel_preference: str | None = None


class CandidateMetadata(BaseModel):
    """Structured facts derived from the resume (``candidates.metadata``)."""
    model_config = ConfigDict(extra="allow")

    years_of_experience: int | None = None
    skills_list: list[str] | None = None
    availability: str | None = None
    certifications: list[str] | None = None
    desired_salary: str | None = None
    preferred_industries: list[str] | None = None
    work_preferences: WorkPreferences | None = None
    metadata_extracted_at: datetime | None = None


class CandidateFields(BaseModel):
    """Editable columns shared by the create / update / read models."""
    persons_name: str | None = None
    email: EmailStr | None = None
    country: str | None = None
    region: str | None = None
    desired_rate: str | None = None
    content: str | None = None
    resume_text: str | None = None
    candidate_bio: str | None = None
    candidate_job_title: str | None = None
    job_applying_to: str | None = None
    job_roles: str | None = None
    industry: str | None = None
    english_accent: str | None = None
    resume_link: str | None = None
    linkedin_link: str | None = None
    voice_link: str | None = None
    video_link: str | None = None
    Skills_Technical: str | None = None
    Experience_Role: str | None = None
    Language_Proficiency: str | None = None
    Communication_Skills: str | None = None
    Industry_Background: str | None = None
    Location_Timezone: str | None = None
    Education_Certifications: str | None = None
    Work_Style: str | None = None


class CandidateCreate(CandidateFields):
    """Payload for the dashboard's create form."""
    persons_name: str = Field(min_length=1)
    candidate_status: CandidateStatus = CandidateStatus.available

    @field_validator("persons_name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("persons_name must not be blank")
        return value.strip()


class CandidateUpdate(CandidateFields):
    """Payload for the dashboard's edit form (partial update).

    Status, blacklist and hired are deliberately absent: those only change
    through the status transitions.
    """

    @field_validator("persons_name")
    @classmethod
    def _name_not_blank(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("persons_name must not be blank")
        return value


class Candidate(CandidateFields):
    """Full candidate record returned from the database."""
    model_config = ConfigDict(from_attributes=True)

    id: int | str
    talent_id: str | None = None
    email: str | None = None  # stored data is not re-validated on read
    everything_field: str | None = None
    metadata: CandidateMetadata | None = None
    candidate_status: CandidateStatus | None = None
    blacklist: bool = False
    hired: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_updated_by: str | None = None


class FilterOptions(BaseModel):
    """Distinct values offered by the dashboard filter panel."""
    countries: list[str] = []
    statuses: list[str] = []
    accents: list[str] = []
    industries: list[str] = []


def candidate_from_row(row: dict[str, Any]) -> Candidate:
    """Build a ``Candidate`` from a raw row, ignoring unknown columns."""
    known = {k: v for k, v in row.items() if k in Candidate.model_fields}
    return Candidate(**known)


class FlagUpdate(BaseModel):
    """Body of the hired / blacklist actions: ``{"value": true}``."""
    value: bool = True


class AvailabilityUpdate(BaseModel):
    """Body of the availability action: ``{"status": "Available"}``."""
    status: CandidateStatus

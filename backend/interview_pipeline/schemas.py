from __future__ import annotations

from datetime import date as date_type, datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .services.lifecycle import InterviewOutcome


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _date_only(value: Any) -> Any:
    # Deadlines are day-granular; accept a full ISO timestamp and keep its day.
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    return value


class CompanyRef(CamelModel):
    id: int
    name: str


class StageRef(CamelModel):
    id: int
    stage: str


class StageMethodRef(CamelModel):
    id: int
    method: str


class CompanyOut(CompanyRef):
    pass


class StageOut(StageRef):
    pass


class StageMethodOut(StageMethodRef):
    pass


class InterviewCreate(CamelModel):
    # Required fields are checked by the write path so the error names all that are missing.
    stage: Optional[str] = None
    company_name: Optional[str] = None
    client_company: Optional[str] = None
    job_title: Optional[str] = None
    job_posting_link: Optional[str] = None
    date: Optional[datetime] = None
    deadline: Optional[date_type] = None
    interviewer: Optional[str] = None
    location_type: Optional[Literal["phone", "link"]] = None
    interview_link: Optional[str] = None
    notes: Optional[str] = None
    previous_interview_id: Optional[int] = None

    @field_validator("deadline", mode="before")
    @classmethod
    def deadline_as_day(cls, value: Any) -> Any:
        return _date_only(value)


class InterviewUpdate(CamelModel):
    outcome: Optional[InterviewOutcome] = None
    notes: Optional[str] = None
    link: Optional[str] = None
    interviewer: Optional[str] = None
    date: Optional[datetime] = None
    deadline: Optional[date_type] = None
    metadata: Optional[Dict[str, Any]] = None
    job_posting_link: Optional[str] = None
    stage_id: Optional[int] = None
    stage_method_id: Optional[int] = None
    client_company: Optional[str] = None

    @field_validator("deadline", mode="before")
    @classmethod
    def deadline_as_day(cls, value: Any) -> Any:
        return _date_only(value)


class OutcomeUpdate(CamelModel):
    outcome: InterviewOutcome


class OutcomeOut(CamelModel):
    id: int
    outcome: InterviewOutcome


class InterviewOut(CamelModel):
    id: int
    job_title: str
    interviewer: Optional[str] = None
    company: CompanyRef
    client_company: Optional[str] = None
    stage: StageRef
    stage_method: Optional[StageMethodRef] = None
    application_date: datetime
    date: Optional[datetime] = None
    deadline: Optional[date_type] = None
    outcome: InterviewOutcome
    notes: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    link: Optional[str] = None


class OutcomeStat(CamelModel):
    outcome: InterviewOutcome
    label: str
    count: int


class CalendarSettingsOut(CamelModel):
    calendar_token: str
    calendar_url: str


class GuestInterview(CamelModel):
    id: str
    stage: str
    company_name: str
    client_company: Optional[str] = None
    job_title: str
    job_posting_link: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    interviewer: Optional[str] = None
    location_type: Optional[Literal["phone", "link"]] = None
    interview_link: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    hash: str


class GuestStorage(CamelModel):
    version: Literal[1] = 1
    interviews: List[GuestInterview] = Field(default_factory=list)


class InterviewViewBase(CamelModel):
    key: str
    company_name: str
    job_title: str
    stage: str
    date: Optional[datetime] = None
    deadline: Optional[date_type] = None
    interviewer: Optional[str] = None
    link: Optional[str] = None


class GuestInterviewView(InterviewViewBase):
    source: Literal["guest"] = "guest"


class ServerInterviewView(InterviewViewBase):
    source: Literal["server"] = "server"
    id: int
    outcome: InterviewOutcome


InterviewView = Annotated[
    Union[GuestInterviewView, ServerInterviewView], Field(discriminator="source")
]


class GuestSyncOut(CamelModel):
    created: List[InterviewView]
    remaining: List[InterviewView]
    error: Optional[str] = None

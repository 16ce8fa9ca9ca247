from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator
from datetime import datetime, timezone
from enum import Enum


class FunctionName(str, Enum):
    """Functions exposed to the realtime voice model"""
    GET_CURRENT_SESSIONS = "get_current_sessions"
    GET_UPCOMING_SESSIONS = "get_upcoming_sessions"
    SEARCH_BY_TOPIC = "search_sessions_by_topic"
    SEARCH_BY_SPEAKER = "search_sessions_by_speaker"
    GET_SESSION_DETAILS = "get_session_details"
    SEARCH_BY_TYPE = "search_sessions_by_type"
    GET_FULL_SCHEDULE = "get_full_schedule"
    SEARCH_GENERAL = "search_general"


class FunctionParameters(BaseModel):
    """Arguments of a function call, shared by every function"""
    model_config = ConfigDict(extra="ignore")

    topic: Optional[str] = None
    speaker_name: Optional[str] = None
    session_query: Optional[str] = None
    session_type: Optional[str] = None
    query: Optional[str] = None
    limit: Optional[int] = None
    day: Optional[str] = None

    def string_fields(self) -> Dict[str, str]:
        """Set string-valued arguments in declaration order"""
        return {
            key: value
            for key, value in self.model_dump(exclude_none=True).items()
            if isinstance(value, str)
        }

    def as_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class FunctionResult(BaseModel):
    """Outcome of a data-fetch function"""
    success: bool
    count: int = 0
    data: List[Dict[str, Any]] = Field(default_factory=list)
    message: Optional[str] = None
    error: Optional[str] = None


class SpeakerInfo(BaseModel):
    name: Optional[str] = None
    title: Optional[str] = None
    company: Optional[str] = None
    bio: Optional[str] = None


class ConferenceSession(BaseModel):
    """A scheduled conference session as held by the session repository"""
    id: str
    title: str
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    speaker: SpeakerInfo = Field(default_factory=SpeakerInfo)
    venue: Optional[str] = None
    session_type: Optional[str] = None
    topic: Optional[str] = None
    suitability_levels: List[str] = Field(default_factory=list)
    sponsor: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def is_sponsored(self) -> bool:
        return bool(self.sponsor)

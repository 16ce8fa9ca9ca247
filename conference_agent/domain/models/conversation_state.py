from typing import Dict, Any, List, Optional, Iterator
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime, timezone

from .function_call import FunctionName, FunctionParameters


HISTORY_LIMIT = 10
MAX_MENTIONED_SPEAKERS = 20
MAX_MENTIONED_SESSIONS = 15
MAX_RECENT_SEARCH_TERMS = 10


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderedEntitySet:
    """Insertion-ordered set of normalized entity strings with a size cap.

    Re-adding a member keeps its original position; when the cap is exceeded
    the oldest inserted members are dropped first.
    """

    def __init__(self, max_size: int):
        self.max_size = max_size
        self._items: List[str] = []
        self._index: set = set()

    def add(self, item: str):
        if item in self._index:
            return
        self._items.append(item)
        self._index.add(item)

    def evict_oldest(self) -> Optional[str]:
        """Drop and return the oldest member"""
        if not self._items:
            return None
        oldest = self._items.pop(0)
        self._index.discard(oldest)
        return oldest

    def enforce_cap(self) -> int:
        """Evict oldest members until at or under the cap, return how many were dropped"""
        dropped = 0
        while len(self._items) > self.max_size:
            self.evict_oldest()
            dropped += 1
        return dropped

    def most_recent(self) -> Optional[str]:
        return self._items[-1] if self._items else None

    def to_list(self) -> List[str]:
        return list(self._items)

    def __contains__(self, item: object) -> bool:
        return item in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"OrderedEntitySet(max_size={self.max_size}, items={self._items!r})"


class InteractionRecord(BaseModel):
    """One recorded function invocation"""
    timestamp: datetime = Field(default_factory=utcnow)
    function_name: str
    parameters: Dict[str, Any] = Field(default_factory=dict)
    result_count: int = 0
    user_query: Optional[str] = None
    success: bool = True


class LastQuery(BaseModel):
    """Most recent executed query kept for follow-up questions"""
    function_name: str
    parameters: FunctionParameters
    results: List[Dict[str, Any]] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utcnow)


class ConversationState(BaseModel):
    """Dialogue state for one call or text session"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    session_id: str
    created_at: datetime = Field(default_factory=utcnow)
    last_activity_at: datetime = Field(default_factory=utcnow)
    history: List[InteractionRecord] = Field(default_factory=list)
    last_query: Optional[LastQuery] = None
    last_results: List[Dict[str, Any]] = Field(default_factory=list)
    current_topic: Optional[str] = None
    mentioned_speakers: OrderedEntitySet = Field(
        default_factory=lambda: OrderedEntitySet(MAX_MENTIONED_SPEAKERS)
    )
    mentioned_sessions: OrderedEntitySet = Field(
        default_factory=lambda: OrderedEntitySet(MAX_MENTIONED_SESSIONS)
    )
    recent_search_terms: OrderedEntitySet = Field(
        default_factory=lambda: OrderedEntitySet(MAX_RECENT_SEARCH_TERMS)
    )
    user_preferences: Dict[str, Any] = Field(default_factory=dict)
    history_limit: int = HISTORY_LIMIT

    def touch(self, now: Optional[datetime] = None):
        """Refresh the activity timestamp, never moving it backwards"""
        now = now or utcnow()
        if now > self.last_activity_at:
            self.last_activity_at = now

    def add_interaction(self, record: InteractionRecord):
        """Append a record and keep only the most recent entries"""
        self.history.append(record)
        if len(self.history) > self.history_limit:
            self.history = self.history[-self.history_limit:]

    def update_topic(self, function_name: str, parameters: FunctionParameters):
        """Set the current topic from the operation that just ran"""
        if function_name == FunctionName.SEARCH_BY_TOPIC and parameters.topic:
            self.current_topic = parameters.topic.lower()
        elif function_name == FunctionName.SEARCH_BY_SPEAKER and parameters.speaker_name:
            self.current_topic = f"speaker: {parameters.speaker_name.lower()}"
        elif function_name == FunctionName.SEARCH_BY_TYPE and parameters.session_type:
            self.current_topic = f"type: {parameters.session_type.lower()}"
        elif function_name == FunctionName.GET_CURRENT_SESSIONS:
            self.current_topic = "current sessions"
        elif function_name == FunctionName.GET_UPCOMING_SESSIONS:
            self.current_topic = "upcoming sessions"

    def is_expired(self, timeout_seconds: float, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return (now - self.last_activity_at).total_seconds() > timeout_seconds


class SessionSnapshot(BaseModel):
    """Lightweight view of a tracked conversation for monitoring"""
    session_id: str
    created_at: datetime
    last_activity_at: datetime
    interaction_count: int
    current_topic: Optional[str] = None


class ConversationSummary(BaseModel):
    """Read-only projection of a conversation for analytics"""
    session_id: str
    duration_seconds: float = Field(description="Elapsed time since the conversation was created")
    interaction_count: int
    current_topic: Optional[str] = None
    mentioned_speakers: List[str] = Field(default_factory=list)
    mentioned_sessions: List[str] = Field(default_factory=list)
    last_activity_at: datetime
    suggestions: List[str] = Field(default_factory=list)

from typing import List, Optional
from datetime import datetime

from conference_agent.domain.models.conversation_state import (
    ConversationState,
    ConversationSummary,
    utcnow,
)


MAX_SUGGESTIONS = 3

FOLLOW_UP_SUGGESTIONS = [
    "Tell me about the second one",
    "Who's speaking at the last session?",
]
TOPIC_SUGGESTIONS = [
    "Find more sessions like this",
    "What else is happening at the same time?",
]


class SuggestionGenerator:
    """Derives follow-up prompts from a conversation state"""

    def __init__(self, max_suggestions: int = MAX_SUGGESTIONS):
        self.max_suggestions = max_suggestions

    def generate(self, state: Optional[ConversationState]) -> List[str]:
        if state is None:
            return []

        suggestions: List[str] = []

        if len(state.last_results) > 1:
            suggestions.extend(FOLLOW_UP_SUGGESTIONS)

        if state.current_topic:
            suggestions.extend(TOPIC_SUGGESTIONS)

        speaker = state.mentioned_speakers.most_recent()
        if speaker:
            suggestions.append(f"Tell me more about {speaker}")

        return suggestions[:self.max_suggestions]


def build_summary(
    state: ConversationState,
    suggestions: List[str],
    now: Optional[datetime] = None,
) -> ConversationSummary:
    """Project a conversation state into a read-only summary"""

    now = now or utcnow()
    return ConversationSummary(
        session_id=state.session_id,
        duration_seconds=(now - state.created_at).total_seconds(),
        interaction_count=len(state.history),
        current_topic=state.current_topic,
        mentioned_speakers=state.mentioned_speakers.to_list(),
        mentioned_sessions=state.mentioned_sessions.to_list(),
        last_activity_at=state.last_activity_at,
        suggestions=suggestions,
    )

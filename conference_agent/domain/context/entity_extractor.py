from typing import Dict, Any, List, Optional, Iterable

from conference_agent.domain.models.conversation_state import ConversationState
from conference_agent.domain.models.function_call import FunctionParameters


def row_title(row: Dict[str, Any]) -> Optional[str]:
    """Title of a result row, if it carries one"""
    title = row.get("title")
    return title if isinstance(title, str) and title else None


def row_speaker_name(row: Dict[str, Any]) -> Optional[str]:
    """Nested speaker.name of a result row, if it carries one"""
    speaker = row.get("speaker")
    if isinstance(speaker, dict):
        name = speaker.get("name")
        if isinstance(name, str) and name:
            return name
    return None


class EntityExtractor:
    """Remembers speakers, sessions and search terms seen in a conversation"""

    def extract(
        self,
        state: ConversationState,
        parameters: FunctionParameters,
        rows: Iterable[Dict[str, Any]],
    ) -> Dict[str, List[str]]:
        """Add entities from arguments and result rows to the state's capped sets"""

        added: Dict[str, List[str]] = {"speakers": [], "sessions": [], "search_terms": []}

        if parameters.speaker_name:
            speaker = parameters.speaker_name.lower()
            state.mentioned_speakers.add(speaker)
            state.recent_search_terms.add(speaker)
            added["speakers"].append(speaker)
            added["search_terms"].append(speaker)

        if parameters.topic:
            state.recent_search_terms.add(parameters.topic.lower())
            added["search_terms"].append(parameters.topic.lower())

        if parameters.query:
            state.recent_search_terms.add(parameters.query.lower())
            added["search_terms"].append(parameters.query.lower())

        for row in rows:
            speaker_name = row_speaker_name(row)
            if speaker_name:
                state.mentioned_speakers.add(speaker_name.lower())
                added["speakers"].append(speaker_name.lower())

            title = row_title(row)
            if title:
                state.mentioned_sessions.add(title.lower())
                added["sessions"].append(title.lower())

        state.mentioned_speakers.enforce_cap()
        state.mentioned_sessions.enforce_cap()
        state.recent_search_terms.enforce_cap()

        return added

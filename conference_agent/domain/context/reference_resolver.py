"""Rewrites follow-up references into concrete function arguments.

Three passes run in a fixed order, each one receiving the previous pass's output:

1. follow-up resolution: ordinal words ("the second one") against the last
   result set, and a missing speaker name taken from the last results
2. contextual terms: "that speaker", "the session", "same topic" replaced by
   the most recent entity of that kind
3. relative references: "similar", "related" or "like this" in the topic
   argument replaced by the current topic

All passes are pure: the conversation state is only read.
"""
from typing import Dict, Any, List, Optional, Tuple
import re

from conference_agent.domain.models.conversation_state import ConversationState
from conference_agent.domain.models.function_call import FunctionName, FunctionParameters
from .entity_extractor import row_title, row_speaker_name


LAST = -1

# Checked in order, first substring match wins
ORDINALS: List[Tuple[str, int]] = [
    ("first", 0),
    ("second", 1),
    ("third", 2),
    ("fourth", 3),
    ("fifth", 4),
    ("last", LAST),
    ("latest", LAST),
    ("newest", LAST),
    ("1st", 0),
    ("2nd", 1),
    ("3rd", 2),
    ("4th", 3),
    ("5th", 4),
]

SPEAKER_PHRASES = re.compile(r"that speaker|the speaker", re.IGNORECASE)
SESSION_PHRASES = re.compile(r"that session|the session", re.IGNORECASE)
TOPIC_PHRASES = re.compile(r"same topic|that topic", re.IGNORECASE)

RELATIVE_MARKERS = ("similar", "related", "like this")

SPEAKER_PREFIX = "speaker: "
TYPE_PREFIX = "type: "


def extract_ordinal_reference(text: str) -> Optional[int]:
    """Map the first ordinal word found in text to a zero-based index (-1 for last)"""
    lowered = text.lower()
    for word, index in ORDINALS:
        if word in lowered:
            return index
    return None


def get_result_by_ordinal(results: List[Dict[str, Any]], index: int) -> Optional[Dict[str, Any]]:
    if not results:
        return None
    if index == LAST:
        return results[-1]
    if 0 <= index < len(results):
        return results[index]
    return None


class ReferenceResolver:
    """Resolves ambiguous follow-up arguments against a conversation state"""

    def resolve(
        self,
        state: ConversationState,
        function_name: str,
        parameters: FunctionParameters,
    ) -> FunctionParameters:
        """Run the three passes and return new, resolved arguments"""

        resolved = self.resolve_follow_up(state, function_name, parameters)
        resolved = self.resolve_contextual_references(state, resolved)
        resolved = self.resolve_relative_references(state, resolved)
        return resolved

    def resolve_follow_up(
        self,
        state: ConversationState,
        function_name: str,
        parameters: FunctionParameters,
    ) -> FunctionParameters:
        if not state.last_results:
            return parameters

        if function_name == FunctionName.GET_SESSION_DETAILS:
            index = extract_ordinal_reference(parameters.session_query or "")
            if index is not None:
                target = get_result_by_ordinal(state.last_results, index)
                if target is not None:
                    replacement = row_title(target) or row_speaker_name(target)
                    if replacement:
                        return parameters.model_copy(update={"session_query": replacement})

        if function_name == FunctionName.SEARCH_BY_SPEAKER and not parameters.speaker_name:
            for row in state.last_results:
                speaker_name = row_speaker_name(row)
                if speaker_name:
                    return parameters.model_copy(update={"speaker_name": speaker_name})

        return parameters

    def resolve_contextual_references(
        self,
        state: ConversationState,
        parameters: FunctionParameters,
    ) -> FunctionParameters:
        updates = {}
        for key, value in parameters.string_fields().items():
            replaced = self.replace_contextual_terms(state, value)
            if replaced != value:
                updates[key] = replaced

        return parameters.model_copy(update=updates) if updates else parameters

    def replace_contextual_terms(self, state: ConversationState, text: str) -> str:
        """Substitute at most one category of referring phrase in text"""

        if SPEAKER_PHRASES.search(text):
            speaker = state.mentioned_speakers.most_recent()
            if speaker:
                return SPEAKER_PHRASES.sub(lambda _: speaker, text)

        if SESSION_PHRASES.search(text):
            session = state.mentioned_sessions.most_recent()
            if session:
                return SESSION_PHRASES.sub(lambda _: session, text)

        if TOPIC_PHRASES.search(text):
            topic = state.current_topic
            if topic and not topic.startswith("speaker:"):
                topic = topic.replace(TYPE_PREFIX, "", 1)
                return TOPIC_PHRASES.sub(lambda _: topic, text)

        return text

    def resolve_relative_references(
        self,
        state: ConversationState,
        parameters: FunctionParameters,
    ) -> FunctionParameters:
        topic = parameters.topic
        if not topic or not state.current_topic:
            return parameters

        if any(marker in topic for marker in RELATIVE_MARKERS):
            current = state.current_topic.replace(SPEAKER_PREFIX, "", 1).replace(TYPE_PREFIX, "", 1)
            return parameters.model_copy(update={"topic": current})

        return parameters

from .function_call import (
    FunctionName,
    FunctionParameters,
    FunctionResult,
    SpeakerInfo,
    ConferenceSession,
)
from .conversation_state import (
    OrderedEntitySet,
    InteractionRecord,
    LastQuery,
    ConversationState,
    SessionSnapshot,
    ConversationSummary,
)

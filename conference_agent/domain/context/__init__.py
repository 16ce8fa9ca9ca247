# This module handles conversational context for follow-up questions

# +---------------------------+
# |   ConversationState       |   (Per call, in memory, expires when idle)
# |---------------------------|
# | Last query + results      |
# | Mentioned speakers        |
# | Mentioned sessions        |
# | Recent search terms       |
# | Current topic             |
# +---------------------------+
#          |
#          v
# +---------------------------+
# |   ReferenceResolver       |   (Pure, read-only)
# |---------------------------|
# | "the first one"  -> title |
# | "that speaker"   -> name  |
# | "similar"        -> topic |
# +---------------------------+
#          |
#          v
#   [function executor] -> record_interaction -> state

from .context_manager import ConversationContextManager
from .entity_extractor import EntityExtractor
from .reference_resolver import ReferenceResolver
from .suggestions import SuggestionGenerator, build_summary

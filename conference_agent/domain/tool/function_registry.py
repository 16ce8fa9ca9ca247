from typing import Dict, List, Any

from conference_agent.domain.models.function_call import FunctionName


SESSION_TYPES = ["talk", "demo", "demo stage", "solution swap", "workshop", "panel"]


class FunctionRegistry:
    """Function definitions offered to the realtime voice model"""

    def __init__(self):
        self.functions: Dict[str, Dict[str, Any]] = {}
        self._initialize_conference_functions()

    def _initialize_conference_functions(self):
        conference_functions = [
            {
                "name": FunctionName.GET_CURRENT_SESSIONS.value,
                "description": "Get sessions that are currently running or active at the conference",
                "parameters": {"type": "object", "properties": {}, "required": []}
            },
            {
                "name": FunctionName.GET_UPCOMING_SESSIONS.value,
                "description": "Get upcoming sessions at the conference",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "limit": {
                            "type": "integer",
                            "description": "Maximum number of sessions to return",
                            "default": 5
                        }
                    },
                    "required": []
                }
            },
            {
                "name": FunctionName.SEARCH_BY_TOPIC.value,
                "description": "Search for sessions related to a specific topic or keyword",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "topic": {
                            "type": "string",
                            "description": "Topic or keyword to search for (e.g., 'AI', 'leadership', 'management')"
                        }
                    },
                    "required": ["topic"]
                }
            },
            {
                "name": FunctionName.SEARCH_BY_SPEAKER.value,
                "description": "Find sessions by a specific speaker",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "speaker_name": {"type": "string", "description": "Name of the speaker to search for"}
                    },
                    "required": ["speaker_name"]
                }
            },
            {
                "name": FunctionName.GET_SESSION_DETAILS.value,
                "description": "Get detailed information about a specific session",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "session_query": {
                            "type": "string",
                            "description": "Session title, speaker name, or other identifying information"
                        }
                    },
                    "required": ["session_query"]
                }
            },
            {
                "name": FunctionName.SEARCH_BY_TYPE.value,
                "description": "Find sessions of a specific type (talk, demo, workshop, etc.)",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "session_type": {
                            "type": "string",
                            "enum": SESSION_TYPES,
                            "description": "Type of session to search for"
                        }
                    },
                    "required": ["session_type"]
                }
            },
            {
                "name": FunctionName.GET_FULL_SCHEDULE.value,
                "description": "Get the complete conference schedule or schedule overview",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "day": {
                            "type": "string",
                            "enum": ["today", "tomorrow", "all"],
                            "description": "Which day's schedule to retrieve",
                            "default": "all"
                        }
                    },
                    "required": []
                }
            },
            {
                "name": FunctionName.SEARCH_GENERAL.value,
                "description": "General search across all conference data when the intent is unclear",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "query": {
                            "type": "string",
                            "description": "Search term or phrase to look for across sessions, speakers, and descriptions"
                        }
                    },
                    "required": ["query"]
                }
            }
        ]

        for function in conference_functions:
            self.register_function(function)

    def register_function(self, definition: Dict[str, Any]):
        self.functions[definition["name"]] = definition

    def get_function_definitions(self) -> List[Dict[str, Any]]:
        """Definitions in the realtime session tool format"""

        return [{"type": "function", **definition} for definition in self.functions.values()]

    def required_parameters(self, name: str) -> List[str]:
        info = self.functions.get(name)
        if not info:
            return []
        return list(info["parameters"].get("required", []))

    def is_registered(self, name: str) -> bool:
        return name in self.functions

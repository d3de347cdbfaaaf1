"""Tool schemas and prompts for structured extraction calls."""

from typing import Any

PROCESS_MEMORY_PROMPT = """You are a memory processing AI. Analyze the given memory and return a JSON object with these fields:
- summary: A concise 1-2 sentence summary
- keywords: An array of 3-7 relevant keywords
- tags: An array of 2-5 category tags (e.g., "work", "personal", "idea", "learning", "goal")
- importance: A score from 1-10 (10 = critical life info, 1 = trivial)
- aiInsight: A brief insight or connection (1 sentence)

Return ONLY valid JSON, no markdown or explanation."""  # noqa: E501

REVIEW_MEMORIES_PROMPT = (
    "You are a memory review AI. Analyze the user's memories and for each one, provide an updated "
    "importance score and a brief review insight. Focus on detecting outdated content, suggesting "
    "improvements, and identifying connections between memories. Return a JSON object with a "
    '"reviews" array of objects with fields: id (string), newImportance (integer 1-10), '
    "reviewInsight (string, 1 sentence)."
)


def _function_tool(name: str, description: str, parameters: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": parameters,
        },
    }


PROCESS_MEMORY_TOOL = _function_tool(
    "process_memory",
    "Process and analyze a memory",
    {
        "type": "object",
        "properties": {
            "summary": {"type": "string"},
            "keywords": {"type": "array", "items": {"type": "string"}, "minItems": 3, "maxItems": 7},
            "tags": {"type": "array", "items": {"type": "string"}, "minItems": 2, "maxItems": 5},
            "importance": {"type": "integer", "minimum": 1, "maximum": 10},
            "aiInsight": {"type": "string"},
        },
        "required": ["summary", "keywords", "tags", "importance", "aiInsight"],
        "additionalProperties": False,
    },
)

REVIEW_MEMORIES_TOOL = _function_tool(
    "review_memories",
    "Review and score memories",
    {
        "type": "object",
        "properties": {
            "reviews": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "string"},
                        "newImportance": {"type": "integer", "minimum": 1, "maximum": 10},
                        "reviewInsight": {"type": "string"},
                    },
                    "required": ["id", "newImportance", "reviewInsight"],
                    "additionalProperties": False,
                },
            },
        },
        "required": ["reviews"],
        "additionalProperties": False,
    },
)


def tool_name(tool: dict[str, Any]) -> str:
    return tool["function"]["name"]

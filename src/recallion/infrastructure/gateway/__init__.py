from .client import HttpModelGateway, error_for_status
from .parsing import parse_structured
from .schemas import PROCESS_MEMORY_TOOL, REVIEW_MEMORIES_TOOL

__all__ = [
    "PROCESS_MEMORY_TOOL",
    "REVIEW_MEMORIES_TOOL",
    "HttpModelGateway",
    "error_for_status",
    "parse_structured",
]

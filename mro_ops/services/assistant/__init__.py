"""Operations assistant: operational snapshot plus chat completion."""

from .chat import AssistantService
from .context import OperationalContextService, format_context_for_prompt

__all__ = [
    "AssistantService",
    "OperationalContextService",
    "format_context_for_prompt",
]

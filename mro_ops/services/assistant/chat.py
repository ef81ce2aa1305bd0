"""Conversational operations assistant."""

from datetime import date
from typing import Dict, List, Optional

from mro_ops.core.config import settings
from mro_ops.core.llm_client import ChatCompletionClient, create_llm_client_from_settings
from mro_ops.prompts.system_prompts import ASSISTANT_ERROR_TEMPLATE, ASSISTANT_SYSTEM_PROMPT
from mro_ops.services.assistant.context import OperationalContextService, format_context_for_prompt
from mro_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)


class AssistantService:
    """Answers one user message against the current operational snapshot.

    Each call is a single request/response; no conversation history is kept.
    """

    def __init__(
        self,
        context_service: Optional[OperationalContextService] = None,
        llm_client: Optional[ChatCompletionClient] = None,
    ):
        self.context_service = context_service or OperationalContextService()
        self._llm_client = llm_client

    @property
    def llm_client(self) -> ChatCompletionClient:
        if self._llm_client is None:
            self._llm_client = create_llm_client_from_settings()
        return self._llm_client

    def build_messages(self, message: str, context_text: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": ASSISTANT_SYSTEM_PROMPT},
            {"role": "system", "content": context_text},
            {"role": "user", "content": message},
        ]

    async def answer(self, message: str, current_date: Optional[date] = None) -> str:
        """Return the model's answer verbatim, or an apology embedding the error."""
        current_date = current_date or date.today()
        try:
            context = await self.context_service.gather(current_date)
            messages = self.build_messages(message, format_context_for_prompt(context))
            answer = await self.llm_client.complete(
                messages,
                max_tokens=settings.llm.chat_max_tokens,
            )
            LOGGER.info(
                "Assistant answered",
                extra={"current_date": current_date.isoformat(), "answer_length": len(answer)}
            )
            return answer
        except Exception as e:
            LOGGER.error(f"Assistant request failed: {e}", exc_info=True)
            return ASSISTANT_ERROR_TEMPLATE.format(error=str(e))

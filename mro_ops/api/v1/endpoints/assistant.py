"""Operations assistant routes."""

from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request

from mro_ops.schemas.assistant import ChatRequest, ChatResponse
from mro_ops.schemas.responses import ApiResponse
from mro_ops.services.assistant.chat import AssistantService
from mro_ops.services.assistant.context import OperationalContextService, format_context_for_prompt
from mro_ops.utils.logging import get_logger
from mro_ops.utils.responses import create_api_response

LOGGER = get_logger(__name__)

router = APIRouter()


async def get_context_service() -> OperationalContextService:
    return OperationalContextService()


async def get_assistant_service(
    context_service: Annotated[OperationalContextService, Depends(get_context_service)]
) -> AssistantService:
    return AssistantService(context_service=context_service)


@router.post(
    "/chat",
    response_model=ApiResponse,
    summary="Ask the operations assistant",
    operation_id="assistant_chat",
)
async def chat(
    body: ChatRequest,
    request: Request,
    assistant_service: Annotated[AssistantService, Depends(get_assistant_service)],
):
    """Answer one question against the operational snapshot for ``current_date``.

    Model failures are returned as an apology message rather than an HTTP error.
    """
    current_date = body.current_date or date.today()
    answer = await assistant_service.answer(body.message, current_date)
    return create_api_response(
        data=ChatResponse(answer=answer, current_date=current_date),
        message="Assistant response generated",
        request=request,
    )


@router.get(
    "/context",
    response_model=ApiResponse,
    summary="Get the operational snapshot",
    operation_id="get_operational_context",
)
async def get_context(
    request: Request,
    context_service: Annotated[OperationalContextService, Depends(get_context_service)],
    current_date: Optional[date] = Query(default=None, description="Snapshot date, defaults to today"),
):
    context = await context_service.gather(current_date or date.today())
    return create_api_response(
        data={
            "context": context.model_dump(mode="json"),
            "text": format_context_for_prompt(context),
        },
        message="Operational context gathered",
        request=request,
    )

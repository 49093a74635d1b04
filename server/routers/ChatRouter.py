from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from server.models.requests import ChatRequest
from server.models.responses import ChatResponse
from shared.clients.errors import get_status_code

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(request: Request, body: ChatRequest):
    """Answer a visitor message with the configured chat backend.

    Public endpoint used by the chat widget.

    Args:
        request (Request): FastAPI request (provides app.state.chat_service).
        body (ChatRequest): The message and the prior conversation turns.

    Returns:
        ChatResponse: {success, response} or {success: false, error_kind, message}.
    """
    chat_service = request.app.state.chat_service
    result = await chat_service.handle_chat(body.message, [turn.model_dump() for turn in body.conversation])
    if result.success:
        return ChatResponse(success=True, response=result.reply)

    status_code = get_status_code(result.error_kind)
    payload = ChatResponse(success=False, error_kind=result.error_kind, message=result.message)
    return JSONResponse(status_code=status_code, content=payload.model_dump(exclude_none=True))

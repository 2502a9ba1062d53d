from fastapi import Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from app.core.logging import get_logger
from app.llm.streaming import relay_upstream
from app.models.request import ChatRequest
from app.models.response import ErrorResponse
from app.services.chat_service import ChatService, NoUserMessageError

logger = get_logger(__name__)

STREAM_HEADERS = {
    "cache-control": "no-cache",
    "connection": "keep-alive",
}


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


async def handle_chat(request: Request, chat_service: ChatService) -> Response:
    """POST /api/chat: stream the model's answer to a conversation."""
    try:
        body = await request.json()
        if not isinstance(body, dict):
            # no "messages" to read, same as an empty conversation
            body = {}
        chat_request = ChatRequest.model_validate(body)
        upstream = await chat_service.open_stream(chat_request)
    except NoUserMessageError as e:
        logger.warning(f"Rejected chat request: {e}")
        return error_response(400, str(e))
    except Exception as e:
        logger.error(f"Error processing chat request: {e}")
        return error_response(500, "Failed to process request")

    if upstream is None:
        return error_response(500, "No response received from AI model")

    if chat_service.translate_stream:
        return StreamingResponse(
            relay_upstream(upstream, translate=True, field=chat_service.config.STREAM_PAYLOAD_FIELD),
            media_type="text/plain",
            headers=STREAM_HEADERS,
        )

    return StreamingResponse(
        relay_upstream(upstream, translate=False),
        status_code=upstream.status_code,
        media_type=upstream.headers.get("content-type"),
        headers=STREAM_HEADERS,
    )

"""Chatbot endpoint proxying user text to Dialogflow."""

import asyncio
import logging
import uuid
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..dependencies import get_nlu_state
from ..exceptions import ClientUninitialized, ValidationError
from ..nlu import NLUClientState
from ..utils import error_response, log_stage, now_iso

logger = logging.getLogger(__name__)
router = APIRouter()

MESSAGE_REQUIRED = "'message' is required."
MESSAGE_NOT_STRING = "'message' must be a string."


def validate_chat_payload(payload: Any) -> str:
    """Return the message text or raise ValidationError.

    Missing, null, empty and whitespace-only messages are all "required"
    errors; any other non-string value is a type error.
    """
    message = payload.get("message") if isinstance(payload, dict) else None

    if message is None:
        log_stage("VALIDATION_ERROR", "Message is undefined or null", level=logging.WARNING)
        raise ValidationError(MESSAGE_REQUIRED)

    if not isinstance(message, str):
        log_stage("VALIDATION_ERROR", f"Invalid message type: {type(message).__name__}", level=logging.WARNING)
        raise ValidationError(MESSAGE_NOT_STRING)

    if not message.strip():
        log_stage("VALIDATION_ERROR", "Message is empty", level=logging.WARNING)
        raise ValidationError(MESSAGE_REQUIRED)

    return message


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        return None


@router.post("/chatbot")
async def chatbot_handler(request: Request, state: NLUClientState = Depends(get_nlu_state)) -> JSONResponse:
    """Forward a message to Dialogflow and return its fulfillment text."""
    try:
        client = state.require_handle()
    except ClientUninitialized as e:
        log_stage("REQUEST_ERROR", e.message, level=logging.ERROR)
        return error_response(e.http_status, e.message)

    try:
        message = validate_chat_payload(await _read_json(request))
    except ValidationError as e:
        return error_response(e.http_status, e.message, with_timestamp=False)

    # fresh session per request, no multi-turn memory
    session_id = str(uuid.uuid4())

    try:
        log_stage("PROCESSING_REQUEST", {
            "sessionId": session_id,
            "sessionPath": client.session_path(session_id),
            "messageLength": len(message),
        })
        result = await asyncio.to_thread(client.detect_intent, session_id, message)
    except Exception as e:
        log_stage("REQUEST_ERROR", {
            "error_type": type(e).__name__,
            "error": str(e),
        }, level=logging.ERROR)
        return error_response(500, "Failed to process request", details=str(e))

    reply = result.fulfillment_text if result is not None else ""
    log_stage("RESPONSE_RECEIVED", {
        "hasResponse": result is not None,
        "hasText": bool(reply),
    })

    return JSONResponse(status_code=200, content={
        "reply": reply,
        "timestamp": now_iso(),
    })

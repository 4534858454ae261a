import json
import logging
import uuid
from datetime import datetime, timezone

import pydantic
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from chat_relay.api.schemas import ChatRequest, ChatResponse, HealthResponse
from chat_relay.core import state
from chat_relay.core.errors import RelayError, ValidationError
from chat_relay.core.metrics import metrics

router = APIRouter()
logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Demasiadas solicitudes, intenta más tarde."


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok", time=now_iso())


@router.get("/metrics")
def metrics_endpoint():
    return metrics.snapshot()


@router.post("/api/chat", response_model=ChatResponse)
@router.post("/chat", response_model=ChatResponse, include_in_schema=False)
async def chat(request: Request):
    request_id = _request_id(request)
    client_key = request.client.host if request.client else "anonymous"
    if not state.rate_limiter.allow(client_key):
        metrics.inc("chat_rate_limited_total")
        return _error_response(429, {"code": "rate_limited", "message": RATE_LIMIT_MESSAGE}, request_id)

    try:
        payload = await _parse_body(request)
        result = await state.orchestrator.handle(payload.message, payload.user_id, payload.model)
    except RelayError as exc:
        if exc.status_code >= 500:
            logger.warning("chat failed request_id=%s code=%s status=%s", request_id, exc.code, exc.status_code)
        return _error_response(exc.status_code, exc.to_payload(), request_id)
    except Exception:
        logger.exception("chat processing failed request_id=%s", request_id)
        return _error_response(500, {"code": "internal_error", "message": "Error interno del servidor"}, request_id)

    logger.info("chat replied request_id=%s source=%s score=%s", request_id, result.source, result.score)
    body = ChatResponse(reply=result.reply)
    return JSONResponse(content=body.model_dump(), headers={"x-request-id": request_id})


async def _parse_body(request: Request) -> ChatRequest:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationError("El cuerpo de la solicitud debe ser JSON válido") from exc
    if not isinstance(body, dict):
        raise ValidationError("El cuerpo de la solicitud debe ser un objeto JSON")
    try:
        return ChatRequest.model_validate(body)
    except pydantic.ValidationError as exc:
        raise ValidationError("Mensaje inválido o demasiado largo") from exc


def _request_id(request: Request) -> str:
    request_id = request.headers.get("x-request-id")
    if request_id and request_id.strip():
        return request_id.strip()[:64]
    return f"req_{uuid.uuid4().hex}"


def _error_response(status_code: int, error: dict, request_id: str) -> JSONResponse:
    payload = {"error": error, "request_id": request_id}
    return JSONResponse(status_code=status_code, content=payload, headers={"x-request-id": request_id})

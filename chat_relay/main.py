import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from chat_relay.api.routes import router as api_router
from chat_relay.core.settings import SETTINGS
from chat_relay.core.state import sweeper

logging.basicConfig(level=SETTINGS.log_level, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    await sweeper.start()
    logger.info(
        "chat relay ready upstream=%s default_model=%s allowed_models=%s timeout_ms=%s session_ttl_sec=%s",
        SETTINGS.upstream_url,
        SETTINGS.default_model,
        ",".join(SETTINGS.allowed_models),
        SETTINGS.upstream_timeout_ms,
        SETTINGS.session_ttl_sec,
    )
    try:
        yield
    finally:
        await sweeper.stop()


app = FastAPI(title="chat-relay", version="v1", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=SETTINGS.frontend_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
    expose_headers=["x-request-id"],
)


@app.middleware("http")
async def _security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


app.include_router(api_router)

import asyncio
import logging
import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .config import API_BASE_PATH, CORS_METHODS, CORS_ORIGINS, ENABLE_REQUEST_LOGGING
from .nlu import NLUClientState, run_startup_initialization
from .payments import StripePaymentProcessor
from .request_logger import log_request, tag_for_path
from .routers import chatbot, health, payment

logger = logging.getLogger(__name__)

app = FastAPI(title="Chat & Payment Gateway", version="1.0.0")

# Written once by the startup initializer, read by every chat request
app.state.nlu_state = NLUClientState()
app.state.payment_processor = StripePaymentProcessor()

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=CORS_METHODS,
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests for debugging when ENABLE_REQUEST_LOGGING is set."""
    started = time.perf_counter()
    response = await call_next(request)

    if ENABLE_REQUEST_LOGGING:
        path = str(request.url.path)
        try:
            await log_request(request, response, tag_for_path(path), (time.perf_counter() - started) * 1000)
        except Exception as e:
            logger.error(f"Failed to log request {path}: {e}")

    return response


app.include_router(chatbot.router, prefix=API_BASE_PATH)
app.include_router(payment.router, prefix=API_BASE_PATH)
app.include_router(health.router)


@app.on_event("startup")
async def _start_nlu_initialization() -> None:
    """Build the Dialogflow client in the background; requests see "not initialized" until it is ready."""
    app.state.nlu_init_task = asyncio.create_task(run_startup_initialization(app.state.nlu_state))

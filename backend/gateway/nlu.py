"""
NLU backends and the chatbot client lifecycle.

The chatbot endpoint talks to the NLU service through the narrow
``NLUBackend`` interface so the Dialogflow SDK can be swapped or mocked.
The client is built once at startup by ``initialize_nlu_client`` and kept in
an ``NLUClientState`` that request handlers receive by dependency injection.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional

from google.api_core.exceptions import GoogleAPIError
from google.cloud import dialogflow
from google.oauth2 import service_account

from .config import (
    DIALOGFLOW_LANGUAGE_CODE, NLU_INIT_MAX_ATTEMPTS, NLU_INIT_RETRY_DELAY_SECONDS,
    NLU_REQUEST_TIMEOUT_SECONDS,
)
from .credentials import ChatbotSettings, load_chatbot_settings
from .exceptions import ClientUninitialized, UpstreamError
from .retry import fixed_delay, retry_with_backoff
from .utils import log_stage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectIntentResult:
    fulfillment_text: str
    intent_name: Optional[str] = None
    confidence: Optional[float] = None


class NLUBackend(ABC):
    """Abstract base class for NLU backends."""

    @property
    @abstractmethod
    def account_id(self) -> str:
        """Project/account the sessions belong to."""
        pass

    @abstractmethod
    def session_path(self, session_id: str) -> str:
        """Backend-specific session identifier for ``session_id``."""
        pass

    @abstractmethod
    def detect_intent(self, session_id: str, text: str) -> DetectIntentResult:
        """Send free text to the backend and return its reply."""
        pass


class DialogflowBackend(NLUBackend):
    """Dialogflow ES implementation backed by a SessionsClient."""

    def __init__(
        self,
        client: Any,
        project_id: str,
        language_code: str = DIALOGFLOW_LANGUAGE_CODE,
        timeout: Optional[float] = NLU_REQUEST_TIMEOUT_SECONDS,
    ):
        self.client = client
        self.project_id = project_id
        self.language_code = language_code
        self.timeout = timeout

    @property
    def account_id(self) -> str:
        return self.project_id

    def session_path(self, session_id: str) -> str:
        return self.client.session_path(self.project_id, session_id)

    def detect_intent(self, session_id: str, text: str) -> DetectIntentResult:
        text_input = dialogflow.TextInput(text=text, language_code=self.language_code)
        query_input = dialogflow.QueryInput(text=text_input)

        try:
            response = self.client.detect_intent(
                request={"session": self.session_path(session_id), "query_input": query_input},
                timeout=self.timeout,
            )
        except GoogleAPIError as e:
            raise UpstreamError(str(e)) from e

        result = response.query_result
        intent = getattr(result, "intent", None)
        return DetectIntentResult(
            fulfillment_text=result.fulfillment_text,
            intent_name=getattr(intent, "display_name", None) or None,
            confidence=getattr(result, "intent_detection_confidence", None),
        )


def build_dialogflow_backend(settings: ChatbotSettings) -> DialogflowBackend:
    """Create a Dialogflow client bound to the validated service account."""
    credentials = service_account.Credentials.from_service_account_info(
        settings.credentials.as_service_account_info(settings.project_id)
    )
    client = dialogflow.SessionsClient(credentials=credentials)
    log_stage("CLIENT_CREATION", "Successfully created Dialogflow client")
    return DialogflowBackend(client, settings.project_id)


class ClientStatus(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class NLUClientState:
    """Process-wide chatbot client state.

    Written once by the initializer, read by every chat request. ``FAILED``
    is terminal for the lifetime of the state object.
    """

    def __init__(self):
        self.status = ClientStatus.UNINITIALIZED
        self.handle: Optional[NLUBackend] = None
        self.last_error: Optional[BaseException] = None
        self.attempts = 0

    @property
    def ready(self) -> bool:
        return self.status is ClientStatus.READY and self.handle is not None

    def _ensure_not_final(self) -> None:
        if self.status in (ClientStatus.READY, ClientStatus.FAILED):
            raise RuntimeError(f"NLU client state is final ({self.status.value})")

    def mark_initializing(self) -> None:
        self._ensure_not_final()
        self.status = ClientStatus.INITIALIZING

    def mark_ready(self, handle: NLUBackend) -> None:
        self._ensure_not_final()
        self.handle = handle
        self.last_error = None
        self.status = ClientStatus.READY

    def mark_failed(self, error: BaseException) -> None:
        self._ensure_not_final()
        self.handle = None
        self.last_error = error
        self.status = ClientStatus.FAILED

    def require_handle(self) -> NLUBackend:
        if not self.ready:
            raise ClientUninitialized("Dialogflow client not initialized")
        return self.handle

    def describe(self) -> dict:
        return {
            "status": self.status.value,
            "attempts": self.attempts,
            "error": str(self.last_error) if self.last_error else None,
        }


async def initialize_nlu_client(
    state: NLUClientState,
    env: Optional[Mapping[str, Optional[str]]] = None,
    *,
    factory: Callable[[ChatbotSettings], NLUBackend] = build_dialogflow_backend,
    max_attempts: int = NLU_INIT_MAX_ATTEMPTS,
    delay_seconds: float = NLU_INIT_RETRY_DELAY_SECONDS,
    sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
) -> NLUClientState:
    """Validate configuration and build the NLU client, retrying on failure.

    On success the state becomes READY. After ``max_attempts`` failures the
    state becomes FAILED and the last error is raised.
    """
    state.mark_initializing()

    def _attempt() -> NLUBackend:
        state.attempts += 1
        try:
            settings = load_chatbot_settings(env)
            return factory(settings)
        except Exception as e:
            log_stage("INITIALIZATION_ERROR", {
                "error_type": type(e).__name__,
                "error_message": str(e),
            }, level=logging.ERROR)
            raise

    def _on_retry(attempt: int, error: BaseException) -> None:
        log_stage("INIT_RETRY", {
            "attempt": attempt,
            "max_attempts": max_attempts,
            "error": str(error),
        }, level=logging.WARNING)
        if attempt >= max_attempts:
            log_stage("INIT_FAILED", "Max retry attempts reached. Initialization failed.", level=logging.ERROR)

    retry_kwargs = {"on_retry": _on_retry}
    if sleep is not None:
        retry_kwargs["sleep"] = sleep

    try:
        handle = await retry_with_backoff(_attempt, max_attempts, fixed_delay(delay_seconds), **retry_kwargs)
    except Exception as e:
        state.mark_failed(e)
        raise

    state.mark_ready(handle)
    log_stage("INIT_SUCCESS", "Dialogflow client initialized successfully")
    return state


async def run_startup_initialization(state: NLUClientState, **kwargs: Any) -> None:
    """Startup wrapper: never lets initialization failures reach the server."""
    try:
        await initialize_nlu_client(state, **kwargs)
    except Exception as e:
        log_stage("FATAL_ERROR", {
            "message": "Failed to initialize Dialogflow client after multiple attempts",
            "error": str(e),
        }, level=logging.CRITICAL)

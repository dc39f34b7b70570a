"""Service-account credential loading and validation for Dialogflow."""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .config import CHATBOT_REQUIRED_VARIABLES, GOOGLE_TOKEN_URI
from .exceptions import ConfigurationError, InvalidCredentialFormat
from .utils import log_stage

logger = logging.getLogger(__name__)

PEM_PRIVATE_KEY_MARKER = "BEGIN PRIVATE KEY"


@dataclass(frozen=True)
class ServiceCredentials:
    identity: str
    key_material: str

    def as_service_account_info(self, project_id: str) -> Dict[str, Any]:
        """Mapping accepted by google.oauth2.service_account.Credentials."""
        return {
            "type": "service_account",
            "project_id": project_id,
            "client_email": self.identity,
            "private_key": self.key_material,
            "token_uri": GOOGLE_TOKEN_URI,
        }

    def __repr__(self) -> str:
        # keep key material out of logs and tracebacks
        return f"ServiceCredentials(identity={self.identity!r}, key_material=<redacted>)"


@dataclass(frozen=True)
class ChatbotSettings:
    project_id: str
    credentials: ServiceCredentials


def validate_environment(env: Optional[Mapping[str, Optional[str]]] = None) -> Dict[str, str]:
    """Return the required chatbot variables or fail naming every missing one."""
    if env is None:
        env = os.environ
    values = {name: env.get(name) for name in CHATBOT_REQUIRED_VARIABLES}
    missing = [name for name, value in values.items() if not value]

    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}. "
            "Please ensure all required variables are set in your .env file",
            missing=missing,
        )

    return {name: str(value) for name, value in values.items()}


def normalize_private_key(raw: str) -> str:
    """Turn literal ``\\n`` sequences (as stored in .env files) into newlines."""
    return raw.replace("\\n", "\n")


def validate_credentials(identity: str, key_material: str) -> ServiceCredentials:
    credentials = ServiceCredentials(
        identity=identity,
        key_material=normalize_private_key(key_material),
    )

    if "@" not in credentials.identity:
        raise InvalidCredentialFormat("Invalid client email format")

    if PEM_PRIVATE_KEY_MARKER not in credentials.key_material:
        raise InvalidCredentialFormat("Invalid private key format")

    return credentials


def load_chatbot_settings(env: Optional[Mapping[str, Optional[str]]] = None) -> ChatbotSettings:
    """Validate configuration and assemble the Dialogflow settings.

    Raises ConfigurationError (or its InvalidCredentialFormat subclass).
    """
    values = validate_environment(env)

    log_stage("ENV_VARS_STATUS", {
        "project_id_length": len(values["PROJECT_ID"]),
        "client_email_length": len(values["GOOGLE_CLIENT_EMAIL"]),
        "private_key_exists": bool(values["GOOGLE_PRIVATE_KEY"]),
    })

    credentials = validate_credentials(values["GOOGLE_CLIENT_EMAIL"], values["GOOGLE_PRIVATE_KEY"])
    log_stage("CREDENTIALS_VALIDATION", "Credentials format validated successfully")

    return ChatbotSettings(project_id=values["PROJECT_ID"], credentials=credentials)

"""Entry point for the gateway backend."""
from gateway import app
from gateway.nlu import initialize_nlu_client, NLUClientState


__all__ = [
    "app",
    "initialize_nlu_client",
    "NLUClientState",
]

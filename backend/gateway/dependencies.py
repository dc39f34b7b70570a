from fastapi import Request

from .nlu import NLUClientState
from .payments import PaymentProcessor


def get_nlu_state(request: Request) -> NLUClientState:
    """Chatbot client state created at app startup."""
    return request.app.state.nlu_state


def get_payment_processor(request: Request) -> PaymentProcessor:
    return request.app.state.payment_processor

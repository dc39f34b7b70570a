"""Payment processor backends for the payment endpoint."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import stripe

from .config import PAYMENT_CURRENCY, STRIPE_SECRET_KEY
from .exceptions import UpstreamError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentIntentResult:
    client_secret: str
    intent_id: Optional[str] = None


class PaymentProcessor(ABC):
    """Abstract base class for payment processors."""

    @abstractmethod
    def create_intent(self, amount: int) -> PaymentIntentResult:
        """Create a payment intent for ``amount`` in the smallest currency unit."""
        pass


class StripePaymentProcessor(PaymentProcessor):
    """Stripe PaymentIntents."""

    def __init__(self, secret_key: Optional[str] = STRIPE_SECRET_KEY, currency: str = PAYMENT_CURRENCY):
        self.secret_key = secret_key
        self.currency = currency

    def create_intent(self, amount: int) -> PaymentIntentResult:
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount,
                currency=self.currency,
                api_key=self.secret_key,
            )
        except stripe.StripeError as e:
            raise PaymentError.from_stripe(e) from e

        logger.info(f"Created payment intent {intent.id} for {amount} {self.currency}")
        return PaymentIntentResult(client_secret=intent.client_secret, intent_id=intent.id)


class PaymentError(UpstreamError):
    """Payment processor failure with a JSON-friendly description."""

    def __init__(self, message: str, error_type: str = "payment_error", code: Optional[str] = None):
        super().__init__(message)
        self.error_type = error_type
        self.code = code

    @classmethod
    def from_stripe(cls, error: "stripe.StripeError") -> "PaymentError":
        message = getattr(error, "user_message", None) or str(error) or type(error).__name__
        return cls(message, error_type=type(error).__name__, code=getattr(error, "code", None))

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"type": self.error_type, "message": self.message}
        if self.code:
            body["code"] = self.code
        return body

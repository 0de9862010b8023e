"""Payment gateway abstraction and its Stripe implementation.

Services depend on ``IPaymentGateway``; tests inject a mock.  The Stripe
gateway refunds the full amount of the payment intent recorded on the
order (``stripe_id``).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import stripe
import structlog
from django.conf import settings

from modules.payments.exceptions import PaymentProviderError

logger = structlog.get_logger(__name__)


class IPaymentGateway(ABC):
    @abstractmethod
    def refund(self, payment_id: str) -> str:
        """Refund *payment_id* in full and return the provider refund id.

        Raises:
            PaymentProviderError: if the provider refuses or fails.
        """


class StripePaymentGateway(IPaymentGateway):
    def __init__(self, api_key: str | None = None) -> None:
        self._api_key = api_key if api_key is not None else settings.STRIPE_API_KEY

    def refund(self, payment_id: str) -> str:
        log = logger.bind(payment_intent=payment_id)
        try:
            refund = stripe.Refund.create(payment_intent=payment_id, api_key=self._api_key)
        except stripe.StripeError as exc:
            log.warning(
                "payment.refund_failed",
                error=str(exc),
                code=getattr(exc, "code", None),
            )
            raise PaymentProviderError(f"Refund failed: {exc.user_message or exc}") from exc

        log.info("payment.refunded", refund_id=refund.id, status=refund.status)
        return refund.id

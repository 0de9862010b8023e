from types import SimpleNamespace
from unittest.mock import patch

import pytest
import stripe

from modules.payments.exceptions import PaymentProviderError
from modules.payments.gateway import StripePaymentGateway

pytestmark = pytest.mark.unit


class TestStripePaymentGateway:
    def test_refunds_payment_intent(self):
        with patch("modules.payments.gateway.stripe.Refund.create") as create:
            create.return_value = SimpleNamespace(id="re_1", status="succeeded")

            refund_id = StripePaymentGateway(api_key="sk_test_x").refund("pi_123")

        assert refund_id == "re_1"
        create.assert_called_once_with(payment_intent="pi_123", api_key="sk_test_x")

    def test_uses_configured_api_key(self, settings):
        settings.STRIPE_API_KEY = "sk_test_from_settings"
        with patch("modules.payments.gateway.stripe.Refund.create") as create:
            create.return_value = SimpleNamespace(id="re_2", status="pending")
            StripePaymentGateway().refund("pi_456")

        assert create.call_args.kwargs["api_key"] == "sk_test_from_settings"

    def test_provider_error_is_wrapped(self):
        error = stripe.InvalidRequestError(
            "No such payment_intent: 'pi_missing'", "payment_intent"
        )
        with patch("modules.payments.gateway.stripe.Refund.create", side_effect=error):
            with pytest.raises(PaymentProviderError, match="pi_missing") as exc_info:
                StripePaymentGateway(api_key="sk_test_x").refund("pi_missing")

        assert exc_info.value.__cause__ is error

    def test_connection_error_is_wrapped(self):
        error = stripe.APIConnectionError("Network down")
        with patch("modules.payments.gateway.stripe.Refund.create", side_effect=error):
            with pytest.raises(PaymentProviderError):
                StripePaymentGateway(api_key="sk_test_x").refund("pi_123")

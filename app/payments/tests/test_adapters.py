"""
Tests for payment gateway adapters.

Tests cover:
- Money and number helpers
- Razorpay order creation, payment signatures, webhook parsing and
  HTTP error translation
- Stripe PaymentIntent calls and error translation
- ProviderRegistry lookup
"""

import hashlib
import hmac
import json
import re
import time
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import requests
import stripe
from django.test import override_settings

from payments.adapters import (
    OrderRequest,
    PaymentProof,
    ProviderOrder,
    ProviderRegistry,
    RazorpayProvider,
    StripeProvider,
    WebhookActionType,
    from_minor_units,
    generate_invoice_number,
    generate_transaction_number,
    quantize,
    to_minor_units,
    validate_amount,
    validate_currency,
)
from payments.exceptions import PaymentGatewayError, PaymentValidationError


def make_order_request(**overrides):
    values = {
        "transaction_id": "6f1c1c1e-0000-4000-8000-000000000001",
        "transaction_number": "PT-20260101-ABC123",
        "amount": Decimal("510.00"),
        "currency": "INR",
        "description": "Registration for Alumni Meet",
        "reference_type": "EVENT_REGISTRATION",
        "reference_id": "42",
        "user_id": "7",
        "payer_name": "Asha Rao",
        "payer_email": "asha@example.com",
        "payer_phone": "9876500001",
    }
    values.update(overrides)
    return OrderRequest(**values)


@pytest.fixture
def razorpay():
    return RazorpayProvider(
        key_id="rzp_test_key",
        key_secret="rzp_test_secret",
        webhook_secret="rzp_webhook_secret",
        checkout_name="Alumni Association",
    )


@pytest.fixture
def stripe_provider():
    return StripeProvider(
        secret_key="sk_test_key",
        publishable_key="pk_test_key",
        webhook_secret="whsec_test",
    )


# =============================================================================
# Helpers
# =============================================================================


class TestMoneyHelpers:
    @pytest.mark.parametrize(
        "amount,expected",
        [
            (Decimal("510.00"), 51000),
            (Decimal("0.01"), 1),
            ("99.999", 10000),
            (12, 1200),
        ],
    )
    def test_to_minor_units(self, amount, expected):
        assert to_minor_units(amount) == expected

    def test_from_minor_units(self):
        assert from_minor_units(51050) == Decimal("510.50")

    def test_quantize_rounds_half_up(self):
        assert quantize(Decimal("10.005")) == Decimal("10.01")
        assert quantize(Decimal("10.004")) == Decimal("10.00")


class TestNumberGeneration:
    def test_transaction_number_format(self):
        assert re.fullmatch(r"PT-\d{8}-[A-Z0-9]{6}", generate_transaction_number())

    def test_invoice_number_format(self):
        assert re.fullmatch(r"INV-\d{8}-[A-Z0-9]{6}", generate_invoice_number())


class TestValidation:
    def test_amount_within_bounds(self):
        validate_amount(Decimal("1.00"))
        validate_amount(Decimal("500000.00"))

    def test_amount_below_minimum(self):
        with pytest.raises(PaymentValidationError) as exc_info:
            validate_amount(Decimal("0.50"))
        assert exc_info.value.error_code == "AMOUNT_TOO_LOW"

    def test_amount_above_maximum(self):
        with pytest.raises(PaymentValidationError) as exc_info:
            validate_amount(Decimal("500000.01"))
        assert exc_info.value.error_code == "AMOUNT_TOO_HIGH"

    def test_currency_case_insensitive(self):
        validate_currency("inr")

    def test_unsupported_currency(self):
        with pytest.raises(PaymentValidationError) as exc_info:
            validate_currency("USD")
        assert exc_info.value.error_code == "UNSUPPORTED_CURRENCY"


# =============================================================================
# Razorpay
# =============================================================================


class TestRazorpayOrders:
    def test_create_order_sends_minor_units(self, razorpay):
        with patch.object(RazorpayProvider, "_request", return_value={"id": "order_1", "amount": 51000}) as request:
            order = razorpay.create_order(make_order_request())

        method, path = request.call_args.args
        payload = request.call_args.kwargs["payload"]
        assert (method, path) == ("POST", "/orders")
        assert payload["amount"] == 51000
        assert payload["currency"] == "INR"
        assert payload["receipt"] == "PT-20260101-ABC123"
        assert payload["notes"]["reference_type"] == "EVENT_REGISTRATION"
        assert order.provider_order_id == "order_1"
        assert order.provider_order_data == {"id": "order_1", "amount": 51000}
        assert order.expires_at is not None

    def test_create_order_rejects_missing_fields(self, razorpay):
        with patch.object(RazorpayProvider, "_request") as request:
            with pytest.raises(PaymentValidationError) as exc_info:
                razorpay.create_order(make_order_request(description=""))

        assert exc_info.value.error_code == "MISSING_ORDER_FIELD"
        assert exc_info.value.details["missing_fields"] == ["description"]
        request.assert_not_called()

    def test_create_order_rejects_amount_below_minimum(self, razorpay):
        with patch.object(RazorpayProvider, "_request") as request:
            with pytest.raises(PaymentValidationError):
                razorpay.create_order(make_order_request(amount=Decimal("0.50")))

        request.assert_not_called()

    def test_checkout_params(self, razorpay):
        order_request = make_order_request()

        params = razorpay.checkout_params(order_request, ProviderOrder(provider_order_id="order_1"))

        assert params["key"] == "rzp_test_key"
        assert params["order_id"] == "order_1"
        assert params["amount"] == 51000
        assert params["name"] == "Alumni Association"
        assert params["prefill"] == {
            "name": "Asha Rao",
            "email": "asha@example.com",
            "contact": "9876500001",
        }


class TestRazorpayVerification:
    def test_payment_signature_is_hmac_of_order_and_payment(self, razorpay):
        expected = hmac.new(b"rzp_test_secret", b"order_1|pay_1", hashlib.sha256).hexdigest()

        assert razorpay.payment_signature("order_1", "pay_1") == expected

    def test_valid_signature_and_captured_payment(self, razorpay):
        payment = {
            "id": "pay_1",
            "order_id": "order_1",
            "amount": 51000,
            "status": "captured",
            "method": "card",
            "created_at": 1760000000,
        }
        proof = PaymentProof("order_1", "pay_1", razorpay.payment_signature("order_1", "pay_1"))

        with patch.object(RazorpayProvider, "_request", return_value=payment):
            result = razorpay.verify_payment(proof)

        assert result.verified is True
        assert result.provider_payment_id == "pay_1"
        assert result.amount_minor == 51000
        assert result.method == "card"
        assert result.completed_at.year == 2025

    def test_authorized_payment_counts_as_paid(self, razorpay):
        proof = PaymentProof("order_1", "pay_1", razorpay.payment_signature("order_1", "pay_1"))

        with patch.object(
            RazorpayProvider,
            "_request",
            return_value={"id": "pay_1", "order_id": "order_1", "amount": 100, "status": "authorized"},
        ):
            assert razorpay.verify_payment(proof).verified is True

    def test_tampered_signature_never_calls_gateway(self, razorpay):
        proof = PaymentProof("order_1", "pay_1", "0" * 64)

        with patch.object(RazorpayProvider, "_request") as request:
            result = razorpay.verify_payment(proof)

        assert result.verified is False
        assert result.error == "Payment signature verification failed"
        request.assert_not_called()

    def test_missing_fields(self, razorpay):
        result = razorpay.verify_payment(PaymentProof("order_1", "pay_1", ""))

        assert result.verified is False

    def test_failed_payment_status(self, razorpay):
        proof = PaymentProof("order_1", "pay_1", razorpay.payment_signature("order_1", "pay_1"))

        with patch.object(
            RazorpayProvider,
            "_request",
            return_value={"id": "pay_1", "order_id": "order_1", "amount": 100, "status": "failed"},
        ):
            result = razorpay.verify_payment(proof)

        assert result.verified is False
        assert result.error == "Payment status is failed"

    def test_payment_for_another_order(self, razorpay):
        proof = PaymentProof("order_1", "pay_1", razorpay.payment_signature("order_1", "pay_1"))

        with patch.object(
            RazorpayProvider,
            "_request",
            return_value={"id": "pay_1", "order_id": "order_2", "amount": 100, "status": "captured"},
        ):
            assert razorpay.verify_payment(proof).verified is False


class TestRazorpayWebhooks:
    def test_valid_signature(self, razorpay):
        body = b'{"event":"payment.captured"}'
        signature = hmac.new(b"rzp_webhook_secret", body, hashlib.sha256).hexdigest()

        assert razorpay.verify_webhook_signature(body, signature) is True

    def test_signature_over_different_bytes(self, razorpay):
        body = b'{"event":"payment.captured"}'
        signature = hmac.new(b"rzp_webhook_secret", body, hashlib.sha256).hexdigest()

        assert razorpay.verify_webhook_signature(body + b" ", signature) is False

    def test_missing_secret_rejects(self):
        provider = RazorpayProvider(key_id="k", key_secret="s", webhook_secret="")

        assert provider.verify_webhook_signature(b"{}", "anything") is False

    def test_empty_signature_rejects(self, razorpay):
        assert razorpay.verify_webhook_signature(b"{}", "") is False

    def test_payment_captured(self, razorpay):
        event = {
            "event": "payment.captured",
            "payload": {
                "payment": {"entity": {"id": "pay_1", "order_id": "order_1", "amount": 51000, "status": "captured"}}
            },
        }

        action = razorpay.process_webhook(event)

        assert action.action == WebhookActionType.PAYMENT_CAPTURED
        assert action.completes_payment
        assert action.provider_order_id == "order_1"
        assert action.provider_payment_id == "pay_1"
        assert action.amount_minor == 51000

    def test_payment_failed(self, razorpay):
        event = {
            "event": "payment.failed",
            "payload": {
                "payment": {
                    "entity": {
                        "id": "pay_1",
                        "order_id": "order_1",
                        "amount": 51000,
                        "status": "failed",
                        "error_description": "Payment declined by bank",
                    }
                }
            },
        }

        action = razorpay.process_webhook(event)

        assert action.action == WebhookActionType.PAYMENT_FAILED
        assert not action.completes_payment
        assert action.failure_reason == "Payment declined by bank"

    def test_order_paid_uses_order_entity(self, razorpay):
        event = {
            "event": "order.paid",
            "payload": {
                "order": {"entity": {"id": "order_1", "amount": 51000, "amount_paid": 51000}},
                "payment": {"entity": {"id": "pay_1", "order_id": "order_1", "amount": 51000}},
            },
        }

        action = razorpay.process_webhook(event)

        assert action.action == WebhookActionType.ORDER_PAID
        assert action.completes_payment
        assert action.provider_order_id == "order_1"
        assert action.amount_minor == 51000

    def test_unknown_event_ignored(self, razorpay):
        action = razorpay.process_webhook({"event": "refund.created", "payload": {}})

        assert action.action == WebhookActionType.IGNORED

    def test_event_metadata(self, razorpay):
        assert razorpay.parse_event_metadata({"event": "payment.captured"}) == ("payment.captured", "")
        assert razorpay.webhook_signature_header() == "X-Razorpay-Signature"


class TestRazorpayHTTP:
    def test_success_returns_json(self, razorpay):
        response = MagicMock(status_code=200)
        response.json.return_value = {"id": "order_1"}

        with patch("payments.adapters.razorpay_adapter.requests.request", return_value=response) as request:
            data = razorpay._request("POST", "/orders", payload={"amount": 100})

        assert data == {"id": "order_1"}
        assert request.call_args.args == ("POST", "https://api.razorpay.com/v1/orders")
        assert request.call_args.kwargs["auth"] == ("rzp_test_key", "rzp_test_secret")
        assert request.call_args.kwargs["timeout"] == 10

    def test_connection_error_is_retryable(self, razorpay):
        with patch(
            "payments.adapters.razorpay_adapter.requests.request",
            side_effect=requests.ConnectionError("connection refused"),
        ):
            with pytest.raises(PaymentGatewayError) as exc_info:
                razorpay._request("GET", "/payments/pay_1")

        assert exc_info.value.is_retryable is True
        assert exc_info.value.gateway_code == "api_connection_error"

    def test_client_error_carries_gateway_code(self, razorpay):
        response = MagicMock(status_code=400)
        response.json.return_value = {
            "error": {"code": "BAD_REQUEST_ERROR", "description": "The amount must be atleast INR 1.00"}
        }

        with patch("payments.adapters.razorpay_adapter.requests.request", return_value=response):
            with pytest.raises(PaymentGatewayError) as exc_info:
                razorpay._request("POST", "/orders", payload={"amount": 1})

        assert exc_info.value.message == "The amount must be atleast INR 1.00"
        assert exc_info.value.gateway_code == "BAD_REQUEST_ERROR"
        assert exc_info.value.is_retryable is False

    def test_server_error_with_non_json_body(self, razorpay):
        response = MagicMock(status_code=503)
        response.json.side_effect = ValueError("not json")

        with patch("payments.adapters.razorpay_adapter.requests.request", return_value=response):
            with pytest.raises(PaymentGatewayError) as exc_info:
                razorpay._request("GET", "/payments/pay_1")

        assert exc_info.value.is_retryable is True
        assert exc_info.value.details["status_code"] == 503


# =============================================================================
# Stripe
# =============================================================================


class TestStripeProvider:
    def test_create_order_creates_payment_intent(self, stripe_provider):
        intent = MagicMock(
            id="pi_123",
            status="requires_payment_method",
            amount=51000,
            currency="inr",
            client_secret="pi_123_secret_abc",
        )

        with patch("stripe.PaymentIntent.create", return_value=intent) as create:
            order = stripe_provider.create_order(make_order_request())

        kwargs = create.call_args.kwargs
        assert kwargs["amount"] == 51000
        assert kwargs["currency"] == "inr"
        assert kwargs["idempotency_key"] == "create_order:6f1c1c1e-0000-4000-8000-000000000001"
        assert kwargs["metadata"]["transaction_number"] == "PT-20260101-ABC123"
        assert order.provider_order_id == "pi_123"
        assert order.provider_order_data["client_secret"] == "pi_123_secret_abc"

    def test_checkout_params(self, stripe_provider):
        provider_order = ProviderOrder(
            provider_order_id="pi_123",
            provider_order_data={"client_secret": "pi_123_secret_abc"},
        )

        params = stripe_provider.checkout_params(make_order_request(), provider_order)

        assert params == {
            "publishable_key": "pk_test_key",
            "payment_intent_id": "pi_123",
            "client_secret": "pi_123_secret_abc",
            "amount": 51000,
            "currency": "inr",
            "description": "Registration for Alumni Meet",
        }

    def test_connection_error_translated(self, stripe_provider):
        with patch("stripe.PaymentIntent.create", side_effect=stripe.APIConnectionError("Network down")):
            with pytest.raises(PaymentGatewayError) as exc_info:
                stripe_provider.create_order(make_order_request())

        assert exc_info.value.is_retryable is True
        assert exc_info.value.provider == "stripe"

    def test_invalid_request_translated(self, stripe_provider):
        error = stripe.InvalidRequestError("No such payment_intent", param="id", code="resource_missing")

        with patch("stripe.PaymentIntent.retrieve", side_effect=error):
            with pytest.raises(PaymentGatewayError) as exc_info:
                stripe_provider.verify_payment(PaymentProof(provider_order_id="pi_missing"))

        assert exc_info.value.gateway_code == "resource_missing"
        assert exc_info.value.is_retryable is False

    def test_verify_succeeded_intent(self, stripe_provider):
        intent = MagicMock(
            id="pi_123",
            status="succeeded",
            amount_received=51000,
            currency="inr",
            latest_charge="ch_1",
            payment_method_types=["card"],
            created=1760000000,
        )

        with patch("stripe.PaymentIntent.retrieve", return_value=intent):
            result = stripe_provider.verify_payment(PaymentProof(provider_order_id="pi_123"))

        assert result.verified is True
        assert result.provider_payment_id == "ch_1"
        assert result.amount_minor == 51000
        assert result.method == "card"

    def test_verify_unfinished_intent(self, stripe_provider):
        intent = MagicMock(
            id="pi_123",
            status="requires_action",
            amount_received=0,
            currency="inr",
            latest_charge=None,
            payment_method_types=["card"],
            created=1760000000,
        )

        with patch("stripe.PaymentIntent.retrieve", return_value=intent):
            result = stripe_provider.verify_payment(PaymentProof(provider_order_id="pi_123"))

        assert result.verified is False
        assert result.error == "PaymentIntent status is requires_action"

    def test_webhook_signature(self, stripe_provider):
        body = json.dumps({"id": "evt_1", "object": "event", "type": "payment_intent.succeeded"}).encode()
        timestamp = int(time.time())
        digest = hmac.new(b"whsec_test", f"{timestamp}.".encode() + body, hashlib.sha256).hexdigest()

        assert stripe_provider.verify_webhook_signature(body, f"t={timestamp},v1={digest}") is True
        assert stripe_provider.verify_webhook_signature(body, f"t={timestamp},v1={'0' * 64}") is False

    def test_process_succeeded_event(self, stripe_provider):
        event = {
            "id": "evt_1",
            "type": "payment_intent.succeeded",
            "data": {"object": {"id": "pi_123", "amount_received": 51000, "latest_charge": "ch_1"}},
        }

        action = stripe_provider.process_webhook(event)

        assert action.action == WebhookActionType.PAYMENT_CAPTURED
        assert action.event_id == "evt_1"
        assert action.provider_order_id == "pi_123"
        assert action.provider_payment_id == "ch_1"
        assert action.amount_minor == 51000

    def test_process_failed_event(self, stripe_provider):
        event = {
            "id": "evt_2",
            "type": "payment_intent.payment_failed",
            "data": {
                "object": {
                    "id": "pi_123",
                    "amount": 51000,
                    "last_payment_error": {"message": "Your card was declined."},
                }
            },
        }

        action = stripe_provider.process_webhook(event)

        assert action.action == WebhookActionType.PAYMENT_FAILED
        assert action.failure_reason == "Your card was declined."


# =============================================================================
# Registry
# =============================================================================


class TestProviderRegistry:
    def test_default_provider(self, razorpay, stripe_provider):
        registry = ProviderRegistry({"razorpay": razorpay, "stripe": stripe_provider}, default="razorpay")

        assert registry.get() is razorpay
        assert registry.get("stripe") is stripe_provider
        assert registry.names() == ["razorpay", "stripe"]

    def test_unknown_provider(self, razorpay):
        registry = ProviderRegistry({"razorpay": razorpay})

        with pytest.raises(PaymentValidationError) as exc_info:
            registry.get("paypal")

        assert exc_info.value.error_code == "UNSUPPORTED_PROVIDER"
        assert not registry.has("paypal")

    @override_settings(PAYMENT_ENABLED_PROVIDERS=["razorpay", "paypal"], PAYMENT_DEFAULT_PROVIDER="razorpay")
    def test_from_settings_skips_unknown(self):
        registry = ProviderRegistry.from_settings()

        assert registry.names() == ["razorpay"]
        assert isinstance(registry.get(), RazorpayProvider)

"""
Pytest fixtures for payment tests.

Razorpay is replaced by FakeRazorpayAPI, patched in at the HTTP layer
(RazorpayProvider._request), so signatures, webhook parsing and amount
checks run for real while orders and payments live in memory.

Usage:
    def test_verify(engine, initiated_membership, fake_razorpay, make_proof):
        txn = initiated_membership.transaction
        payment_id = fake_razorpay.capture(txn.provider_order_id)
        result = engine.verify(txn.id, make_proof(txn, payment_id))
"""

import hashlib
import hmac
import json
import logging
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.apps import apps
from django.conf import settings
from rest_framework.test import APIClient

from authentication.tests.factories import UserFactory
from events.tests.factories import EventFactory, EventRegistrationFactory
from memberships.tests.factories import MembershipFeeFactory
from payments.adapters import PaymentProof, RazorpayProvider
from payments.exceptions import PaymentGatewayError
from payments.services import get_payment_engine, get_webhook_processor


# =============================================================================
# Fake Gateway
# =============================================================================


class FakeRazorpayAPI:
    """
    In-memory stand-in for the Razorpay REST API.

    Attributes:
        orders / payments: Created entities by id
        calls: (method, path, payload) for every request
        error: When set, raised by the next and all later requests
    """

    def __init__(self):
        self.orders = {}
        self.payments = {}
        self.calls = []
        self.error = None

    def __call__(self, method, path, payload=None, log_context=None):
        self.calls.append((method, path, payload))
        if self.error is not None:
            raise self.error

        if method == "POST" and path == "/orders":
            order_id = f"order_fake{len(self.orders) + 1:06d}"
            self.orders[order_id] = {
                "id": order_id,
                "entity": "order",
                "amount": payload["amount"],
                "amount_paid": 0,
                "currency": payload["currency"],
                "receipt": payload["receipt"],
                "status": "created",
                "notes": payload["notes"],
            }
            return self.orders[order_id]

        if method == "GET" and path.startswith("/payments/"):
            payment_id = path.rsplit("/", 1)[-1]
            if payment_id not in self.payments:
                raise PaymentGatewayError(
                    "The id provided does not exist",
                    provider="razorpay",
                    gateway_code="BAD_REQUEST_ERROR",
                )
            return self.payments[payment_id]

        raise AssertionError(f"Unexpected Razorpay call: {method} {path}")

    def capture(self, order_id, amount=None, status="captured"):
        """Record a payment against an order and return its id."""
        payment_id = f"pay_fake{len(self.payments) + 1:06d}"
        self.payments[payment_id] = {
            "id": payment_id,
            "entity": "payment",
            "order_id": order_id,
            "amount": amount if amount is not None else self.orders[order_id]["amount"],
            "currency": "INR",
            "status": status,
            "method": "upi",
            "created_at": 1760000000,
        }
        return payment_id


@pytest.fixture
def fake_razorpay():
    fake = FakeRazorpayAPI()
    with patch.object(RazorpayProvider, "_request", new=fake):
        yield fake


@pytest.fixture
def razorpay_provider():
    return apps.get_app_config("payments").provider_registry.get("razorpay")


@pytest.fixture
def engine(fake_razorpay):
    return get_payment_engine()


@pytest.fixture
def webhook_processor(fake_razorpay):
    return get_webhook_processor()


# =============================================================================
# Signing Helpers
# =============================================================================


@pytest.fixture
def make_proof(razorpay_provider):
    """Build a correctly signed PaymentProof for a transaction."""

    def _make_proof(txn, payment_id, signature=None):
        return PaymentProof(
            provider_order_id=txn.provider_order_id,
            provider_payment_id=payment_id,
            signature=signature
            or razorpay_provider.payment_signature(txn.provider_order_id, payment_id),
        )

    return _make_proof


def razorpay_event(event_type, order_id, payment_id, amount_minor, status="captured", error_description=None):
    return {
        "entity": "event",
        "account_id": "acc_test",
        "event": event_type,
        "contains": ["payment"],
        "payload": {
            "payment": {
                "entity": {
                    "id": payment_id,
                    "entity": "payment",
                    "order_id": order_id,
                    "amount": amount_minor,
                    "currency": "INR",
                    "status": status,
                    "method": "upi",
                    "error_description": error_description,
                }
            }
        },
        "created_at": 1760000000,
    }


@pytest.fixture
def razorpay_webhook():
    """
    Build a signed Razorpay callback.

    Returns (body bytes, signature) for the given event fields.
    """

    def _razorpay_webhook(event_type, order_id, payment_id, amount_minor, **kwargs):
        body = json.dumps(
            razorpay_event(event_type, order_id, payment_id, amount_minor, **kwargs)
        ).encode("utf-8")
        signature = hmac.new(
            settings.RAZORPAY_WEBHOOK_SECRET.encode("utf-8"),
            body,
            hashlib.sha256,
        ).hexdigest()
        return body, signature

    return _razorpay_webhook


# =============================================================================
# Domain Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Member of batch 2015."""
    return UserFactory(batch_year=2015)


@pytest.fixture
def other_user(db):
    return UserFactory()


@pytest.fixture
def membership_fee(db):
    return MembershipFeeFactory(batch_year=2015, amount=Decimal("500.00"))


@pytest.fixture
def open_event(db):
    return EventFactory(registration_fee=Decimal("500.00"), guest_fee=Decimal("250.00"))


@pytest.fixture
def registration(user, open_event):
    return EventRegistrationFactory(event=open_event, user=user)


@pytest.fixture
def initiated_membership(engine, user, membership_fee):
    """A PENDING membership transaction with a Razorpay order."""
    return engine.initiate("MEMBERSHIP", str(user.id), user)


@pytest.fixture
def payments_log(caplog):
    """INFO records from the payments logger, which does not propagate to root."""
    logger = logging.getLogger("payments")
    logger.addHandler(caplog.handler)
    caplog.set_level(logging.INFO, logger="payments")
    yield caplog
    logger.removeHandler(caplog.handler)


@pytest.fixture
def api_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client

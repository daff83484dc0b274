"""
Payable reference strategies and the fee calculator.

Each ReferenceType has one registered PayableReference. Importing this
package registers all of them.

Usage:
    from payments.strategies import calculate, get_reference

    calculation = calculate("MEMBERSHIP", str(user.id), user)
    calculation.breakdown  # {"membership_fee": Decimal("500.00"), "total": Decimal("500.00")}

    get_reference(txn.reference_type).apply_completion_side_effects(txn)
"""

from payments.strategies.base import (
    REFERENCE_REGISTRY,
    FeeCalculation,
    PayableReference,
    calculate,
    get_reference,
    processing_fee,
    register,
)
from payments.strategies.donations import DonationReference
from payments.strategies.events import EventPaymentReference, EventRegistrationReference
from payments.strategies.memberships import MembershipReference
from payments.strategies.merchandise import EventMerchandiseReference, MerchandiseOrderReference
from payments.strategies.subscriptions import (
    SubscriptionNewReference,
    SubscriptionRenewalReference,
    SubscriptionUpgradeReference,
)

__all__ = [
    "REFERENCE_REGISTRY",
    "DonationReference",
    "EventMerchandiseReference",
    "EventPaymentReference",
    "EventRegistrationReference",
    "FeeCalculation",
    "MembershipReference",
    "MerchandiseOrderReference",
    "PayableReference",
    "SubscriptionNewReference",
    "SubscriptionRenewalReference",
    "SubscriptionUpgradeReference",
    "calculate",
    "get_reference",
    "processing_fee",
    "register",
]

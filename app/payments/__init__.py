"""
Payments app: the payment transaction engine.

This app handles:
- Fee calculation for every payable reference type
- Transaction initiation against Razorpay or Stripe
- Client-side verification and gateway webhooks
- Idempotent completion with per-reference side effects
- Invoices and post-payment notifications

Related apps:
    - authentication: User model for the payer
    - events, merchandise, memberships, subscriptions: payable references
    - notifications: Payment notifications

Usage:
    from payments.services import get_payment_engine

    result = get_payment_engine().initiate("MEMBERSHIP", str(user.id), user)
"""

"""
URL configuration for the payments app.

Routes:
    - POST calculate/ - Fee breakdown
    - POST initiate/ - Start a payment
    - GET transactions/ - Transaction history
    - GET transactions/<id>/ - Transaction detail
    - POST transactions/<id>/verify/ - Verify a client-side payment
    - GET transactions/<id>/invoice/ - Invoice
    - POST transactions/<id>/invoice/resend/ - Resend invoice email
    - POST webhooks/<provider>/ - Gateway webhook endpoint

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.
"""

from django.urls import path

from payments import views
from payments.webhooks.views import payment_webhook

app_name = "payments"

urlpatterns = [
    path("calculate/", views.CalculatePaymentView.as_view(), name="calculate"),
    path("initiate/", views.InitiatePaymentView.as_view(), name="initiate"),
    path("transactions/", views.TransactionListView.as_view(), name="transaction-list"),
    path(
        "transactions/<uuid:transaction_id>/",
        views.TransactionDetailView.as_view(),
        name="transaction-detail",
    ),
    path(
        "transactions/<uuid:transaction_id>/verify/",
        views.VerifyPaymentView.as_view(),
        name="transaction-verify",
    ),
    path(
        "transactions/<uuid:transaction_id>/invoice/",
        views.TransactionInvoiceView.as_view(),
        name="transaction-invoice",
    ),
    path(
        "transactions/<uuid:transaction_id>/invoice/resend/",
        views.ResendInvoiceView.as_view(),
        name="transaction-invoice-resend",
    ),
    # Webhook endpoints
    path("webhooks/<str:provider>/", payment_webhook, name="payment-webhook"),
]

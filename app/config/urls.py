"""
URL configuration for the billing platform.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/payments/              - Payment endpoints
        calculate/                 - Fee breakdown for a payable reference
        initiate/                  - Create a transaction and gateway order
        transactions/              - Current user's transactions
        transactions/{id}/         - Transaction detail
        transactions/{id}/verify/  - Verify a client-side payment
        transactions/{id}/invoice/ - Invoice for a completed transaction
        transactions/{id}/invoice/resend/ - Resend the invoice email
        webhooks/{provider}/       - Gateway webhook endpoint (POST)
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("payments/", include("payments.urls")),
]

urlpatterns = [
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("admin/", admin.site.urls),
    path("health/", health_check, name="health_check"),
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Billing Administration"
admin.site.site_title = "Billing Admin"
admin.site.index_title = "Payments, events and memberships"

"""
Django admin configuration for event models.
"""

from django.contrib import admin

from events.models import (
    Event,
    EventMerchandise,
    EventMerchandiseOrder,
    EventRegistration,
    RegistrationGuest,
)


class RegistrationGuestInline(admin.TabularInline):
    model = RegistrationGuest
    extra = 0


class EventMerchandiseOrderInline(admin.TabularInline):
    model = EventMerchandiseOrder
    extra = 0
    readonly_fields = ("total_price",)


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = (
        "title",
        "event_date",
        "status",
        "registration_fee",
        "guest_fee",
        "max_capacity",
    )
    list_filter = ("status",)
    search_fields = ("title", "venue")


@admin.register(EventRegistration)
class EventRegistrationAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "event",
        "user",
        "status",
        "payment_status",
        "total_amount_paid",
        "last_payment_at",
    )
    list_filter = ("status", "payment_status")
    search_fields = ("user__email", "event__title", "access_code")
    raw_id_fields = ("user", "event")
    inlines = [RegistrationGuestInline, EventMerchandiseOrderInline]


@admin.register(EventMerchandise)
class EventMerchandiseAdmin(admin.ModelAdmin):
    list_display = ("name", "event", "price", "stock", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name",)

"""
Django admin configuration for merchandise models.
"""

from django.contrib import admin

from merchandise.models import CartItem, Merchandise, MerchandiseOrder, MerchandiseOrderItem


class MerchandiseOrderItemInline(admin.TabularInline):
    model = MerchandiseOrderItem
    extra = 0
    readonly_fields = ("merchandise", "quantity", "unit_price", "total_price")


@admin.register(Merchandise)
class MerchandiseAdmin(admin.ModelAdmin):
    list_display = ("name", "sku", "price", "stock", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "sku")


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ("user", "merchandise", "quantity", "created_at")
    raw_id_fields = ("user",)


@admin.register(MerchandiseOrder)
class MerchandiseOrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "user", "status", "total_amount", "created_at")
    list_filter = ("status",)
    search_fields = ("order_number", "user__email", "pickup_code")
    raw_id_fields = ("user", "payment_transaction")
    inlines = [MerchandiseOrderItemInline]

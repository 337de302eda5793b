from django.contrib import admin

from .models import Cart, CartItem


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    readonly_fields = ("name", "item_price", "quantity", "subtotal", "customizations")
    can_delete = False


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "session_id", "order_type", "total", "expires_at", "updated_at")
    list_filter = ("order_type",)
    search_fields = ("user__email", "session_id")
    readonly_fields = ("subtotal", "tax", "delivery_fee", "discount", "total", "estimated_prep_time")
    inlines = [CartItemInline]

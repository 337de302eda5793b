from django.contrib import admin

from .models import Order, OrderItem, OrderTimelineEntry


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ("name", "quantity", "item_price", "get_line_item_total", "special_instructions")
    readonly_fields = fields
    can_delete = False

    def get_line_item_total(self, obj):
        return f"${obj.subtotal:,.2f}"

    get_line_item_total.short_description = "Line Item Total"

    def has_add_permission(self, request, obj=None):
        return False


class OrderTimelineEntryInline(admin.TabularInline):
    model = OrderTimelineEntry
    extra = 0
    readonly_fields = ("status", "timestamp", "staff", "notes")
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "user",
        "status",
        "payment_status",
        "order_type",
        "total",
        "assigned_to_staff",
        "created_at",
    )
    list_display_links = ("order_number",)
    list_filter = ("status", "payment_status", "order_type", "created_at")
    search_fields = ("order_number", "user__email", "payment_intent_id")
    readonly_fields = (
        "order_number",
        "subtotal",
        "tax",
        "delivery_fee",
        "discount",
        "total",
        "payment_intent_id",
        "payment_completed_at",
        "refund_amount",
        "refunded_at",
        "estimated_prep_time",
        "loyalty_points_earned",
        "loyalty_points_used",
        "created_at",
        "updated_at",
    )
    inlines = [OrderItemInline, OrderTimelineEntryInline]

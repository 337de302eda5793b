from django.contrib import admin

from .models import LoyaltyAccount, LoyaltyTransaction


class LoyaltyTransactionInline(admin.TabularInline):
    model = LoyaltyTransaction
    fk_name = "account"
    extra = 0
    readonly_fields = ("type", "points", "order", "description", "expires_at", "created_at")
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(LoyaltyAccount)
class LoyaltyAccountAdmin(admin.ModelAdmin):
    list_display = ("user", "total_points", "points_earned", "points_used", "tier", "tier_progress")
    list_filter = ("tier",)
    search_fields = ("user__email",)
    readonly_fields = ("total_points", "points_earned", "points_used", "tier", "tier_progress")
    inlines = [LoyaltyTransactionInline]

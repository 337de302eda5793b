from django.contrib import admin

from .models import MenuItem, Customization, CustomizationOption


class CustomizationOptionInline(admin.TabularInline):
    model = CustomizationOption
    extra = 1


class CustomizationInline(admin.StackedInline):
    model = Customization
    extra = 0
    show_change_link = True


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ("name", "base_price", "is_active", "is_available", "sold_count")
    list_filter = ("is_active", "is_available")
    search_fields = ("name",)
    readonly_fields = ("sold_count",)
    inlines = [CustomizationInline]


@admin.register(Customization)
class CustomizationAdmin(admin.ModelAdmin):
    list_display = ("name", "menu_item", "type", "required", "min_selections", "max_selections")
    inlines = [CustomizationOptionInline]

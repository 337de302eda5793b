import uuid

from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


class MenuItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200, help_text=_("Name of the menu item."))
    description = models.TextField(blank=True)
    base_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(0)],
        help_text=_("Price before customizations."),
    )
    is_active = models.BooleanField(
        default=True, help_text=_("Inactive items are hidden from the menu.")
    )
    is_available = models.BooleanField(
        default=True, help_text=_("Temporarily sold out when false.")
    )
    preparation_time = models.PositiveIntegerField(
        default=15, help_text=_("Typical preparation time in minutes.")
    )
    sold_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["is_active", "is_available"]),
        ]

    def __str__(self):
        return self.name

    @property
    def is_orderable(self):
        return self.is_active and self.is_available


class Customization(models.Model):
    class SelectionType(models.TextChoices):
        SINGLE = "single", _("Single Choice")
        MULTIPLE = "multiple", _("Multiple Choices")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    menu_item = models.ForeignKey(
        MenuItem, on_delete=models.CASCADE, related_name="customizations"
    )
    name = models.CharField(
        max_length=100, help_text=_("Customer-facing name, e.g., 'Size'")
    )
    type = models.CharField(
        max_length=10, choices=SelectionType.choices, default=SelectionType.SINGLE
    )
    required = models.BooleanField(default=False)
    min_selections = models.PositiveIntegerField(
        default=1, help_text=_("Minimum selections when this customization is chosen")
    )
    max_selections = models.PositiveIntegerField(
        default=1, help_text=_("Maximum selections allowed")
    )
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["sort_order", "name"]

    def __str__(self):
        return f"{self.menu_item.name} - {self.name}"


class CustomizationOption(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    customization = models.ForeignKey(
        Customization, on_delete=models.CASCADE, related_name="options"
    )
    name = models.CharField(max_length=100)
    price_modifier = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0,
        help_text=_("The amount to add or subtract from the base price."),
    )
    is_available = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["sort_order", "name"]

    def __str__(self):
        return f"{self.customization.name} - {self.name}"

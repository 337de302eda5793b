import django_filters
from django.db.models import Q

from .models import Order, OrderStatus, PaymentStatus, OrderType


class OrderFilter(django_filters.FilterSet):
    """
    Order list filters: status, payment status, order type, owner, assigned
    staff, order number fragment, creation date range and a free-text search
    over order number and item names.
    """

    status = django_filters.ChoiceFilter(choices=OrderStatus.choices)
    payment_status = django_filters.ChoiceFilter(choices=PaymentStatus.choices)
    order_type = django_filters.ChoiceFilter(choices=OrderType.choices)
    user = django_filters.NumberFilter(field_name="user_id")
    assigned_to_staff = django_filters.NumberFilter(field_name="assigned_to_staff_id")
    order_number = django_filters.CharFilter(field_name="order_number", lookup_expr="icontains")
    start_date = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    end_date = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lte")
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = Order
        fields = []

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(order_number__icontains=value) | Q(items__name__icontains=value)
        ).distinct()


class KitchenOrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=OrderStatus.choices)
    order_type = django_filters.ChoiceFilter(choices=OrderType.choices)
    assigned_to_staff = django_filters.NumberFilter(field_name="assigned_to_staff_id")

    class Meta:
        model = Order
        fields = []

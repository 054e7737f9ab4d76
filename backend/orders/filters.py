import django_filters

from .models import Order
from .states import OrderState


class OrderFilter(django_filters.FilterSet):
    """
    Filters for the order list.

    ``active_only`` hides delivered and cancelled orders, which is what the
    kitchen display and waiter screens poll for.
    """

    state = django_filters.MultipleChoiceFilter(choices=OrderState.choices)
    table = django_filters.NumberFilter(field_name="table_id")
    created_at__gte = django_filters.DateTimeFilter(field_name="created_at", lookup_expr="gte")
    created_at__lte = django_filters.DateTimeFilter(field_name="created_at", lookup_expr="lte")
    active_only = django_filters.BooleanFilter(method="filter_active_only")

    class Meta:
        model = Order
        fields = ["state", "table", "waiter_id"]

    def filter_active_only(self, queryset, name, value):
        if value:
            return queryset.exclude(state__in=[OrderState.ENTREGADO, OrderState.CANCELADO])
        return queryset

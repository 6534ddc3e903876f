# api/filters.py: query-string filters for products and orders
from django.db.models import Q
import django_filters

from .models import Order, Product


class ProductFilter(django_filters.FilterSet):
    category = django_filters.NumberFilter(field_name="category_id")
    brand = django_filters.CharFilter(field_name="brand", lookup_expr="iexact")
    size = django_filters.CharFilter(field_name="size", lookup_expr="iexact")
    availability = django_filters.BooleanFilter(field_name="availability")
    min_price = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="price", lookup_expr="lte")
    tags = django_filters.CharFilter(method="filter_tags")

    class Meta:
        model = Product
        fields = ["category", "brand", "size", "availability", "min_price", "max_price", "tags"]

    def filter_tags(self, queryset, name, value):
        """?tags=a,b matches products carrying AT LEAST ONE of the tags."""
        wanted = [t.strip() for t in (value or "").split(",") if t.strip()]
        if not wanted:
            return queryset
        # JSON containment lookups are not available on every backend (SQLite)
        ids = [
            pid for pid, tags in queryset.values_list("id", "tags")
            if any(t in (tags or []) for t in wanted)
        ]
        return queryset.filter(id__in=ids)


class OrderFilter(django_filters.FilterSet):
    customer_name = django_filters.CharFilter(field_name="customer_name", lookup_expr="icontains")
    customer_email = django_filters.CharFilter(field_name="customer_email", lookup_expr="iexact")
    customer_phone = django_filters.CharFilter(field_name="customer_phone", lookup_expr="exact")
    status = django_filters.ChoiceFilter(choices=Order.Status.choices)
    q = django_filters.CharFilter(method="filter_q")

    class Meta:
        model = Order
        fields = ["customer_name", "customer_email", "customer_phone", "status"]

    def filter_q(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(customer_name__icontains=value)
            | Q(customer_email__icontains=value)
            | Q(customer_phone__icontains=value)
        )

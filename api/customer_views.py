# api/customer_views.py: purchasing customers (created by the payment IPN)
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .models import Customer
from .serializers import CustomerSerializer, OrderReadSerializer


def _get_customer(pk):
    try:
        return Customer.objects.get(id=int(pk))
    except (Customer.DoesNotExist, TypeError, ValueError):
        return None


@api_view(["GET"])
@permission_classes([AllowAny])
def customer_detail(request, pk: int):
    c = _get_customer(pk)
    if c is None:
        return Response({"detail": "Customer not found."}, status=404)
    return Response(CustomerSerializer(c).data, status=200)


@api_view(["GET"])
@permission_classes([AllowAny])
def customer_lookup(request):
    """
    GET /api/customers/lookup/?email=...
    Lets the storefront find its customer id after a paid checkout.
    """
    email = (request.query_params.get("email") or "").strip().lower()
    if not email:
        return Response({"detail": "Query parameter 'email' is required."}, status=400)
    c = Customer.objects.filter(email=email).first()
    if c is None:
        return Response({"detail": "Customer not found."}, status=404)
    data = CustomerSerializer(c).data
    data["orders"] = OrderReadSerializer(
        c.orders.select_related("payment").prefetch_related("items__product"), many=True
    ).data
    return Response(data)

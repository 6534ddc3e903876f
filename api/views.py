# api/views.py: ViewSets (categories, products, blogs, testimonials, partners, orders)

import logging

from django.conf import settings
from django.db.models import Count, Q
from rest_framework import filters, status, viewsets
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .filters import OrderFilter, ProductFilter
from .models import Blog, Category, Order, Partner, Payment, Product, Testimonial
from .payments import create_payment
from .pesapal import PesapalError
from .serializers import (
    BlogReplySerializer,
    BlogSerializer,
    BulkAvailabilitySerializer,
    CategorySerializer,
    OrderCreateSerializer,
    OrderReadSerializer,
    OrderStatusSerializer,
    PartnerSerializer,
    ProductQuantitySerializer,
    ProductSerializer,
    TestimonialSerializer,
)

logger = logging.getLogger(__name__)

UPLOAD_PARSERS = [JSONParser, MultiPartParser, FormParser]


class ProductPagination(PageNumberPagination):
    page_size = 10
    page_size_query_param = "limit"
    max_page_size = 100


# -------------------------------------------------
# Categories (CRUD)
# -------------------------------------------------
class CategoryViewSet(viewsets.ModelViewSet):
    permission_classes = [AllowAny]
    serializer_class = CategorySerializer
    parser_classes = UPLOAD_PARSERS
    pagination_class = None
    filter_backends = [filters.SearchFilter]
    search_fields = ["name", "sub_category"]

    def get_queryset(self):
        return Category.objects.all().annotate(product_count=Count("products")).order_by("name")


# -------------------------------------------------
# Products (CRUD + inventory actions)
# -------------------------------------------------
class ProductViewSet(viewsets.ModelViewSet):
    permission_classes = [AllowAny]
    serializer_class = ProductSerializer
    queryset = Product.objects.all().select_related("category").order_by("-created_at", "-id")
    pagination_class = ProductPagination

    filterset_class = ProductFilter
    search_fields = ["name", "brand", "description"]
    ordering_fields = ["id", "name", "price", "quantity", "review", "created_at"]

    @action(detail=False, methods=["put"], url_path="bulk/availability")
    def bulk_availability(self, request):
        ser = BulkAvailabilitySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        availability = ser.validated_data["availability"]
        updated = Product.objects.filter(id__in=ser.validated_data["product_ids"]).update(
            availability=availability
        )
        logger.info("Availability set to %s on %s products", availability, updated)
        return Response({
            "message": f"Updated availability for {updated} products",
            "updated_count": updated,
            "availability": availability,
        })

    @action(detail=True, methods=["put"])
    def quantity(self, request, pk=None):
        product = self.get_object()
        ser = ProductQuantitySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        product.quantity = ser.validated_data["quantity"]
        product.save(update_fields=["quantity", "availability", "updated_at"])
        return Response({
            "id": product.id,
            "name": product.name,
            "quantity": product.quantity,
            "availability": product.availability,
        })

    @action(detail=False, methods=["get"], url_path="inventory/low-stock")
    def low_stock(self, request):
        raw = request.query_params.get("threshold")
        try:
            threshold = int(raw) if raw not in (None, "") else settings.LOW_STOCK_THRESHOLD
        except ValueError:
            return Response({"detail": "threshold must be an integer."}, status=400)
        qs = (
            Product.objects.filter(quantity__lte=threshold, availability=True)
            .select_related("category")
            .order_by("quantity", "id")
        )
        data = ProductSerializer(qs, many=True, context=self.get_serializer_context()).data
        return Response({"count": len(data), "results": data})

    @action(detail=False, methods=["get"], url_path="search/query")
    def search(self, request):
        term = (request.query_params.get("q") or "").strip()
        if not term:
            return Response({"detail": "Query parameter 'q' is required."}, status=400)
        qs = self.get_queryset().filter(
            Q(name__icontains=term) | Q(brand__icontains=term) | Q(description__icontains=term)
        )
        page = self.paginate_queryset(qs)
        ser = self.get_serializer(page if page is not None else qs, many=True)
        if page is not None:
            return self.get_paginated_response(ser.data)
        return Response(ser.data)


# -------------------------------------------------
# Blogs (CRUD + replies)
# -------------------------------------------------
class BlogViewSet(viewsets.ModelViewSet):
    permission_classes = [AllowAny]
    serializer_class = BlogSerializer
    parser_classes = UPLOAD_PARSERS
    queryset = Blog.objects.all().prefetch_related("replies").order_by("-created_at", "-id")
    search_fields = ["title", "description"]

    @action(detail=True, methods=["get", "post"])
    def replies(self, request, pk=None):
        blog = self.get_object()
        if request.method == "GET":
            ser = BlogReplySerializer(blog.replies.all(), many=True)
            return Response(ser.data)

        ser = BlogReplySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        ser.save(blog=blog)
        return Response(ser.data, status=status.HTTP_201_CREATED)


# -------------------------------------------------
# Testimonials / Partners (CRUD)
# -------------------------------------------------
class TestimonialViewSet(viewsets.ModelViewSet):
    permission_classes = [AllowAny]
    serializer_class = TestimonialSerializer
    parser_classes = UPLOAD_PARSERS
    queryset = Testimonial.objects.all().order_by("-created_at", "-id")
    search_fields = ["full_name", "position", "message"]
    ordering_fields = ["created_at", "rate"]


class PartnerViewSet(viewsets.ModelViewSet):
    permission_classes = [AllowAny]
    serializer_class = PartnerSerializer
    parser_classes = UPLOAD_PARSERS
    queryset = Partner.objects.all().order_by("-created_at", "-id")
    search_fields = ["name"]


# -------------------------------------------------
# Orders: read and write kept apart
# -------------------------------------------------
class OrderViewSet(viewsets.ModelViewSet):
    permission_classes = [AllowAny]
    queryset = (
        Order.objects.all()
        .select_related("payment")
        .prefetch_related("items__product")
        .order_by("-created_at", "-id")
    )
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "amount", "status"]

    def get_serializer_class(self):
        if self.request.method in ("GET",):
            return OrderReadSerializer
        return OrderCreateSerializer

    @action(detail=False, methods=["post"])
    def checkout(self, request):
        """
        POST /api/orders/checkout/
        Body: { customer_name, customer_email, customer_phone, currency,
                items: [ { product_id, quantity }, ... ] }
        Creates the order, then the gateway payment. Returns {order, payment_link}.
        """
        ser = OrderCreateSerializer(data=request.data, context=self.get_serializer_context())
        ser.is_valid(raise_exception=True)
        order = ser.save()
        logger.info("Order %s created: %s %s", order.id, order.amount, order.currency)

        try:
            _payment, link = create_payment(order)
        except PesapalError as e:
            # the order stays PENDING; /payments/retry/<id>/ can reopen it
            return Response(
                {"detail": str(e), "order": OrderReadSerializer(order).data},
                status=status.HTTP_502_BAD_GATEWAY,
            )

        order.refresh_from_db()
        return Response(
            {"order": OrderReadSerializer(order).data, "payment_link": link},
            status=status.HTTP_201_CREATED,
        )

    def create(self, request, *args, **kwargs):
        return self.checkout(request)

    def update(self, request, *args, **kwargs):
        return Response({"detail": "Direct order updates are not supported."}, status=405)

    def partial_update(self, request, *args, **kwargs):
        return Response({"detail": "Direct order updates are not supported."}, status=405)

    @action(detail=True, methods=["put"], url_path="status")
    def set_status(self, request, pk=None):
        order = self.get_object()
        ser = OrderStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        order.status = ser.validated_data["status"]
        order.save(update_fields=["status", "updated_at"])
        logger.info("Order %s status set to %s", order.id, order.status)
        return Response(OrderReadSerializer(order).data)

    @action(detail=True, methods=["post"])
    def payment(self, request, pk=None):
        order = self.get_object()
        if order.status != Order.Status.PENDING:
            return Response({"detail": "Only pending orders can be paid."}, status=400)
        if Payment.objects.filter(order=order, status=Payment.Status.SUCCESSFUL).exists():
            return Response({"detail": "Order is already paid."}, status=400)
        try:
            payment, link = create_payment(order)
        except PesapalError as e:
            return Response({"detail": str(e)}, status=status.HTTP_502_BAD_GATEWAY)
        return Response({"link": link, "tx_ref": payment.tx_ref}, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"], url_path=r"user/(?P<customer_id>\d+)")
    def by_customer(self, request, customer_id=None):
        qs = self.filter_queryset(self.get_queryset()).filter(customer_id=customer_id)
        ser = OrderReadSerializer(qs, many=True)
        return Response(ser.data)

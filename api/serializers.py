# api/serializers.py: catalog, content and orders (SEPARATE serializers for write/read)
# Validation errors always come back as 400 with readable messages.
import json

from django.conf import settings
from django.db import transaction
from rest_framework import serializers

from .models import (
    Blog,
    BlogReply,
    Category,
    Customer,
    Order,
    OrderItem,
    Partner,
    Payment,
    Product,
    Testimonial,
)


# --------- Categories ---------
class CategorySerializer(serializers.ModelSerializer):
    # only present when the queryset was annotated
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = [
            "id",
            "name",
            "sub_category",
            "status",
            "image",
            "product_count",
            "created_at",
            "updated_at",
        ]

    def get_product_count(self, obj):
        return int(getattr(obj, "product_count", 0) or 0)


class CategoryBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name"]


# --------- Products ---------
class ProductSerializer(serializers.ModelSerializer):
    category = CategoryBriefSerializer(read_only=True)
    category_id = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(),
        source="category",
        write_only=True,
        error_messages={"does_not_exist": "Category not found."},
    )
    images = serializers.ListField(
        child=serializers.CharField(max_length=500),
        required=False,
        max_length=Product.MAX_IMAGES,
        error_messages={"max_length": f"Maximum {Product.MAX_IMAGES} images allowed."},
    )
    tags = serializers.ListField(
        child=serializers.CharField(max_length=60),
        required=False,
    )
    in_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "images",
            "brand",
            "size",
            "quantity",
            "price",
            "per_unit",
            "description",
            "sub_description",
            "review",
            "availability",
            "in_stock",
            "tags",
            "category",
            "category_id",
            "created_at",
            "updated_at",
        ]


class ProductQuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField(
        min_value=0, error_messages={"min_value": "Quantity cannot be negative."}
    )


class BulkAvailabilitySerializer(serializers.Serializer):
    product_ids = serializers.ListField(
        child=serializers.IntegerField(),
        allow_empty=False,
        error_messages={"empty": "Product IDs array cannot be empty."},
    )
    availability = serializers.BooleanField()


# --------- Blog ---------
class BlogReplySerializer(serializers.ModelSerializer):
    class Meta:
        model = BlogReply
        fields = ["id", "blog", "full_name", "email", "message", "created_at", "updated_at"]
        read_only_fields = ["blog", "created_at", "updated_at"]


class BlogSerializer(serializers.ModelSerializer):
    replies = BlogReplySerializer(many=True, read_only=True)

    class Meta:
        model = Blog
        fields = ["id", "title", "description", "quote", "image", "replies", "created_at", "updated_at"]


# --------- Testimonials ---------
class TestimonialSerializer(serializers.ModelSerializer):
    class Meta:
        model = Testimonial
        fields = ["id", "full_name", "position", "message", "rate", "profile_image", "created_at"]


# --------- Partners ---------
class PartnerSerializer(serializers.ModelSerializer):
    metadata = serializers.JSONField(required=False)

    class Meta:
        model = Partner
        fields = ["id", "name", "logo", "metadata", "created_at"]

    def validate_metadata(self, value):
        # multipart bodies carry the object as a JSON string
        if isinstance(value, str):
            if not value.strip():
                return {}
            try:
                value = json.loads(value)
            except ValueError:
                raise serializers.ValidationError("Must be a JSON object.")
        if not isinstance(value, dict):
            raise serializers.ValidationError("Must be a JSON object.")
        return value


# --------- Customers ---------
class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = ["id", "name", "email", "phone_number", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]


# ===========================
#  PAYMENT (READ)
# ===========================
class PaymentSerializer(serializers.ModelSerializer):
    order_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Payment
        fields = (
            "id",
            "order_id",
            "tx_ref",
            "tracking_id",
            "amount",
            "currency",
            "status",
            "payment_method",
            "created_at",
            "updated_at",
        )


# ===========================
#  ORDER / ITEMS (WRITE)
# ===========================
class OrderItemWriteSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField(
        min_value=1, error_messages={"min_value": "Must be >= 1."}
    )


class OrderCreateSerializer(serializers.ModelSerializer):
    """
    Checkout payload. Everything is checked before anything is written:
    customer info, at least one item, existing and available products,
    supported currency. Unit prices come from the product rows and the
    order amount is the sum of the item subtotals.
    """
    items = OrderItemWriteSerializer(many=True)

    class Meta:
        model = Order
        fields = ("id", "customer_name", "customer_email", "customer_phone", "currency", "items")
        read_only_fields = ("id",)

    def validate_customer_name(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("Customer name is required.")
        return value

    def validate_customer_phone(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("Customer phone is required.")
        return value

    def validate_customer_email(self, value):
        return (value or "").strip().lower()

    def validate_currency(self, value):
        value = (value or "").strip().upper()
        allowed = list(getattr(settings, "ORDER_CURRENCIES", ["RWF", "USD"]))
        if value not in allowed:
            raise serializers.ValidationError(f"Currency must be one of: {', '.join(allowed)}")
        return value

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required in the order.")
        return value

    def validate(self, attrs):
        items = attrs["items"]
        pids = {it["product_id"] for it in items}
        products = {p.id: p for p in Product.objects.filter(id__in=pids)}

        resolved = []
        for idx, item in enumerate(items):
            product = products.get(item["product_id"])
            if product is None:
                raise serializers.ValidationError(
                    {"items": [{"index": idx, "product_id": f"Product {item['product_id']} not found."}]}
                )
            if not product.availability:
                raise serializers.ValidationError(
                    {"items": [{"index": idx, "product_id": f"Product {product.id} is not available."}]}
                )
            resolved.append((product, item["quantity"], product.price))

        attrs["items"] = resolved
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        resolved = validated_data.pop("items")
        total = sum(price * qty for (_p, qty, price) in resolved)

        order = Order.objects.create(amount=total, status=Order.Status.PENDING, **validated_data)
        OrderItem.objects.bulk_create([
            OrderItem(order=order, product=p, price=price, quantity=qty, subtotal=price * qty)
            for (p, qty, price) in resolved
        ])
        return order

    def to_representation(self, instance):
        return OrderReadSerializer(instance, context=self.context).data


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.Status.choices)


# ===========================
#  ORDER / ITEMS (READ)
# ===========================
class OrderItemReadSerializer(serializers.ModelSerializer):
    product_id = serializers.IntegerField(read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = OrderItem
        fields = ("id", "product_id", "product_name", "price", "quantity", "subtotal")


class OrderReadSerializer(serializers.ModelSerializer):
    items = OrderItemReadSerializer(many=True, read_only=True)
    payment = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = (
            "id",
            "customer_name",
            "customer_email",
            "customer_phone",
            "amount",
            "currency",
            "status",
            "customer",
            "items",
            "payment",
            "created_at",
            "updated_at",
        )

    def get_payment(self, obj):
        try:
            payment = obj.payment
        except Payment.DoesNotExist:
            return None
        return PaymentSerializer(payment).data

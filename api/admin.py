# api/admin.py
from django.contrib import admin
from django.utils.html import format_html

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


# ===============================
# Helpers
# ===============================
def _thumb(url: str, size: int = 40) -> str:
    if not url:
        return "-"
    return format_html(
        '<img src="{}" style="height:{}px;width:{}px;object-fit:cover;border-radius:6px;" />',
        url, size, size,
    )


def _file_url(f) -> str:
    if f and getattr(f, "name", ""):
        try:
            return f.url
        except ValueError:
            return ""
    return ""


# ===============================
# Category
# ===============================
@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "sub_category", "status", "created_at")
    list_filter = ("status",)
    search_fields = ("name", "sub_category")


# ===============================
# Product
# ===============================
@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "brand", "price", "quantity", "availability", "category", "thumb")
    list_filter = ("availability", "category")
    search_fields = ("name", "brand", "description")
    actions = ["make_available", "make_unavailable"]

    def thumb(self, obj):
        images = obj.images or []
        return _thumb(images[0] if images else "")
    thumb.short_description = "Thumb"

    def make_available(self, request, queryset):
        queryset.update(availability=True)
    make_available.short_description = "Mark as available"

    def make_unavailable(self, request, queryset):
        queryset.update(availability=False)
    make_unavailable.short_description = "Mark as unavailable"


# ===============================
# Customer
# ===============================
@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "email", "phone_number", "created_at")
    search_fields = ("name", "email", "phone_number")


# ===============================
# Order / OrderItem / Payment
# ===============================
class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ("product", "price", "quantity", "subtotal")
    can_delete = False


class PaymentInline(admin.StackedInline):
    model = Payment
    extra = 0
    readonly_fields = ("tx_ref", "tracking_id", "amount", "currency", "status", "payment_method")
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "customer_name", "customer_email", "amount", "currency", "status", "payment_status", "created_at")
    list_filter = ("status", "currency")
    search_fields = ("customer_name", "customer_email", "customer_phone")
    inlines = [OrderItemInline, PaymentInline]
    actions = ["mark_as_cancelled"]

    def payment_status(self, obj):
        try:
            return obj.payment.status
        except Payment.DoesNotExist:
            return "-"
    payment_status.short_description = "Payment"

    def mark_as_cancelled(self, request, queryset):
        queryset.filter(status=Order.Status.PENDING).update(status=Order.Status.CANCELLED)
    mark_as_cancelled.short_description = "Cancel pending orders"


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("tx_ref", "order", "amount", "currency", "status", "payment_method", "created_at")
    list_filter = ("status", "payment_method")
    search_fields = ("tx_ref", "tracking_id")


# ===============================
# Content
# ===============================
class BlogReplyInline(admin.TabularInline):
    model = BlogReply
    extra = 0


@admin.register(Blog)
class BlogAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "created_at", "thumb")
    search_fields = ("title", "description")
    inlines = [BlogReplyInline]

    def thumb(self, obj):
        return _thumb(_file_url(obj.image))
    thumb.short_description = "Image"


@admin.register(Testimonial)
class TestimonialAdmin(admin.ModelAdmin):
    list_display = ("id", "full_name", "position", "rate", "created_at", "thumb")
    list_filter = ("rate",)
    search_fields = ("full_name", "position", "message")

    def thumb(self, obj):
        return _thumb(_file_url(obj.profile_image))
    thumb.short_description = "Photo"


@admin.register(Partner)
class PartnerAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "created_at", "thumb")
    search_fields = ("name",)

    def thumb(self, obj):
        return _thumb(_file_url(obj.logo))
    thumb.short_description = "Logo"

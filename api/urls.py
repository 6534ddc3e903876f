# api/urls.py: router for the CRUD resources + payment and customer endpoints

from django.http import JsonResponse
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import customer_views, payments
from .views import (
    BlogViewSet,
    CategoryViewSet,
    OrderViewSet,
    PartnerViewSet,
    ProductViewSet,
    TestimonialViewSet,
)


def health(_request):
    return JsonResponse({"service": "Storefront API", "status": "healthy"})


router = DefaultRouter()
router.register(r"products", ProductViewSet, basename="product")
router.register(r"categories", CategoryViewSet, basename="category")
router.register(r"orders", OrderViewSet, basename="order")
router.register(r"blogs", BlogViewSet, basename="blog")
router.register(r"testimonials", TestimonialViewSet, basename="testimonial")
router.register(r"partners", PartnerViewSet, basename="partner")


urlpatterns = [
    path("health/", health, name="health"),

    # Pesapal
    path("payments/ipn/", payments.payment_ipn, name="payment-ipn"),
    path("payments/callback/", payments.payment_callback, name="payment-callback"),
    path("payments/retry/<int:order_id>/", payments.retry_payment, name="payment-retry"),
    path("payments/status/<str:tx_ref>/", payments.payment_status, name="payment-status"),
    path("payments/<str:tx_ref>/", payments.payment_detail, name="payment-detail"),

    # customers
    path("customers/lookup/", customer_views.customer_lookup, name="customer-lookup"),
    path("customers/<int:pk>/", customer_views.customer_detail, name="customer-detail"),

    path("", include(router.urls)),
]

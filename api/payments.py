# api/payments.py: Pesapal checkout: payment creation, IPN reconciliation, callback redirect, retry, status
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlencode

from django.conf import settings
from django.db import transaction
from django.http import HttpRequest, HttpResponseRedirect
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .models import Customer, Order, Payment, Product, new_tx_ref
from .notifications import public_front_base, send_payment_success_email
from .pesapal import PesapalClient, PesapalError
from .serializers import PaymentSerializer

logger = logging.getLogger(__name__)

GATEWAY_COMPLETED = "COMPLETED"


# ======================================================================
# Utils
# ======================================================================
def _amount(value: Decimal) -> float:
    return float(Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))

def _public_api_base() -> str:
    return getattr(settings, "PUBLIC_API_BASE", "").rstrip("/") or "http://127.0.0.1:8000/api"

def _order_request_payload(order: Order, payment: Payment) -> Dict[str, Any]:
    return {
        "id": payment.tx_ref,
        "currency": order.currency,
        "amount": _amount(order.amount),
        "description": f"Order #{order.id}",
        "callback_url": f"{_public_api_base()}/payments/callback/",
        "notification_id": settings.PESAPAL_NOTIFICATION_ID,
        "billing_address": {
            "email_address": order.customer_email,
            "phone_number": order.customer_phone,
            "country_code": settings.PESAPAL_COUNTRY_CODE,
            "first_name": order.first_name,
            "last_name": order.last_name,
        },
    }


# ======================================================================
# Payment creation (checkout and retry)
# ======================================================================
def create_payment(order: Order, client: Optional[PesapalClient] = None) -> Tuple[Payment, str]:
    """
    Opens (or re-opens) the order's payment with the gateway and returns
    (payment, checkout_url). Each call issues a fresh merchant reference,
    so an older checkout link no longer matches the payment row.
    """
    client = client or PesapalClient()
    token = client.request_token()

    payment, created = Payment.objects.update_or_create(
        order=order,
        defaults={
            "tx_ref": new_tx_ref(),
            "tracking_id": "",
            "amount": order.amount,
            "currency": order.currency,
            "status": Payment.Status.PENDING,
            "payment_method": "PESAPAL",
        },
    )
    logger.info(
        "%s payment %s for order %s (%s %s)",
        "Created" if created else "Refreshed", payment.tx_ref, order.id, order.amount, order.currency,
    )

    link = client.submit_order(token, _order_request_payload(order, payment))
    return payment, link


# ======================================================================
# IPN (gateway notification): the only place a payment is confirmed
# ======================================================================
def _verified_status(tracking_id: str, client: Optional[PesapalClient] = None) -> Dict[str, Any]:
    client = client or PesapalClient()
    token = client.request_token()
    return client.transaction_status(token, tracking_id)


def _matches_payment(data: Mapping[str, Any], payment: Payment) -> bool:
    """The gateway's transaction must be this payment: same reference, amount and currency."""
    reference = str(data.get("merchant_reference") or "").strip()
    if reference != payment.tx_ref:
        logger.warning(
            "IPN for %s ignored, gateway reports reference %r", payment.tx_ref, reference,
        )
        return False

    try:
        amount = Decimal(str(data.get("amount"))).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        amount = None
    currency = str(data.get("currency") or "").strip().upper()
    if amount != payment.amount or currency != payment.currency.upper():
        logger.warning(
            "IPN for %s ignored, gateway reports %s %s for a %s %s payment",
            payment.tx_ref, data.get("amount"), currency or "?", payment.amount, payment.currency,
        )
        return False
    return True


def handle_ipn(payload: Mapping[str, Any], client: Optional[PesapalClient] = None) -> Optional[Payment]:
    """
    Reconciles a gateway notification.

    Only a COMPLETED status for a known, still PENDING payment has an effect:
    payment -> SUCCESSFUL, stock decremented, customer found-or-created,
    order -> COMPLETED. With PESAPAL_VERIFY_IPN the status is read back
    from the gateway and must describe this very payment. The e-mail goes
    out once the transaction commits; its failure does not undo the
    payment. Returns the payment when it was confirmed.
    """
    reference = str(payload.get("OrderMerchantReference") or "").strip()
    tracking_id = str(payload.get("OrderTrackingId") or "").strip()
    gateway_status = str(payload.get("Status") or "").strip().upper()
    verify = settings.PESAPAL_VERIFY_IPN

    if verify and not tracking_id:
        logger.warning("IPN for %s ignored, no tracking id to verify", reference or "?")
        return None
    if not verify and gateway_status != GATEWAY_COMPLETED:
        logger.info("IPN for %s ignored (status=%r)", reference or "?", gateway_status)
        return None

    payment = Payment.objects.filter(tx_ref=reference).first()
    if payment is None:
        logger.warning("IPN for unknown payment reference %r", reference)
        return None
    if payment.status == Payment.Status.SUCCESSFUL:
        logger.info("IPN for %s ignored, payment already successful", reference)
        return None

    if verify:
        data = _verified_status(tracking_id, client)
        gateway_status = str(data.get("payment_status_description") or "").strip().upper()
        if gateway_status != GATEWAY_COMPLETED:
            logger.info("IPN for %s ignored (gateway status=%r)", reference, gateway_status)
            return None
        if not _matches_payment(data, payment):
            return None

    with transaction.atomic():
        payment = Payment.objects.select_for_update().select_related("order").get(pk=payment.pk)
        if payment.status == Payment.Status.SUCCESSFUL:
            return None

        payment.status = Payment.Status.SUCCESSFUL
        if tracking_id:
            payment.tracking_id = tracking_id
        payment.save(update_fields=["status", "tracking_id", "updated_at"])

        order = payment.order
        for item in order.items.all():
            product = Product.objects.select_for_update().get(pk=item.product_id)
            product.quantity = max(0, product.quantity - item.quantity)
            product.save(update_fields=["quantity", "availability", "updated_at"])
            logger.info("Stock of product %s is now %s", product.id, product.quantity)

        customer, created = Customer.objects.get_or_create(
            email=order.customer_email.lower(),
            defaults={"name": order.customer_name, "phone_number": order.customer_phone},
        )
        if created:
            logger.info("Created customer %s for order %s", customer.id, order.id)

        order.status = Order.Status.COMPLETED
        order.customer = customer
        order.save(update_fields=["status", "customer", "updated_at"])

        transaction.on_commit(lambda: send_payment_success_email(customer, order))

    logger.info("Payment %s confirmed, order %s completed", payment.tx_ref, order.id)
    return payment


# ---------- Endpoints ----------
@csrf_exempt
@api_view(["GET", "POST"])
@permission_classes([AllowAny])
def payment_ipn(request: HttpRequest):
    """
    POST /api/payments/ipn/ (GET when the IPN was registered as GET)
    Body/query: { OrderTrackingId, OrderMerchantReference, Status }
    """
    data = request.data if request.method == "POST" else request.query_params
    logger.info("Pesapal IPN received: %s", dict(data))

    try:
        handle_ipn(data)
    except PesapalError as e:
        # non-200 makes the gateway send the notification again
        return Response({"detail": str(e)}, status=status.HTTP_502_BAD_GATEWAY)

    return Response({
        "orderNotificationType": data.get("OrderNotificationType") or "IPNCHANGE",
        "orderTrackingId": data.get("OrderTrackingId") or "",
        "orderMerchantReference": data.get("OrderMerchantReference") or "",
        "status": 200,
    }, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes([AllowAny])
def payment_callback(request: HttpRequest):
    """
    GET /api/payments/callback/?OrderTrackingId=..&OrderMerchantReference=..
    Browser redirect after checkout. Does NOT touch the database; the
    storefront polls /payments/status/<tx_ref>/ until the IPN lands.
    """
    params = {"status": "processing"}
    for key in ("OrderTrackingId", "OrderMerchantReference", "OrderNotificationType"):
        value = request.query_params.get(key)
        if value:
            params[key] = value
    return HttpResponseRedirect(f"{public_front_base()}/payment-status?{urlencode(params)}")


@api_view(["POST"])
@permission_classes([AllowAny])
def retry_payment(request: HttpRequest, order_id: int):
    """POST /api/payments/retry/<order_id>/: new checkout link for an unpaid order."""
    order = get_object_or_404(Order, pk=order_id)

    if order.status != Order.Status.PENDING:
        return Response(
            {"detail": f"Payment retry is not available for {order.status.lower()} orders."},
            status=status.HTTP_400_BAD_REQUEST,
        )
    existing = Payment.objects.filter(order=order).first()
    if existing and existing.status == Payment.Status.SUCCESSFUL:
        return Response({"detail": "Order is already paid."}, status=status.HTTP_400_BAD_REQUEST)

    try:
        payment, link = create_payment(order)
    except PesapalError as e:
        return Response({"detail": str(e)}, status=status.HTTP_502_BAD_GATEWAY)

    return Response({
        "message": "Payment link regenerated.",
        "payment_id": payment.tx_ref,
        "link": link,
    })


@api_view(["GET"])
@permission_classes([AllowAny])
def payment_status(request: HttpRequest, tx_ref: str):
    """GET /api/payments/status/<tx_ref>/: polled by the payment status page."""
    payment = Payment.objects.filter(tx_ref=tx_ref).only("status").first()
    if payment is None:
        return Response({"detail": "Payment not found"}, status=status.HTTP_404_NOT_FOUND)
    return Response({"status": payment.status})


@api_view(["GET"])
@permission_classes([AllowAny])
def payment_detail(request: HttpRequest, tx_ref: str):
    payment = get_object_or_404(Payment, tx_ref=tx_ref)
    return Response(PaymentSerializer(payment).data)

# api/notifications.py: customer e-mails (never break the caller)
from __future__ import annotations

import logging

from django.conf import settings
from django.core.mail import EmailMultiAlternatives, get_connection
from django.template import TemplateDoesNotExist
from django.template.loader import render_to_string
from django.utils import timezone

from .models import Customer, Order

logger = logging.getLogger(__name__)


def public_front_base() -> str:
    return getattr(settings, "PUBLIC_FRONT_BASE", "").rstrip("/") or "http://127.0.0.1:5173"


def send_payment_success_email(customer: Customer, order: Order) -> bool:
    """
    Sends the "Payment Successful" e-mail for a completed order.
    - Missing template -> plain fallback text.
    - Backend failure -> False (the payment stays committed).
    """
    payment = getattr(order, "payment", None)
    ctx = {
        "name": customer.name,
        "order": order,
        "order_id": order.id,
        "amount": order.amount,
        "currency": order.currency,
        "payment_method": "Pesapal" if payment is None else payment.payment_method.title(),
        "order_url": f"{public_front_base()}/orders/{order.id}",
        "year": timezone.now().year,
    }

    subject = "Payment Successful"
    from_email = getattr(settings, "DEFAULT_FROM_EMAIL", "no-reply@abyride.com")
    to = [customer.email]

    try:
        html = render_to_string("emails/payment_success.html", ctx)
    except TemplateDoesNotExist:
        html = (
            f"<p>Hello {customer.name},</p>"
            f"<p>We received your payment of {order.amount} {order.currency} "
            f"for order #{order.id}.</p>"
        )

    try:
        txt = render_to_string("emails/payment_success.txt", ctx)
    except TemplateDoesNotExist:
        txt = (
            f"Hello {customer.name},\n\n"
            f"We received your payment of {order.amount} {order.currency} for order #{order.id}.\n"
        )

    try:
        with get_connection() as conn:
            msg = EmailMultiAlternatives(subject, txt, from_email, to, connection=conn)
            msg.attach_alternative(html, "text/html")
            msg.send(fail_silently=False)
    except Exception:
        logger.exception("Payment e-mail for order %s to %s failed", order.id, customer.email)
        return False

    logger.info("Payment e-mail sent for order %s to %s", order.id, customer.email)
    return True

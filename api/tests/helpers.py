from decimal import Decimal
from unittest import mock

from api.models import Category, Order, OrderItem, Payment, Product

# smallest valid GIF, enough for ImageField validation
TINY_GIF = (
    b"GIF89a\x01\x00\x01\x00\x80\x00\x00\x00\x00\x00\xff\xff\xff!\xf9\x04\x01\x00"
    b"\x00\x00\x00,\x00\x00\x00\x00\x01\x00\x01\x00\x00\x02\x02D\x01\x00;"
)

CHECKOUT_URL = "https://pay.pesapal.test/iframe?OrderTrackingId=trk-1"


def make_category(name="Shoes", **kwargs):
    return Category.objects.create(name=name, **kwargs)


def make_product(name="Sneaker", price="2500.00", quantity=10, category=None, **kwargs):
    return Product.objects.create(
        name=name,
        price=Decimal(price),
        quantity=quantity,
        category=category,
        **kwargs,
    )


def make_order(items, customer_name="Aline Uwase", customer_email="aline@example.com",
               currency="RWF", status=Order.Status.PENDING, with_payment=True):
    """items: list of (product, quantity)."""
    amount = sum((p.price * qty for p, qty in items), Decimal("0"))
    order = Order.objects.create(
        customer_name=customer_name,
        customer_email=customer_email,
        customer_phone="+250788000000",
        amount=amount,
        currency=currency,
        status=status,
    )
    for product, qty in items:
        OrderItem.objects.create(order=order, product=product, price=product.price, quantity=qty)
    if with_payment:
        Payment.objects.create(order=order, amount=amount, currency=currency)
    return order


def gateway_client(link=CHECKOUT_URL):
    client = mock.Mock()
    client.request_token.return_value = "token-123"
    client.submit_order.return_value = link
    return client

# api/models.py: Category, Product, Customer, Order, OrderItem, Payment, Blog, BlogReply, Testimonial, Partner
import uuid
from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


# --------- Categories ---------
class Category(models.Model):
    STATUS_CHOICES = [
        ("active", "Active"),
        ("inactive", "Inactive"),
    ]

    name = models.CharField(max_length=120, unique=True)
    sub_category = models.CharField(max_length=120, blank=True, default="")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="active")
    image = models.ImageField(upload_to="categories/", blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"

    def __str__(self):
        return self.name


# --------- Products ---------
class Product(models.Model):
    MAX_IMAGES = 4

    name = models.CharField(max_length=255)
    category = models.ForeignKey(
        Category, related_name="products", on_delete=models.SET_NULL, null=True, blank=True
    )
    brand = models.CharField(max_length=120, blank=True, default="")
    size = models.CharField(max_length=60, blank=True, default="")
    quantity = models.PositiveIntegerField(default=0)
    price = models.DecimalField(
        max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal("0"))]
    )
    per_unit = models.CharField(max_length=60, blank=True, default="")
    description = models.TextField(blank=True, default="")
    sub_description = models.TextField(blank=True, null=True)
    review = models.DecimalField(
        max_digits=2,
        decimal_places=1,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("5"))],
    )
    availability = models.BooleanField(default=True)

    # image URLs (max 4) and free tags, both stored as JSON arrays
    images = models.JSONField(default=list, blank=True)
    tags = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.name} ({self.brand})" if self.brand else self.name

    @property
    def in_stock(self) -> bool:
        return self.availability and self.quantity > 0


# --------- Customers (purchasing users) ---------
class Customer(models.Model):
    """
    Buyer record. Created from the order data the first time a payment
    for that e-mail succeeds; later orders reuse it.
    """
    name = models.CharField(max_length=255)
    email = models.EmailField(max_length=255, unique=True, db_index=True)
    phone_number = models.CharField(max_length=20, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.name} <{self.email}>"


# --------- Orders ---------
class Order(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        COMPLETED = "COMPLETED", "Completed"
        CANCELLED = "CANCELLED", "Cancelled"

    customer_name = models.CharField(max_length=255)
    customer_email = models.EmailField(max_length=255)
    customer_phone = models.CharField(max_length=20)
    amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0"))
    currency = models.CharField(max_length=3)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    customer = models.ForeignKey(
        Customer, related_name="orders", on_delete=models.SET_NULL, null=True, blank=True
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"Order #{self.id} - {self.customer_name}"

    @property
    def first_name(self) -> str:
        return ((self.customer_name or "").split() or [""])[0]

    @property
    def last_name(self) -> str:
        return " ".join((self.customer_name or "").split()[1:]) or "N/A"


class OrderItem(models.Model):
    order = models.ForeignKey(Order, related_name="items", on_delete=models.CASCADE)
    product = models.ForeignKey(Product, related_name="order_items", on_delete=models.PROTECT)
    # unit price at the time of the order
    price = models.DecimalField(max_digits=12, decimal_places=2)
    quantity = models.PositiveIntegerField(default=1)
    subtotal = models.DecimalField(max_digits=14, decimal_places=2)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.quantity}x {self.product.name} on Order #{self.order_id}"

    def save(self, *args, **kwargs):
        self.subtotal = self.price * self.quantity
        super().save(*args, **kwargs)


# --------- Payments ---------
def new_tx_ref() -> str:
    return f"rw-{uuid.uuid4()}"


class Payment(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        SUCCESSFUL = "SUCCESSFUL", "Successful"

    order = models.OneToOneField(Order, related_name="payment", on_delete=models.CASCADE)
    # merchant reference sent to the gateway; comes back on the IPN
    tx_ref = models.CharField(max_length=64, unique=True, default=new_tx_ref)
    tracking_id = models.CharField(max_length=64, blank=True, default="")
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    currency = models.CharField(max_length=3)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    payment_method = models.CharField(max_length=30, default="PESAPAL")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.tx_ref} ({self.status})"


# --------- Blog ---------
class Blog(models.Model):
    title = models.CharField(max_length=255)
    description = models.TextField()
    quote = models.TextField(blank=True, default="")
    image = models.ImageField(upload_to="blogs/", blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.title


class BlogReply(models.Model):
    blog = models.ForeignKey(Blog, related_name="replies", on_delete=models.CASCADE)
    full_name = models.CharField(max_length=255)
    email = models.EmailField(max_length=255)
    message = models.TextField()

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at", "id"]
        verbose_name_plural = "blog replies"

    def __str__(self):
        return f"{self.full_name} on {self.blog}"


# --------- Testimonials ---------
class Testimonial(models.Model):
    full_name = models.CharField(max_length=255)
    position = models.CharField(max_length=255, blank=True, default="")
    message = models.TextField()
    rate = models.PositiveSmallIntegerField(
        default=5, validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    profile_image = models.ImageField(upload_to="testimonials/", blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.full_name} ({self.rate}/5)"


# --------- Partners ---------
class Partner(models.Model):
    name = models.CharField(max_length=255, blank=True, default="")
    logo = models.ImageField(upload_to="partner-photos/", blank=True, null=True)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.name or f"Partner #{self.pk}"

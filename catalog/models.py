"""Catalog app models.

Defines grocery categories and products. Products carry their own stock
counter; every change to it goes through `inventory.services` so it is
journalled as a `StockMovement`.
Customer reviews roll up into `rating_average` and `rating_count` on the
product.
"""

from decimal import Decimal

from common.choices import LifecycleState, ProductUnit
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Category(TimeStampedModel):
    """Hierarchical product categorization."""

    STATE_ACTIVE = LifecycleState.ACTIVE
    STATE_RETIRED = LifecycleState.RETIRED
    STATE_CHOICES = LifecycleState.choices

    name = models.CharField(max_length=120)
    slug = models.SlugField(max_length=140, unique=True)
    description = models.TextField(blank=True)
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        related_name="children",
        on_delete=models.SET_NULL,
    )
    state = models.CharField(max_length=16, choices=STATE_CHOICES, default=STATE_ACTIVE, db_index=True)
    sort_order = models.IntegerField(default=0)

    class Meta:
        ordering = ["sort_order", "name"]
        verbose_name_plural = "categories"

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class Product(TimeStampedModel):
    """Sellable grocery item with price and stock on hand."""

    STATE_ACTIVE = LifecycleState.ACTIVE
    STATE_RETIRED = LifecycleState.RETIRED
    STATE_CHOICES = LifecycleState.choices
    UNIT_CHOICES = ProductUnit.choices

    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=120, unique=True)
    description = models.TextField(blank=True)
    category = models.ForeignKey(Category, related_name="products", on_delete=models.PROTECT)
    brand = models.CharField(max_length=80, blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    original_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    stock = models.IntegerField(default=0)
    unit = models.CharField(max_length=8, choices=UNIT_CHOICES, default=ProductUnit.PIECE)
    unit_value = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal("1.00"))
    image_url = models.URLField(blank=True)
    tags = models.JSONField(default=list, blank=True)
    is_vegetarian = models.BooleanField(default=True)
    featured = models.BooleanField(default=False, db_index=True)
    delivery_time = models.PositiveIntegerField(default=30, help_text="Minutes")
    low_stock_alert = models.PositiveIntegerField(default=10)
    rating_average = models.DecimalField(max_digits=2, decimal_places=1, default=Decimal("0.0"))
    rating_count = models.PositiveIntegerField(default=0)
    state = models.CharField(max_length=16, choices=STATE_CHOICES, default=STATE_ACTIVE, db_index=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(name="product_stock_non_negative", condition=models.Q(stock__gte=0)),
            models.CheckConstraint(name="product_price_non_negative", condition=models.Q(price__gte=0)),
        ]
        indexes = [
            models.Index(fields=["category", "price"]),
            models.Index(fields=["featured", "created_at"]),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return self.name

    @property
    def is_active(self) -> bool:
        return self.state == self.STATE_ACTIVE

    @property
    def discount_percentage(self) -> int:
        if not self.original_price or self.original_price <= 0:
            return 0
        return int(round((self.original_price - self.price) / self.original_price * 100))


class ProductReview(TimeStampedModel):
    """One customer's 1-5 star rating of a product, optionally tied to the order it came in."""

    product = models.ForeignKey(Product, related_name="reviews", on_delete=models.CASCADE)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="product_reviews", on_delete=models.CASCADE)
    order = models.ForeignKey(
        "orders.Order", null=True, blank=True, related_name="reviews", on_delete=models.SET_NULL
    )
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.CharField(max_length=500, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(fields=["product", "user"], name="uniq_review_product_user"),
            models.CheckConstraint(name="review_rating_range", condition=models.Q(rating__gte=1, rating__lte=5)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.rating}* {self.product_id} by {self.user_id}"

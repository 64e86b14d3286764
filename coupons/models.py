"""Coupon models.

A coupon's ``used_count`` only ever increases, and only inside the unit of
work that creates the order using it.
"""

from decimal import Decimal

from common.choices import DiscountType, LifecycleState
from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Coupon(TimeStampedModel):
    TYPE_PERCENTAGE = DiscountType.PERCENTAGE
    TYPE_FIXED = DiscountType.FIXED
    TYPE_CHOICES = DiscountType.choices
    STATE_ACTIVE = LifecycleState.ACTIVE
    STATE_RETIRED = LifecycleState.RETIRED
    STATE_CHOICES = LifecycleState.choices

    code = models.CharField(max_length=32, unique=True)
    description = models.CharField(max_length=255, blank=True)
    discount_type = models.CharField(max_length=16, choices=TYPE_CHOICES)
    discount_value = models.DecimalField(max_digits=12, decimal_places=2)
    max_discount = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True, help_text="Cap for percentage coupons"
    )
    min_order_value = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    valid_from = models.DateTimeField()
    valid_until = models.DateTimeField()
    usage_limit = models.PositiveIntegerField(null=True, blank=True)
    used_count = models.PositiveIntegerField(default=0)
    # Stored for reporting; not enforced at checkout
    user_usage_limit = models.PositiveIntegerField(default=1)
    categories = models.ManyToManyField("catalog.Category", blank=True, related_name="coupons")
    products = models.ManyToManyField("catalog.Product", blank=True, related_name="coupons")
    excluded_products = models.ManyToManyField("catalog.Product", blank=True, related_name="excluded_from_coupons")
    state = models.CharField(max_length=16, choices=STATE_CHOICES, default=STATE_ACTIVE, db_index=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="coupons_created"
    )

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(name="coupon_value_positive", condition=models.Q(discount_value__gt=0)),
            models.CheckConstraint(
                name="coupon_window_ordered", condition=models.Q(valid_until__gte=models.F("valid_from"))
            ),
        ]
        indexes = [
            models.Index(fields=["state", "valid_until"]),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return self.code

    def save(self, *args, **kwargs):
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

"""Customer domain models.

Holds the per-user address book and wishlist. Orders never reference an address row;
they store a snapshot produced by ``Address.snapshot()`` so later edits to
the address book do not rewrite order history.
"""

from django.conf import settings
from django.core.validators import RegexValidator
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Address(TimeStampedModel):
    """Delivery address tied to a user.

    - Store `country_code` as ISO 3166-1 alpha-2 uppercase.
    - At most one address per user is flagged `is_default`.
    """

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="addresses")
    name = models.CharField(
        max_length=120,
        blank=True,
        help_text="Optional recipient or label for the address",
    )
    addr1 = models.CharField(max_length=120)
    addr2 = models.CharField(max_length=120, blank=True)
    landmark = models.CharField(max_length=120, blank=True)
    city = models.CharField(max_length=80)
    state = models.CharField(max_length=40, blank=True)
    postal_code = models.CharField(
        max_length=12,
        validators=[RegexValidator(r"^[A-Za-z0-9\- ]{3,12}$", message="Use standard alphanumeric postal/zip code")],
    )
    country_code = models.CharField(
        max_length=2,
        default="IN",
        validators=[RegexValidator(r"^[A-Z]{2}$", message="Use ISO 3166-1 alpha-2 country code (e.g., IN)")],
        help_text="ISO 3166-1 alpha-2",
    )
    phone = models.CharField(
        max_length=16,
        blank=True,
        validators=[RegexValidator(r"^\+?[1-9]\d{1,14}$", message="Use E.164 format (e.g., +919812345678)")],
        help_text="Contact number for this specific address/recipient",
    )
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    is_default = models.BooleanField(default=False)

    class Meta:
        indexes = [
            models.Index(fields=["user", "city"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["user"],
                condition=models.Q(is_default=True),
                name="one_default_address_per_user",
            )
        ]

    def __str__(self) -> str:  # pragma: no cover
        parts = [self.addr1, self.addr2, self.city, self.state, self.postal_code, self.country_code]
        return f"{self.name or ''} - " + ", ".join([p for p in parts if p])

    def shipping_contact(self) -> str | None:
        """Return the delivery contact phone: this address's phone, else the user's."""

        from .services import resolve_shipping_contact

        return resolve_shipping_contact(self)

    def snapshot(self) -> dict:
        """Return a detached copy of this address for embedding in an order."""

        return {
            "name": self.name,
            "addr1": self.addr1,
            "addr2": self.addr2,
            "landmark": self.landmark,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country_code": self.country_code,
            "phone": self.shipping_contact() or "",
            "latitude": str(self.latitude) if self.latitude is not None else None,
            "longitude": str(self.longitude) if self.longitude is not None else None,
        }


class WishlistItem(models.Model):
    """A product the user saved for later. One row per (user, product)."""

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="wishlist_items")
    product = models.ForeignKey("catalog.Product", on_delete=models.CASCADE, related_name="wishlisted_by")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(fields=["user", "product"], name="uniq_wishlist_user_product"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"wishlist user={self.user_id} product={self.product_id}"

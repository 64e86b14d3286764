"""Serializers for the customer domain.

Address.phone is an optional E.164 number used as a per-address override.
When not provided, downstream consumers fall back to `users.User.phone`.
"""

from catalog.serializers import ProductListSerializer
from drf_spectacular.utils import OpenApiExample, extend_schema_serializer
from rest_framework import serializers

from .models import Address, WishlistItem

__all__ = ["AddressSerializer", "WishlistAddSerializer", "WishlistItemSerializer"]


@extend_schema_serializer(
    examples=[
        OpenApiExample(
            "Address with phone override",
            value={
                "id": 10,
                "name": "Home",
                "addr1": "12 MG Road",
                "addr2": "Flat 4B",
                "landmark": "Near metro station",
                "city": "Bengaluru",
                "state": "KA",
                "postal_code": "560001",
                "country_code": "IN",
                "phone": "+919812345678",
                "latitude": "12.975300",
                "longitude": "77.605100",
                "is_default": True,
                "effective_contact_phone": "+919812345678",
            },
            response_only=True,
        ),
    ]
)
class AddressSerializer(serializers.ModelSerializer):
    """Serialize delivery addresses with a computed contact phone.

    `effective_contact_phone` is read-only, using precedence
    Address.phone, then User.phone, then None.
    """

    effective_contact_phone = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Address
        fields = (
            "id",
            "name",
            "addr1",
            "addr2",
            "landmark",
            "city",
            "state",
            "postal_code",
            "country_code",
            "phone",
            "latitude",
            "longitude",
            "is_default",
            "effective_contact_phone",
        )
        read_only_fields = ("id", "is_default", "effective_contact_phone")

    def get_effective_contact_phone(self, obj: Address) -> str | None:
        return obj.shipping_contact()

    def validate_phone(self, value: str | None) -> str | None:
        if value is None:
            return value
        return value.strip()

    def to_internal_value(self, data):
        # Upper-case before the model's ISO pattern validator sees the value
        country = data.get("country_code") if hasattr(data, "get") else None
        if isinstance(country, str):
            data = data.copy()
            data["country_code"] = country.strip().upper()
        return super().to_internal_value(data)


class WishlistItemSerializer(serializers.ModelSerializer):
    product = ProductListSerializer()
    added_at = serializers.DateTimeField(source="created_at")

    class Meta:
        model = WishlistItem
        fields = ("product", "added_at")


class WishlistAddSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(min_value=1)

from catalog.models import Category, Product
from common.serializers import ColumnUpdateMixin
from rest_framework import serializers

from .models import Coupon


class CouponSerializer(serializers.ModelSerializer):
    """Public view of a coupon, as returned by the validate endpoint."""

    class Meta:
        model = Coupon
        fields = [
            "code",
            "description",
            "discount_type",
            "discount_value",
            "max_discount",
            "min_order_value",
            "valid_until",
        ]


class CouponPreviewSerializer(serializers.Serializer):
    coupon = CouponSerializer()
    discount = serializers.DecimalField(max_digits=12, decimal_places=2)
    final_amount = serializers.DecimalField(max_digits=12, decimal_places=2)


class CouponAdminSerializer(ColumnUpdateMixin, serializers.ModelSerializer):
    live_fields = ("used_count",)
    categories = serializers.PrimaryKeyRelatedField(queryset=Category.objects.all(), many=True, required=False)
    products = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all(), many=True, required=False)
    excluded_products = serializers.PrimaryKeyRelatedField(
        queryset=Product.objects.all(), many=True, required=False
    )

    class Meta:
        model = Coupon
        fields = [
            "id",
            "code",
            "description",
            "discount_type",
            "discount_value",
            "max_discount",
            "min_order_value",
            "valid_from",
            "valid_until",
            "usage_limit",
            "used_count",
            "user_usage_limit",
            "categories",
            "products",
            "excluded_products",
            "state",
            "created_at",
        ]
        read_only_fields = ["used_count", "created_at"]

    def validate_code(self, value):
        code = value.strip().upper()
        qs = Coupon.objects.filter(code=code)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Coupon code already exists.")
        return code

    def validate(self, attrs):
        valid_from = attrs.get("valid_from", getattr(self.instance, "valid_from", None))
        valid_until = attrs.get("valid_until", getattr(self.instance, "valid_until", None))
        if valid_from and valid_until and valid_until < valid_from:
            raise serializers.ValidationError({"valid_until": "Must not be before valid_from."})
        discount_type = attrs.get("discount_type", getattr(self.instance, "discount_type", None))
        value = attrs.get("discount_value", getattr(self.instance, "discount_value", None))
        if value is not None and value <= 0:
            raise serializers.ValidationError({"discount_value": "Must be positive."})
        if discount_type == Coupon.TYPE_PERCENTAGE and value is not None and value > 100:
            raise serializers.ValidationError({"discount_value": "Percentage cannot exceed 100."})
        return attrs

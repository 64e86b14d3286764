"""Admin serializers for write endpoints in the catalog app.

Provide ModelSerializers with writable relationships for store admins.
"""

from common.serializers import ColumnUpdateMixin
from rest_framework import serializers

from .models import Category, Product


class CategoryAdminSerializer(ColumnUpdateMixin, serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = [
            "id",
            "name",
            "slug",
            "description",
            "parent",
            "state",
            "sort_order",
        ]


class ProductAdminSerializer(ColumnUpdateMixin, serializers.ModelSerializer):
    live_fields = ("stock",)
    category = serializers.PrimaryKeyRelatedField(queryset=Category.objects.all())

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "slug",
            "description",
            "category",
            "brand",
            "price",
            "original_price",
            "stock",
            "unit",
            "unit_value",
            "image_url",
            "tags",
            "is_vegetarian",
            "featured",
            "delivery_time",
            "low_stock_alert",
            "state",
        ]
        # Stock changes go through the inventory adjustment endpoint so they are journalled.
        read_only_fields = ["stock"]

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Price must be non-negative.")
        return value

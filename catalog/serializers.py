"""Serializers for the public catalog API."""

from rest_framework import serializers

from .models import Category, Product, ProductReview


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name", "slug", "description", "parent", "sort_order"]


class ProductListSerializer(serializers.ModelSerializer):
    category = serializers.SerializerMethodField()
    in_stock = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "slug",
            "price",
            "original_price",
            "discount_percentage",
            "unit",
            "unit_value",
            "image_url",
            "category",
            "in_stock",
            "featured",
            "rating_average",
            "rating_count",
        ]

    def get_category(self, obj):
        return {"name": obj.category.name, "slug": obj.category.slug}

    def get_in_stock(self, obj) -> bool:
        return obj.stock > 0


class ProductDetailSerializer(serializers.ModelSerializer):
    category = CategorySerializer()

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "slug",
            "description",
            "brand",
            "price",
            "original_price",
            "discount_percentage",
            "stock",
            "unit",
            "unit_value",
            "image_url",
            "tags",
            "is_vegetarian",
            "featured",
            "delivery_time",
            "rating_average",
            "rating_count",
            "category",
        ]


class ProductReviewSerializer(serializers.ModelSerializer):
    reviewer = serializers.SerializerMethodField()

    class Meta:
        model = ProductReview
        fields = ["id", "reviewer", "rating", "comment", "created_at"]

    def get_reviewer(self, obj) -> str:
        return obj.user.get_full_name() or obj.user.username


class ReviewCreateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(max_length=500, required=False, allow_blank=True, default="", trim_whitespace=True)
    order_id = serializers.CharField(max_length=32, required=False, allow_blank=True)

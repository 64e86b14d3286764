"""Cart serializers for read and write operations."""

from rest_framework import serializers

from .models import CartItem
from .selectors import cart_summary
from .services import add_item, update_item_quantity

MONEY = {"max_digits": 12, "decimal_places": 2}


class CartItemReadSerializer(serializers.ModelSerializer):
    product_id = serializers.IntegerField(source="product.id")
    name = serializers.CharField(source="product.name")
    image_url = serializers.CharField(source="product.image_url")
    unit = serializers.CharField(source="product.unit")
    unit_value = serializers.DecimalField(source="product.unit_value", max_digits=8, decimal_places=2)
    in_stock = serializers.SerializerMethodField()
    line_total = serializers.DecimalField(read_only=True, **MONEY)

    class Meta:
        model = CartItem
        fields = [
            "id",
            "product_id",
            "name",
            "image_url",
            "unit",
            "unit_value",
            "quantity",
            "price",
            "line_total",
            "in_stock",
        ]

    def get_in_stock(self, obj) -> bool:
        return obj.product.stock >= obj.quantity


class CartReadSerializer(serializers.Serializer):
    """Cart lines with a checkout price preview.

    The preview applies delivery fee and tax only; coupons and wallet are
    applied when the order is placed.
    """

    id = serializers.IntegerField()
    items = CartItemReadSerializer(many=True)
    item_count = serializers.IntegerField()
    total_quantity = serializers.IntegerField()
    items_total = serializers.DecimalField(**MONEY)
    delivery_fee = serializers.DecimalField(**MONEY)
    tax = serializers.DecimalField(**MONEY)
    grand_total = serializers.DecimalField(**MONEY)
    free_delivery_remaining = serializers.DecimalField(**MONEY)

    @classmethod
    def from_cart(cls, *, cart):
        return cls(cart_summary(cart=cart))


class AddItemSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)

    def create(self, validated_data):  # type: ignore[override]
        return add_item(user=self.context["request"].user, **validated_data)


class UpdateItemQuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)

    def update(self, instance, validated_data):  # type: ignore[override]
        user = self.context["request"].user
        return update_item_quantity(user=user, item_id=instance.id, quantity=validated_data["quantity"])

"""DRF serializers for orders.

Read serializers expose the stored price summary as a nested object; the
create serializer only validates input shape, the workflow does the rest.
"""

from decimal import Decimal

from common.choices import PaymentMethod
from rest_framework import serializers

from .models import Order, OrderItem
from .services import order_timeline


class OrderItemSerializer(serializers.ModelSerializer):
    line_total = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = OrderItem
        fields = ["id", "product", "name", "price", "unit", "unit_value", "image_url", "quantity", "line_total"]
        read_only_fields = fields

    def get_line_total(self, obj: OrderItem) -> Decimal:
        return obj.line_total


class PriceSummarySerializer(serializers.Serializer):
    items_total = serializers.DecimalField(max_digits=12, decimal_places=2)
    delivery_fee = serializers.DecimalField(max_digits=12, decimal_places=2)
    tax = serializers.DecimalField(max_digits=12, decimal_places=2)
    discount = serializers.DecimalField(max_digits=12, decimal_places=2)
    coupon_discount = serializers.DecimalField(max_digits=12, decimal_places=2)
    wallet_used = serializers.DecimalField(max_digits=12, decimal_places=2)
    grand_total = serializers.DecimalField(max_digits=12, decimal_places=2)


class PaymentInfoSerializer(serializers.Serializer):
    method = serializers.CharField(source="payment_method")
    status = serializers.CharField(source="payment_status")
    provider_order_id = serializers.CharField()
    provider_payment_id = serializers.CharField()


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    price_summary = PriceSummarySerializer(source="*", read_only=True)
    payment = PaymentInfoSerializer(source="*", read_only=True)
    coupon = serializers.CharField(source="coupon.code", read_only=True, default=None)

    class Meta:
        model = Order
        fields = [
            "order_id",
            "status",
            "payment",
            "shipping_address",
            "items",
            "price_summary",
            "coupon",
            "delivery_instructions",
            "delivery_partner",
            "estimated_delivery",
            "delivered_at",
            "current_location",
            "cancellation_reason",
            "refund_amount",
            "is_rated",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderDetailSerializer(OrderSerializer):
    timeline = serializers.SerializerMethodField()

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["timeline"]
        read_only_fields = fields

    def get_timeline(self, obj: Order) -> list:
        return order_timeline(obj.status)


class OrderLineInputSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)


class ShippingAddressInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120)
    addr1 = serializers.CharField(max_length=255)
    addr2 = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    landmark = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    postal_code = serializers.CharField(max_length=20)
    country_code = serializers.CharField(max_length=2, required=False, default="IN")
    phone = serializers.CharField(max_length=20)


class OrderCreateSerializer(serializers.Serializer):
    """Checkout input. Either ``address_id`` or an inline ``shipping_address`` is required."""

    items = OrderLineInputSerializer(many=True, required=False)
    address_id = serializers.IntegerField(required=False, min_value=1)
    shipping_address = ShippingAddressInputSerializer(required=False)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    coupon_code = serializers.CharField(max_length=32, required=False, allow_blank=True)
    use_wallet = serializers.BooleanField(required=False, default=False)
    delivery_instructions = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if not attrs.get("address_id") and not attrs.get("shipping_address"):
            raise serializers.ValidationError({"shipping_address": "Provide address_id or shipping_address."})
        return attrs


class OrderCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)


class DeliveryLocationSerializer(serializers.Serializer):
    lat = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=-90, max_value=90)
    lng = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=-180, max_value=180)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class AssignPartnerSerializer(serializers.Serializer):
    partner_id = serializers.IntegerField(min_value=1)


class TrackingSerializer(serializers.Serializer):
    order_id = serializers.CharField()
    status = serializers.CharField()
    estimated_delivery = serializers.DateTimeField(allow_null=True)
    delivered_at = serializers.DateTimeField(allow_null=True)
    delivery_partner = serializers.SerializerMethodField()
    current_location = serializers.JSONField(allow_null=True)
    timeline = serializers.SerializerMethodField()

    def get_delivery_partner(self, obj: Order):
        partner = obj.delivery_partner
        if partner is None:
            return None
        return {"id": partner.id, "name": partner.get_full_name() or partner.username, "phone": partner.phone}

    def get_timeline(self, obj: Order) -> list:
        return order_timeline(obj.status)

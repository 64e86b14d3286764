from rest_framework import serializers


class PaymentMethodSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    description = serializers.CharField()
    available = serializers.BooleanField()
    min_order = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    max_order = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)


class OrderReferenceSerializer(serializers.Serializer):
    order_id = serializers.CharField(max_length=32)


class ProviderOrderSerializer(serializers.Serializer):
    order_id = serializers.CharField()
    provider_order_id = serializers.CharField()
    amount = serializers.IntegerField(help_text="Minor units")
    currency = serializers.CharField()
    key = serializers.CharField()


class VerifyPaymentSerializer(serializers.Serializer):
    provider_order_id = serializers.CharField(max_length=64)
    provider_payment_id = serializers.CharField(max_length=64)
    signature = serializers.CharField(max_length=128)


class PaymentResultSerializer(serializers.Serializer):
    order_id = serializers.CharField()
    status = serializers.CharField()
    payment_status = serializers.CharField()
    payment_id = serializers.CharField(source="provider_payment_id")

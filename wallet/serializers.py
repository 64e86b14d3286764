from rest_framework import serializers

from .models import Wallet, WalletTransaction


class WalletSerializer(serializers.ModelSerializer):
    class Meta:
        model = Wallet
        fields = ["balance", "is_active", "updated_at"]


class WalletTransactionSerializer(serializers.ModelSerializer):
    order_id = serializers.CharField(source="order.order_id", read_only=True, default=None)

    class Meta:
        model = WalletTransaction
        fields = ["id", "type", "amount", "balance_after", "description", "reference", "order_id", "created_at"]


class TransactionHistorySerializer(serializers.Serializer):
    transactions = WalletTransactionSerializer(many=True)
    current_page = serializers.IntegerField()
    total_pages = serializers.IntegerField()
    total = serializers.IntegerField()
    has_next = serializers.BooleanField()
    has_prev = serializers.BooleanField()

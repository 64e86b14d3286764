"""Read-only wallet endpoints for the authenticated user."""

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import TransactionHistorySerializer, WalletSerializer
from .services import get_or_create_wallet, transaction_history


class WalletDetailView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "wallet"

    @extend_schema(
        tags=["Wallet Endpoints"],
        summary="Get wallet balance",
        responses={200: WalletSerializer},
        examples=[OpenApiExample("Wallet", value={"balance": "250.00", "is_active": True})],
    )
    def get(self, request):
        wallet = get_or_create_wallet(request.user)
        return Response(WalletSerializer(wallet).data, status=status.HTTP_200_OK)


class WalletTransactionsView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "wallet"

    @extend_schema(
        tags=["Wallet Endpoints"],
        summary="List wallet transactions",
        parameters=[
            OpenApiParameter("page", OpenApiTypes.INT, OpenApiParameter.QUERY),
            OpenApiParameter("page_size", OpenApiTypes.INT, OpenApiParameter.QUERY),
        ],
        responses={200: TransactionHistorySerializer},
    )
    def get(self, request):
        try:
            page = int(request.query_params.get("page", 1))
            page_size = min(max(int(request.query_params.get("page_size", 10)), 1), 100)
        except ValueError:
            return Response({"detail": "page and page_size must be integers."}, status=status.HTTP_400_BAD_REQUEST)
        wallet = get_or_create_wallet(request.user)
        history = transaction_history(wallet, page=page, page_size=page_size)
        return Response(TransactionHistorySerializer(history).data, status=status.HTTP_200_OK)

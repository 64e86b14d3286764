"""Payment endpoints: method catalogue, provider order creation, client
verification, wallet payment and the provider webhook."""

from common.exceptions import DomainError, error_response
from common.uow import UnitOfWork
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, inline_serializer
from orders.services import compute_request_hash, with_idempotency
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from . import services
from .serializers import (
    OrderReferenceSerializer,
    PaymentMethodSerializer,
    PaymentResultSerializer,
    ProviderOrderSerializer,
    VerifyPaymentSerializer,
)

ERROR_RESPONSE = inline_serializer(name="PaymentError", fields={"detail": rf_serializers.CharField()})
SIGNATURE_HEADER = "X-Razorpay-Signature"


class PaymentMethodsView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "payments"

    @extend_schema(
        tags=["Payment Endpoints"],
        summary="List payment methods",
        parameters=[
            OpenApiParameter("amount", OpenApiTypes.DECIMAL, OpenApiParameter.QUERY, description="Order total"),
        ],
        responses={200: PaymentMethodSerializer(many=True)},
    )
    def get(self, request):
        field = rf_serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, allow_null=True)
        raw = request.query_params.get("amount")
        try:
            amount = field.to_internal_value(raw) if raw else None
        except rf_serializers.ValidationError as exc:
            return Response({"amount": exc.detail}, status=status.HTTP_400_BAD_REQUEST)
        methods = services.payment_methods(amount)
        return Response(PaymentMethodSerializer(methods, many=True).data)


class CreatePaymentOrderView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "payments"

    @extend_schema(
        tags=["Payment Endpoints"],
        summary="Create provider order",
        description="Opens a payment-provider order for the outstanding amount of an order.",
        request=OrderReferenceSerializer,
        responses={200: ProviderOrderSerializer, 400: ERROR_RESPONSE, 404: ERROR_RESPONSE, 502: ERROR_RESPONSE},
    )
    def post(self, request):
        serializer = OrderReferenceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            with UnitOfWork() as uow:
                data = services.create_payment_order(
                    uow, order_id=serializer.validated_data["order_id"], user=request.user
                )
        except DomainError as exc:
            return error_response(exc)
        return Response(ProviderOrderSerializer(data).data)


class VerifyPaymentView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "payments"

    @extend_schema(
        tags=["Payment Endpoints"],
        summary="Verify payment",
        description="Confirms a payment with the signature returned by the provider's checkout.",
        request=VerifyPaymentSerializer,
        responses={200: PaymentResultSerializer, 400: ERROR_RESPONSE, 404: ERROR_RESPONSE},
        examples=[
            OpenApiExample(
                "Verified",
                value={
                    "order_id": "ORD1700000000000AB12CD",
                    "status": "confirmed",
                    "payment_status": "completed",
                    "payment_id": "pay_29QQoUBi66xm2f",
                },
                response_only=True,
            )
        ],
    )
    def post(self, request):
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            with UnitOfWork() as uow:
                order = services.verify_payment(uow, user=request.user, **serializer.validated_data)
        except DomainError as exc:
            return error_response(exc)
        return Response(PaymentResultSerializer(order).data)


class WalletPaymentView(APIView):
    """Pay an order from the wallet. Idempotent when `Idempotency-Key` is provided."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "payments"

    @extend_schema(
        tags=["Payment Endpoints"],
        summary="Pay with wallet",
        request=OrderReferenceSerializer,
        parameters=[
            OpenApiParameter(
                name="Idempotency-Key",
                location=OpenApiParameter.HEADER,
                required=False,
                description="Makes the request idempotent within scope+path+method",
                type=str,
            )
        ],
        responses={200: PaymentResultSerializer, 400: ERROR_RESPONSE, 403: ERROR_RESPONSE, 404: ERROR_RESPONSE},
    )
    def post(self, request):
        serializer = OrderReferenceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        def _handler():
            try:
                with UnitOfWork() as uow:
                    order = services.pay_with_wallet(
                        uow, order_id=serializer.validated_data["order_id"], user=request.user
                    )
            except DomainError as exc:
                return {"detail": exc.detail}, exc.status_code
            return PaymentResultSerializer(order).data, status.HTTP_200_OK

        idem_key = request.headers.get("Idempotency-Key")
        if idem_key:
            body, code = with_idempotency(
                key=idem_key,
                user=request.user,
                path=str(request.path),
                method=str(request.method),
                request_hash=compute_request_hash(getattr(request, "data", None)),
                handler=_handler,
            )
            return Response(body, status=code)
        body, code = _handler()
        return Response(body, status=code)


class PaymentWebhookView(APIView):
    """Provider webhook. Authenticated by the HMAC signature over the raw body."""

    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "payments_webhook"

    @extend_schema(
        tags=["Payment Endpoints"],
        summary="Payment provider webhook",
        parameters=[
            OpenApiParameter(name=SIGNATURE_HEADER, location=OpenApiParameter.HEADER, required=True, type=str)
        ],
        request=OpenApiTypes.OBJECT,
        responses={
            200: inline_serializer(name="WebhookAck", fields={"status": rf_serializers.CharField()}),
            400: ERROR_RESPONSE,
        },
    )
    def post(self, request):
        raw_body = request.body
        try:
            with UnitOfWork() as uow:
                outcome = services.handle_webhook(
                    uow, raw_body=raw_body, signature=request.headers.get(SIGNATURE_HEADER, "")
                )
        except DomainError as exc:
            return error_response(exc)
        return Response({"status": outcome}, status=status.HTTP_200_OK)

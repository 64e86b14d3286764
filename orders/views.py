"""Orders API endpoints.

Mutating endpoints open a ``UnitOfWork`` around the workflow call and map
domain errors to ``{"detail": ...}`` responses. Checkout and cancellation
are idempotent when an ``Idempotency-Key`` header is sent.
"""

from common.exceptions import DomainError, error_response
from common.uow import UnitOfWork
from customer.services import shipping_snapshot
from django.contrib.auth import get_user_model
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, inline_serializer
from rest_framework import generics, status
from rest_framework import serializers as rf_serializers
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from users.permissions import IsAdminOrDelivery, IsStoreAdmin

from . import services
from .selectors import get_visible_order, list_orders_for_user
from .serializers import (
    AssignPartnerSerializer,
    DeliveryLocationSerializer,
    OrderCancelSerializer,
    OrderCreateSerializer,
    OrderDetailSerializer,
    OrderSerializer,
    OrderStatusUpdateSerializer,
    TrackingSerializer,
)

IDEMPOTENCY_HEADER = OpenApiParameter(
    name="Idempotency-Key",
    location=OpenApiParameter.HEADER,
    required=False,
    description="Makes the request idempotent within scope+path+method",
    type=str,
)
ERROR_RESPONSE = inline_serializer(name="OrderError", fields={"detail": rf_serializers.CharField()})


def run_idempotent(request, handler):
    """Call ``handler`` directly, or through ``with_idempotency`` when the header is present."""
    idem_key = request.headers.get("Idempotency-Key")
    if idem_key:
        body, code = services.with_idempotency(
            key=idem_key,
            user=request.user,
            path=str(request.path),
            method=str(request.method),
            request_hash=services.compute_request_hash(getattr(request, "data", None)),
            handler=handler,
        )
    else:
        body, code = handler()
    return Response(body, status=code)


class DefaultPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"
    max_page_size = 100


class OrderListCreateView(generics.ListAPIView):
    """List the caller's orders, or place a new one."""

    permission_classes = [IsAuthenticated]
    serializer_class = OrderSerializer
    pagination_class = DefaultPagination

    def get_throttles(self):
        self.throttle_scope = "orders_write" if self.request.method == "POST" else "orders"
        return super().get_throttles()

    def get_queryset(self):
        return list_orders_for_user(user=self.request.user, status=self.request.query_params.get("status"))

    @extend_schema(
        tags=["Order Endpoints"],
        summary="List orders",
        parameters=[
            OpenApiParameter(name="status", description="Order status filter", required=False, type=str),
            OpenApiParameter(name="page", description="Page number", required=False, type=int),
            OpenApiParameter(name="page_size", description="Items per page", required=False, type=int),
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Order Endpoints"],
        summary="Place order",
        description=(
            "Reserves stock, applies an optional coupon and wallet balance, and creates the order. "
            "When `items` is omitted the caller's cart is ordered."
        ),
        request=OrderCreateSerializer,
        parameters=[IDEMPOTENCY_HEADER],
        responses={201: OrderDetailSerializer, 400: ERROR_RESPONSE, 404: ERROR_RESPONSE},
        examples=[
            OpenApiExample(
                "Checkout",
                value={
                    "items": [{"product_id": 12, "quantity": 2}],
                    "address_id": 3,
                    "payment_method": "upi",
                    "coupon_code": "FRESH10",
                    "use_wallet": True,
                },
                request_only=True,
            )
        ],
    )
    def post(self, request, *args, **kwargs):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        def _handler():
            try:
                with UnitOfWork() as uow:
                    shipping = data.get("shipping_address") or shipping_snapshot(
                        user=request.user, address_id=data["address_id"]
                    )
                    order = services.create_order(
                        uow,
                        user=request.user,
                        items=data.get("items"),
                        shipping_address=shipping,
                        payment_method=data["payment_method"],
                        coupon_code=data.get("coupon_code") or None,
                        use_wallet=data.get("use_wallet", False),
                        delivery_instructions=data.get("delivery_instructions", ""),
                    )
            except DomainError as exc:
                return {"detail": exc.detail}, exc.status_code
            return OrderDetailSerializer(order, context={"request": request}).data, status.HTTP_201_CREATED

        return run_idempotent(request, _handler)


class OrderDetailView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "orders"

    @extend_schema(
        tags=["Order Endpoints"],
        summary="Get order detail",
        description="Order with its status timeline. Visible to the owner and to admin/delivery roles.",
        responses={200: OrderDetailSerializer, 404: ERROR_RESPONSE},
    )
    def get(self, request, order_id: str):
        try:
            order = get_visible_order(order_id=order_id, user=request.user)
        except DomainError as exc:
            return error_response(exc)
        return Response(OrderDetailSerializer(order, context={"request": request}).data)


class OrderCancelView(APIView):
    """Cancel an order for the authenticated owner.

    Idempotent when `Idempotency-Key` is provided. Returns 409 on key reuse with different payload.
    """

    permission_classes = [IsAuthenticated]
    throttle_scope = "orders_write"

    @extend_schema(
        tags=["Order Endpoints"],
        summary="Cancel order",
        description="Cancels a pending or confirmed order, restocking items and refunding wallet use.",
        request=OrderCancelSerializer,
        parameters=[IDEMPOTENCY_HEADER],
        responses={200: OrderDetailSerializer, 400: ERROR_RESPONSE, 403: ERROR_RESPONSE, 404: ERROR_RESPONSE},
        examples=[
            OpenApiExample(
                "Cancelled", value={"order_id": "ORD1700000000000AB12CD", "status": "cancelled"}, response_only=True
            ),
            OpenApiExample(
                "Too late", value={"detail": "Order cannot be cancelled at this stage."}, response_only=True
            ),
        ],
    )
    def post(self, request, order_id: str):
        serializer = OrderCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        def _handler():
            try:
                with UnitOfWork() as uow:
                    order = services.cancel_order(
                        uow, order_id=order_id, reason=serializer.validated_data["reason"], user=request.user
                    )
            except DomainError as exc:
                return {"detail": exc.detail}, exc.status_code
            return OrderDetailSerializer(order, context={"request": request}).data, status.HTTP_200_OK

        return run_idempotent(request, _handler)


class OrderTrackingView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "orders"

    @extend_schema(
        tags=["Order Endpoints"],
        summary="Track order",
        responses={200: TrackingSerializer, 404: ERROR_RESPONSE},
    )
    def get(self, request, order_id: str):
        try:
            order = get_visible_order(order_id=order_id, user=request.user)
        except DomainError as exc:
            return error_response(exc)
        return Response(TrackingSerializer(order).data)


class OrderStatusView(APIView):
    permission_classes = [IsAdminOrDelivery]
    throttle_scope = "orders_write"

    @extend_schema(
        tags=["Order Endpoints"],
        summary="Update order status",
        description="Admin and delivery roles move an order along its status table.",
        request=OrderStatusUpdateSerializer,
        responses={200: OrderDetailSerializer, 400: ERROR_RESPONSE, 403: ERROR_RESPONSE, 404: ERROR_RESPONSE},
    )
    def patch(self, request, order_id: str):
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            with UnitOfWork() as uow:
                order = services.update_order_status(
                    uow, order_id=order_id, status=serializer.validated_data["status"], actor=request.user
                )
        except DomainError as exc:
            return error_response(exc)
        return Response(OrderDetailSerializer(order, context={"request": request}).data)


class DeliveryLocationView(APIView):
    permission_classes = [IsAdminOrDelivery]
    throttle_scope = "orders_write"

    @extend_schema(
        tags=["Order Endpoints"],
        summary="Update delivery location",
        request=DeliveryLocationSerializer,
        responses={
            200: inline_serializer(
                name="DeliveryLocation",
                fields={
                    "lat": rf_serializers.FloatField(),
                    "lng": rf_serializers.FloatField(),
                    "address": rf_serializers.CharField(),
                    "updated_at": rf_serializers.DateTimeField(),
                },
            ),
            403: ERROR_RESPONSE,
        },
    )
    def patch(self, request, order_id: str):
        serializer = DeliveryLocationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            with UnitOfWork() as uow:
                location = services.update_delivery_location(
                    uow, order_id=order_id, actor=request.user, **serializer.validated_data
                )
        except DomainError as exc:
            return error_response(exc)
        return Response(location)


class AssignPartnerView(APIView):
    permission_classes = [IsStoreAdmin]
    throttle_scope = "orders_write"

    @extend_schema(
        tags=["Order Endpoints"],
        summary="Assign delivery partner",
        request=AssignPartnerSerializer,
        responses={200: OrderDetailSerializer, 400: ERROR_RESPONSE, 404: ERROR_RESPONSE},
    )
    def post(self, request, order_id: str):
        serializer = AssignPartnerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        partner = get_user_model().objects.filter(pk=serializer.validated_data["partner_id"]).first()
        if partner is None:
            return Response({"detail": "Delivery partner not found."}, status=status.HTTP_404_NOT_FOUND)
        try:
            with UnitOfWork() as uow:
                order = services.assign_delivery_partner(uow, order_id=order_id, partner=partner, actor=request.user)
        except DomainError as exc:
            return error_response(exc)
        return Response(OrderDetailSerializer(order, context={"request": request}).data)

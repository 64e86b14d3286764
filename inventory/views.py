"""Inventory admin views: movement journal and stock adjustments."""

from common.exceptions import DomainError, error_response
from django_filters import rest_framework as filters
from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView
from users.permissions import IsStoreAdmin

from .models import StockMovement
from .serializers import StockAdjustmentSerializer, StockMovementSerializer
from .services import apply_movement


class MovementFilterSet(filters.FilterSet):
    product = filters.NumberFilter(field_name="product_id")
    created_after = filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")

    class Meta:
        model = StockMovement
        fields = ["product", "movement_type", "reference", "created_after"]


class MovementListView(generics.ListAPIView):
    permission_classes = [IsStoreAdmin]
    serializer_class = StockMovementSerializer
    filter_backends = [filters.DjangoFilterBackend]
    filterset_class = MovementFilterSet

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="List stock movements",
        description=(
            "List movements (inbound/outbound/adjust). Filters: product, movement_type, reference, "
            "created_after (ISO)."
        ),
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        return StockMovement.objects.select_related("product").order_by("-created_at", "-id")


class StockAdjustmentView(APIView):
    permission_classes = [IsStoreAdmin]
    throttle_scope = "catalog_admin_write"

    @extend_schema(
        tags=["Inventory Endpoints"],
        summary="Adjust stock",
        description="Apply a signed stock adjustment to a product. Stock never goes below zero.",
        request=StockAdjustmentSerializer,
        responses={201: StockMovementSerializer},
        examples=[OpenApiExample("Restock", value={"product": 1, "quantity": 25, "reason": "restock"})],
    )
    def post(self, request):
        serializer = StockAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            movement = apply_movement(
                product_id=data["product"],
                movement_type=StockMovement.TYPE_ADJUST,
                quantity=data["quantity"],
                reason=data.get("reason", ""),
                reference=f"ADJUST_{request.user.id}",
            )
        except DomainError as e:
            return error_response(e)
        return Response(StockMovementSerializer(movement).data, status=status.HTTP_201_CREATED)

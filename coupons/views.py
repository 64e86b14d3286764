"""Coupon endpoints: a public preview and admin CRUD."""

from cart.selectors import coupon_lines
from common.exceptions import DomainError, error_response
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import serializers as rf_serializers
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from users.permissions import IsStoreAdmin

from . import services
from .models import Coupon
from .serializers import CouponAdminSerializer, CouponPreviewSerializer


class CouponValidateView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "coupons"

    @extend_schema(
        tags=["Coupon Endpoints"],
        summary="Validate coupon",
        description=(
            "Checks a coupon code against a cart total and returns the discount it would give. "
            "Coupons limited to some products or categories are priced on the matching lines of the caller's cart."
        ),
        parameters=[OpenApiParameter("cart_total", OpenApiTypes.DECIMAL, OpenApiParameter.QUERY)],
        responses={200: CouponPreviewSerializer},
    )
    def get(self, request, code):
        field = rf_serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
        try:
            cart_total = field.to_internal_value(request.query_params.get("cart_total", "0"))
        except rf_serializers.ValidationError as exc:
            return Response({"cart_total": exc.detail}, status=status.HTTP_400_BAD_REQUEST)
        try:
            preview = services.preview_coupon(code, cart_total, lines=coupon_lines(user=request.user))
        except DomainError as exc:
            return error_response(exc)
        return Response(CouponPreviewSerializer(preview).data, status=status.HTTP_200_OK)


@extend_schema_view(
    list=extend_schema(tags=["Admin Endpoints"], summary="List coupons"),
    retrieve=extend_schema(tags=["Admin Endpoints"], summary="Get coupon"),
    create=extend_schema(tags=["Admin Endpoints"], summary="Create coupon"),
    update=extend_schema(tags=["Admin Endpoints"], summary="Update coupon"),
    partial_update=extend_schema(tags=["Admin Endpoints"], summary="Partial update coupon"),
    destroy=extend_schema(tags=["Admin Endpoints"], summary="Retire coupon"),
)
class CouponAdminViewSet(viewsets.ModelViewSet):
    permission_classes = [IsStoreAdmin]
    throttle_scope = "catalog_admin_write"
    serializer_class = CouponAdminSerializer
    queryset = Coupon.objects.prefetch_related("categories", "products", "excluded_products")

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user)

    def perform_destroy(self, instance):
        services.retire_coupon(instance)

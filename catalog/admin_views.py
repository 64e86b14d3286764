"""Admin viewsets for write endpoints in the catalog app.

Endpoints are restricted to store admins and use scoped throttling. Deleting
a product or category retires it instead of removing the row, since order
items keep pointing at products.
"""

from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import viewsets
from users.permissions import IsStoreAdmin

from . import selectors
from .admin_serializers import CategoryAdminSerializer, ProductAdminSerializer
from .models import Category, Product
from .serializers import ProductListSerializer


class AdminBaseViewSet(viewsets.ModelViewSet):
    permission_classes = [IsStoreAdmin]
    throttle_scope = "catalog_admin_write"

    def perform_destroy(self, instance):
        instance.state = instance.STATE_RETIRED
        instance.save(update_fields=["state", "updated_at"])


@extend_schema_view(
    list=extend_schema(tags=["Admin Endpoints"], summary="List categories (admin)"),
    retrieve=extend_schema(tags=["Admin Endpoints"], summary="Get category (admin)"),
    create=extend_schema(tags=["Admin Endpoints"], summary="Create category"),
    update=extend_schema(tags=["Admin Endpoints"], summary="Update category"),
    partial_update=extend_schema(tags=["Admin Endpoints"], summary="Partial update category"),
    destroy=extend_schema(tags=["Admin Endpoints"], summary="Retire category"),
)
class CategoryAdminViewSet(AdminBaseViewSet):
    queryset = Category.objects.all().order_by("sort_order", "name")
    serializer_class = CategoryAdminSerializer


@extend_schema_view(
    list=extend_schema(tags=["Admin Endpoints"], summary="List products (admin)"),
    retrieve=extend_schema(tags=["Admin Endpoints"], summary="Get product (admin)"),
    create=extend_schema(tags=["Admin Endpoints"], summary="Create product"),
    update=extend_schema(tags=["Admin Endpoints"], summary="Update product"),
    partial_update=extend_schema(tags=["Admin Endpoints"], summary="Partial update product"),
    destroy=extend_schema(tags=["Admin Endpoints"], summary="Retire product"),
)
class ProductAdminViewSet(AdminBaseViewSet):
    queryset = Product.objects.select_related("category").order_by("name")
    serializer_class = ProductAdminSerializer


@extend_schema_view(
    list=extend_schema(tags=["Admin Endpoints"], summary="List low-stock products"),
)
class LowStockAdminViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsStoreAdmin]
    serializer_class = ProductListSerializer
    pagination_class = None

    def get_queryset(self):
        return selectors.list_low_stock_products()

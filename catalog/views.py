"""Public catalog viewsets: browsing plus customer reviews."""

from common.exceptions import DomainError, error_response
from django_filters import rest_framework as filters
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import filters as drf_filters
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle, UserRateThrottle

from . import selectors, services
from .models import Category, Product
from .serializers import (
    CategorySerializer,
    ProductDetailSerializer,
    ProductListSerializer,
    ProductReviewSerializer,
    ReviewCreateSerializer,
)
from .throttling import CatalogScopedRateThrottle


@extend_schema_view(
    list=extend_schema(
        summary="List categories",
        description="Returns active categories ordered by sort_order then name",
        tags=["Catalog Endpoints"],
        examples=[
            OpenApiExample(
                "Category list",
                value={
                    "count": 1,
                    "next": None,
                    "previous": None,
                    "results": [
                        {
                            "id": 1,
                            "name": "Fruits",
                            "slug": "fruits",
                            "description": "Fresh seasonal fruit",
                            "parent": None,
                            "sort_order": 0,
                        }
                    ],
                },
                response_only=True,
            )
        ],
    ),
    retrieve=extend_schema(
        summary="Get category by slug",
        description="Returns a single active category by its slug",
        tags=["Catalog Endpoints"],
    ),
)
class CategoryViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = CategorySerializer
    lookup_field = "slug"
    throttle_scope = "catalog"
    throttle_classes = [CatalogScopedRateThrottle, UserRateThrottle, AnonRateThrottle]

    def get_queryset(self):
        return selectors.list_categories()

    @extend_schema(
        tags=["Catalog Endpoints"],
        summary="List products in category",
        description="Returns a page of active products within a category",
    )
    @action(detail=True, methods=["get"], url_path="products")
    def products(self, request, slug=None):
        category = self.get_object()
        qs = selectors.list_products(category_slug=category.slug)
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(ProductListSerializer(page, many=True).data)
        return Response(ProductListSerializer(qs, many=True).data)


class ProductFilterSet(filters.FilterSet):
    category = filters.CharFilter(field_name="category__slug")
    min_price = filters.NumberFilter(field_name="price", lookup_expr="gte")
    max_price = filters.NumberFilter(field_name="price", lookup_expr="lte")
    featured = filters.BooleanFilter(field_name="featured")
    vegetarian = filters.BooleanFilter(field_name="is_vegetarian")
    in_stock = filters.BooleanFilter(method="filter_in_stock")
    min_rating = filters.NumberFilter(field_name="rating_average", lookup_expr="gte")

    class Meta:
        model = Product
        fields = ["category", "min_price", "max_price", "featured", "vegetarian", "in_stock", "min_rating"]

    def filter_in_stock(self, queryset, name, value):
        return queryset.filter(stock__gt=0) if value else queryset.filter(stock=0)


@extend_schema_view(
    list=extend_schema(
        summary="List products",
        description=(
            "Returns active products. Supports filtering by `category`, `min_price`, `max_price`, "
            "`featured`, `vegetarian`, `in_stock` and `min_rating`, ordering by `name`, `price`, "
            "`rating_average` or `created_at`, "
            "and search via either `search` or `q`."
        ),
        tags=["Catalog Endpoints"],
        parameters=[
            OpenApiParameter("category", OpenApiTypes.STR, location="query", description="Filter by category slug"),
            OpenApiParameter("min_price", OpenApiTypes.NUMBER, location="query", description="Minimum price"),
            OpenApiParameter("max_price", OpenApiTypes.NUMBER, location="query", description="Maximum price"),
            OpenApiParameter(
                "in_stock", OpenApiTypes.BOOL, location="query", description="Only products with stock left"
            ),
            OpenApiParameter(
                "min_rating", OpenApiTypes.NUMBER, location="query", description="Minimum average rating"
            ),
            OpenApiParameter(
                "ordering",
                OpenApiTypes.STR,
                location="query",
                description="Order by `name`, `price`, `rating_average` or `created_at`",
            ),
            OpenApiParameter("search", OpenApiTypes.STR, location="query", description="Search products by text"),
            OpenApiParameter("q", OpenApiTypes.STR, location="query", description="Alias for `search`"),
        ],
    ),
    retrieve=extend_schema(
        summary="Get product by slug",
        description="Returns an active product with its category",
        tags=["Catalog Endpoints"],
    ),
)
class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    lookup_field = "slug"
    lookup_value_regex = "[^/]+"
    filterset_class = ProductFilterSet
    throttle_scope = "catalog"
    throttle_classes = [CatalogScopedRateThrottle, UserRateThrottle, AnonRateThrottle]

    # Support both `search` and `q` query params for search
    class QSearchFilter(drf_filters.SearchFilter):
        search_param = "q"

    filter_backends = [
        filters.DjangoFilterBackend,
        drf_filters.OrderingFilter,
        drf_filters.SearchFilter,
        QSearchFilter,
    ]
    ordering_fields = ["name", "price", "rating_average", "created_at"]
    search_fields = ["name", "description", "brand", "category__name"]

    def get_queryset(self):
        return selectors.list_products()

    def get_serializer_class(self):
        return ProductDetailSerializer if self.action == "retrieve" else ProductListSerializer

    def get_permissions(self):
        if self.action == "reviews" and self.request.method == "POST":
            return [permissions.IsAuthenticated()]
        return super().get_permissions()

    def get_throttles(self):
        if self.action == "reviews" and self.request.method == "POST":
            self.throttle_scope = "reviews_write"
        return super().get_throttles()

    @extend_schema(
        methods=["GET"],
        tags=["Catalog Endpoints"],
        summary="List product reviews",
        responses={200: ProductReviewSerializer(many=True)},
    )
    @extend_schema(
        methods=["POST"],
        tags=["Catalog Endpoints"],
        summary="Review a product",
        description=(
            "One review per customer and product. Passing the `order_id` of a delivered order "
            "that contains the product marks that order as rated."
        ),
        request=ReviewCreateSerializer,
        responses={201: ProductReviewSerializer},
    )
    @action(detail=True, methods=["get", "post"], url_path="reviews")
    def reviews(self, request, slug=None):
        product = self.get_object()
        if request.method == "GET":
            qs = product.reviews.select_related("user")
            page = self.paginate_queryset(qs)
            if page is not None:
                return self.get_paginated_response(ProductReviewSerializer(page, many=True).data)
            return Response(ProductReviewSerializer(qs, many=True).data)

        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            review = services.add_review(user=request.user, product=product, **serializer.validated_data)
        except DomainError as e:
            return error_response(e)
        return Response(ProductReviewSerializer(review).data, status=status.HTTP_201_CREATED)

"""Customer API views for the address book and wishlist.

Endpoints are authenticated and scoped to the current user. Views stay thin
and delegate business rules to services/selectors.
"""

from common.exceptions import DomainError, error_response
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Address
from .selectors import list_addresses, list_wishlist
from .serializers import AddressSerializer, WishlistAddSerializer, WishlistItemSerializer
from .services import add_to_wishlist, delete_address, remove_from_wishlist, set_default_address


class AddressListCreateView(generics.ListCreateAPIView):
    """List and create addresses for the authenticated user."""

    permission_classes = [permissions.IsAuthenticated]
    serializer_class = AddressSerializer
    filterset_fields = ["city", "state", "country_code"]
    search_fields = ["name", "addr1", "city", "postal_code"]
    ordering_fields = ["updated_at", "id", "city"]
    throttle_scope = "addresses"

    @extend_schema(
        tags=["Customer Endpoints"],
        summary="List current user's addresses",
        parameters=[
            OpenApiParameter(
                name="search",
                location=OpenApiParameter.QUERY,
                required=False,
                type=OpenApiTypes.STR,
                description="Search by name, addr1, city, or postal_code",
            ),
            OpenApiParameter(
                name="city",
                location=OpenApiParameter.QUERY,
                required=False,
                type=OpenApiTypes.STR,
                description="Filter by city",
            ),
        ],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    def get_queryset(self):
        return list_addresses(self.request.user.id)

    @extend_schema(
        tags=["Customer Endpoints"],
        summary="Create a new address",
        description="The first address a user saves becomes their default.",
        examples=[
            OpenApiExample(
                "Create address",
                value={
                    "name": "Home",
                    "addr1": "12 MG Road",
                    "city": "Bengaluru",
                    "state": "KA",
                    "postal_code": "560001",
                    "phone": "+919812345678",
                },
                request_only=True,
            )
        ],
    )
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)

    def perform_create(self, serializer: AddressSerializer) -> None:
        first = not Address.objects.filter(user=self.request.user).exists()
        serializer.save(user=self.request.user, is_default=first)


class AddressDetailView(generics.RetrieveUpdateDestroyAPIView):
    """Retrieve, update, or delete an address owned by the authenticated user."""

    permission_classes = [permissions.IsAuthenticated]
    serializer_class = AddressSerializer
    throttle_scope = "addresses_write"

    def get_queryset(self):
        # Scope to the current user's addresses
        return Address.objects.filter(user_id=self.request.user.id).order_by("-updated_at", "id")

    @extend_schema(tags=["Customer Endpoints"], summary="Get an address")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(tags=["Customer Endpoints"], summary="Update an address")
    def patch(self, request, *args, **kwargs):
        return super().patch(request, *args, **kwargs)

    @extend_schema(tags=["Customer Endpoints"], summary="Replace an address")
    def put(self, request, *args, **kwargs):
        return super().put(request, *args, **kwargs)

    @extend_schema(
        tags=["Customer Endpoints"],
        summary="Delete an address",
        description=(
            "Past orders keep their own copy of the shipping address. "
            "Deleting the default promotes the most recently updated remaining address."
        ),
    )
    def delete(self, request, *args, **kwargs):
        return super().delete(request, *args, **kwargs)

    def perform_destroy(self, instance: Address) -> None:
        delete_address(user=self.request.user, address=instance)


class AddressSetDefaultView(APIView):
    permission_classes = [permissions.IsAuthenticated]
    throttle_scope = "addresses_write"

    @extend_schema(
        tags=["Customer Endpoints"], summary="Make an address the default", responses={200: AddressSerializer}
    )
    def post(self, request, pk: int):
        try:
            address = Address.objects.get(id=pk, user=request.user)
        except Address.DoesNotExist:
            return Response({"detail": "Not found."}, status=404)
        address = set_default_address(user=request.user, address=address)
        return Response(AddressSerializer(address).data)


class WishlistView(generics.ListAPIView):
    """List the caller's saved products or save another one."""

    permission_classes = [permissions.IsAuthenticated]
    serializer_class = WishlistItemSerializer
    throttle_scope = "wishlist"

    def get_queryset(self):
        return list_wishlist(self.request.user.id)

    @extend_schema(
        tags=["Customer Endpoints"],
        summary="List wishlist",
        description="Saved products that are still on sale, newest first.",
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @extend_schema(
        tags=["Customer Endpoints"],
        summary="Add product to wishlist",
        request=WishlistAddSerializer,
        responses={201: WishlistItemSerializer},
    )
    def post(self, request):
        serializer = WishlistAddSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            item = add_to_wishlist(user=request.user, product_id=serializer.validated_data["product_id"])
        except DomainError as e:
            return error_response(e)
        return Response(WishlistItemSerializer(item).data, status=status.HTTP_201_CREATED)


class WishlistItemView(APIView):
    permission_classes = [permissions.IsAuthenticated]
    throttle_scope = "wishlist"

    @extend_schema(tags=["Customer Endpoints"], summary="Remove product from wishlist", responses={204: None})
    def delete(self, request, product_id: int):
        if not remove_from_wishlist(user=request.user, product_id=product_id):
            return Response({"detail": "Not found."}, status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)

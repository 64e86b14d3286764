"""DRF views for cart operations."""

from common.exceptions import error_response
from drf_spectacular.utils import OpenApiExample, extend_schema, inline_serializer
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import CartItem
from .selectors import get_cart_for_user
from .serializers import AddItemSerializer, CartReadSerializer, UpdateItemQuantitySerializer
from .services import CartError, clear_cart, remove_item

CART_ERROR = inline_serializer(name="CartMutationError", fields={"detail": rf_serializers.CharField()})
ITEM_RESPONSE = inline_serializer(
    name="CartItemResponse",
    fields={"id": rf_serializers.IntegerField(), "quantity": rf_serializers.IntegerField()},
)


class CartDetailView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "cart"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Get cart",
        description=(
            "Returns the cart lines for products that are still on sale, with a price preview. "
            "Delivery is free above the configured threshold; coupons and wallet apply at checkout."
        ),
        responses={200: CartReadSerializer},
        examples=[
            OpenApiExample(
                "Cart",
                value={
                    "id": 1,
                    "items": [
                        {
                            "id": 10,
                            "product_id": 100,
                            "name": "Toned Milk",
                            "image_url": "",
                            "unit": "l",
                            "unit_value": "0.50",
                            "quantity": 2,
                            "price": "30.00",
                            "line_total": "60.00",
                            "in_stock": True,
                        }
                    ],
                    "item_count": 1,
                    "total_quantity": 2,
                    "items_total": "60.00",
                    "delivery_fee": "40.00",
                    "tax": "3.00",
                    "grand_total": "103.00",
                    "free_delivery_remaining": "440.00",
                },
                response_only=True,
            )
        ],
    )
    def get(self, request):
        cart = get_cart_for_user(user=request.user)
        return Response(CartReadSerializer.from_cart(cart=cart).data)


class CartAddItemView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Add item to cart",
        description="Adds a product, incrementing the quantity when it is already in the cart.",
        request=AddItemSerializer,
        responses={201: ITEM_RESPONSE, 400: CART_ERROR, 404: CART_ERROR},
        examples=[OpenApiExample("Added", value={"id": 10, "quantity": 2}, response_only=True)],
    )
    def post(self, request):
        serializer = AddItemSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        try:
            item = serializer.save()
        except CartError as e:
            return error_response(e)
        return Response({"id": item.id, "quantity": item.quantity}, status=status.HTTP_201_CREATED)


class CartItemView(APIView):
    """Change or remove one of the caller's cart lines. Other users' lines are 404."""

    permission_classes = [IsAuthenticated]
    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Update cart item quantity",
        request=UpdateItemQuantitySerializer,
        responses={200: ITEM_RESPONSE, 400: CART_ERROR, 404: CART_ERROR},
    )
    def patch(self, request, item_id: int):
        item = CartItem.objects.filter(id=item_id, cart__user_id=request.user.id).first()
        if item is None:
            return Response({"detail": "Not found."}, status=status.HTTP_404_NOT_FOUND)
        serializer = UpdateItemQuantitySerializer(instance=item, data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        try:
            item = serializer.save()
        except CartError as e:
            return error_response(e)
        return Response({"id": item.id, "quantity": item.quantity})

    @extend_schema(tags=["Cart Endpoints"], summary="Delete cart item", responses={204: None, 404: CART_ERROR})
    def delete(self, request, item_id: int):
        if not remove_item(user=request.user, item_id=item_id):
            return Response({"detail": "Not found."}, status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)


class CartClearView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_scope = "cart_write"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Clear cart",
        request=None,
        responses={200: inline_serializer(name="CartCleared", fields={"status": rf_serializers.CharField()})},
    )
    def post(self, request):
        clear_cart(user=request.user)
        return Response({"status": "cleared"})

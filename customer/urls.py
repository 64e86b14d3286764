"""URL routes for the customer app."""

from django.urls import path

from .views import AddressDetailView, AddressListCreateView, AddressSetDefaultView, WishlistItemView, WishlistView

urlpatterns = [
    path("addresses/", AddressListCreateView.as_view(), name="address-list-create"),
    path("addresses/<int:pk>/", AddressDetailView.as_view(), name="address-detail"),
    path("addresses/<int:pk>/default/", AddressSetDefaultView.as_view(), name="address-set-default"),
    path("wishlist/", WishlistView.as_view(), name="wishlist"),
    path("wishlist/<int:product_id>/", WishlistItemView.as_view(), name="wishlist-item"),
]

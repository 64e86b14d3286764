"""URL routes for the orders app (v1)."""

from django.urls import path

from .views import (
    AssignPartnerView,
    DeliveryLocationView,
    OrderCancelView,
    OrderDetailView,
    OrderListCreateView,
    OrderStatusView,
    OrderTrackingView,
)

app_name = "orders"

urlpatterns = [
    path("", OrderListCreateView.as_view(), name="order-list"),
    path("<str:order_id>/", OrderDetailView.as_view(), name="order-detail"),
    path("<str:order_id>/cancel/", OrderCancelView.as_view(), name="order-cancel"),
    path("<str:order_id>/tracking/", OrderTrackingView.as_view(), name="order-tracking"),
    path("<str:order_id>/status/", OrderStatusView.as_view(), name="order-status"),
    path("<str:order_id>/location/", DeliveryLocationView.as_view(), name="order-location"),
    path("<str:order_id>/assign/", AssignPartnerView.as_view(), name="order-assign"),
]

from django.urls import path

from .views import (
    CreatePaymentOrderView,
    PaymentMethodsView,
    PaymentWebhookView,
    VerifyPaymentView,
    WalletPaymentView,
)

urlpatterns = [
    path("methods/", PaymentMethodsView.as_view(), name="payment-methods"),
    path("create-order/", CreatePaymentOrderView.as_view(), name="payment-create-order"),
    path("verify/", VerifyPaymentView.as_view(), name="payment-verify"),
    path("wallet/", WalletPaymentView.as_view(), name="payment-wallet"),
    path("webhook/", PaymentWebhookView.as_view(), name="payment-webhook"),
]

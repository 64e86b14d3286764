from django.urls import path

from .views import CouponValidateView

urlpatterns = [
    path("validate/<str:code>/", CouponValidateView.as_view(), name="coupon-validate"),
]

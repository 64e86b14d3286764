from common.admin import ColumnSaveAdminMixin
from django.contrib import admin

from .models import Coupon


@admin.register(Coupon)
class CouponAdmin(ColumnSaveAdminMixin, admin.ModelAdmin):
    list_display = ("code", "discount_type", "discount_value", "used_count", "usage_limit", "valid_until", "state")
    list_filter = ("discount_type", "state")
    search_fields = ("code", "description")
    readonly_fields = ("used_count",)
    filter_horizontal = ("categories", "products", "excluded_products")

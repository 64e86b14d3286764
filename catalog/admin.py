"""Admin registration for catalog models."""

from common.admin import ColumnSaveAdminMixin
from django.contrib import admin

from .models import Category, Product, ProductReview


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "parent", "state", "sort_order")
    search_fields = ("name", "slug")
    list_filter = ("state",)
    prepopulated_fields = {"slug": ("name",)}


@admin.register(Product)
class ProductAdmin(ColumnSaveAdminMixin, admin.ModelAdmin):
    list_display = ("name", "slug", "category", "price", "stock", "rating_average", "state", "featured")
    search_fields = ("name", "slug", "brand")
    list_filter = ("state", "category", "featured", "is_vegetarian")
    prepopulated_fields = {"slug": ("name",)}
    readonly_fields = ("stock", "rating_average", "rating_count")


@admin.register(ProductReview)
class ProductReviewAdmin(admin.ModelAdmin):
    list_display = ("id", "product", "user", "rating", "order", "created_at")
    list_filter = ("rating",)
    search_fields = ("product__name", "user__email", "comment")
    raw_id_fields = ("product", "user", "order")
    list_select_related = ("product", "user")

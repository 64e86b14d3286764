"""Admin registrations for inventory app."""

from django.contrib import admin

from .models import StockMovement


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ("id", "product", "movement_type", "quantity", "stock_after", "reason", "reference", "created_at")
    list_filter = ("movement_type",)
    search_fields = ("product__name", "reference")

from django.contrib import admin

from .models import Address, WishlistItem


@admin.register(Address)
class AddressAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "name", "city", "state", "postal_code", "is_default")
    list_filter = ("state", "is_default")
    search_fields = ("name", "addr1", "city", "postal_code", "user__email", "user__username")
    ordering = ("-updated_at", "id")


@admin.register(WishlistItem)
class WishlistItemAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "product", "created_at")
    search_fields = ("user__email", "product__name")
    raw_id_fields = ("user", "product")
    list_select_related = ("user", "product")

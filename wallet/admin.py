from django.contrib import admin

from .models import Wallet, WalletTransaction


class WalletTransactionInline(admin.TabularInline):
    model = WalletTransaction
    extra = 0
    can_delete = False
    readonly_fields = ("type", "amount", "balance_after", "description", "reference", "order", "created_at")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    list_display = ("user", "balance", "is_active", "updated_at")
    search_fields = ("user__username", "user__email")
    readonly_fields = ("balance",)
    inlines = [WalletTransactionInline]

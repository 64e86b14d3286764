from django.apps import AppConfig


class WalletConfig(AppConfig):
    """App configuration for customer wallets."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "wallet"
    verbose_name = "Wallet"

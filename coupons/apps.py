from django.apps import AppConfig


class CouponsConfig(AppConfig):
    """App configuration for discount coupons."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "coupons"
    verbose_name = "Coupons"

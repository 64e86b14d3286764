from .base import *  # noqa
from .base import BASE_DIR
from .base import REST_FRAMEWORK as BASE_REST_FRAMEWORK

# Test settings: force SQLite so CI needs no database server
DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "test_db.sqlite3",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "freshcart-tests",
    }
}

STORAGES = {
    "staticfiles": {
        "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
    },
}

# Collect published events so tests can assert on them
EVENT_PUBLISHER = "common.events.InMemoryEventPublisher"

# Deterministic provider credentials; the gateway is always mocked in tests
PAYMENT_PROVIDER_BASE_URL = "https://provider.invalid/v1"
PAYMENT_KEY_ID = "rzp_test_key"
PAYMENT_KEY_SECRET = "test-key-secret"
PAYMENT_WEBHOOK_SECRET = "test-webhook-secret"

# Relax throttling for tests to reduce flakiness
REST_FRAMEWORK = {**BASE_REST_FRAMEWORK}
REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {
    **BASE_REST_FRAMEWORK.get("DEFAULT_THROTTLE_RATES", {}),
    "user": "10000/min",
    "anon": "10000/min",
    "catalog": "10000/min",
    "catalog_admin_write": "10000/min",
    "addresses": "10000/min",
    "addresses_write": "10000/min",
    "wishlist": "10000/min",
    "reviews_write": "10000/min",
    "cart": "1000/min",
    "cart_write": "1000/min",
    "orders": "1000/min",
    "orders_write": "1000/min",
    "coupons": "1000/min",
    "wallet": "1000/min",
    "payments": "1000/min",
    "payments_webhook": "1000/min",
}

from .base import *

# Use a fixed secret key for CI
SECRET_KEY = "django-insecure-testkey"

# In-memory SQLite keeps the suite self-contained
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
        "ATOMIC_REQUESTS": True,
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

# Disable sending real emails
EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

STORAGES["staticfiles"] = {
    "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
}

LEDGER_APP_USERNAME = "operator"
LEDGER_APP_PASSWORD = "correct-horse-battery"
LEDGER_EXTRA_CLIENTS = ["BEST DEAT"]

# Disable debug
DEBUG = False

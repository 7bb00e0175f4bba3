from django.apps import AppConfig


class PaymentConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "fulfillment_ledger.payment"
    verbose_name = "Payments"

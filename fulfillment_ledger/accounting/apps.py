from django.apps import AppConfig


class AccountingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "fulfillment_ledger.accounting"
    verbose_name = "Accounting"

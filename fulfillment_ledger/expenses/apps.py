from django.apps import AppConfig


class ExpensesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "fulfillment_ledger.expenses"
    verbose_name = "Expenses"

from django.contrib import admin

from fulfillment_ledger.expenses.models import Expense


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'date', 'client', 'product_description', 'product_cost', 'tax_percentage',
        'markup_basis', 'markup_percentage', 'shipping_cost', 'payment_received', 'status',
        'invoice_number',
    ]
    list_filter = ['client', 'status', 'markup_basis']
    search_fields = ['product_description', 'invoice_number', 'notes']
    date_hierarchy = 'date'
    readonly_fields = ['payment_received', 'outstanding_balance', 'created_at']

    def outstanding_balance(self, obj):
        if obj.pk is None:
            return "-"
        return obj.valuation.rounded().outstanding_balance

    outstanding_balance.short_description = "Outstanding balance"

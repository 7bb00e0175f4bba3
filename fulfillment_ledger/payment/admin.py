from django.contrib import admin

from fulfillment_ledger.payment.models import Payment, PaymentApplication


class PaymentApplicationInline(admin.TabularInline):
    model = PaymentApplication
    extra = 0
    can_delete = False
    fields = ['expense', 'amount_applied', 'created_at']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """
    Read-only: payments are recorded and deleted through the API so that
    they are always applied to, and reversed from, the client's expenses.
    """
    list_display = ['id', 'date', 'client', 'amount', 'notes']
    list_filter = ['client']
    search_fields = ['notes']
    date_hierarchy = 'date'
    inlines = [PaymentApplicationInline]
    readonly_fields = ['date', 'client', 'amount', 'notes', 'created_at']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

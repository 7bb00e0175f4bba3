from rest_framework import serializers

from fulfillment_ledger.accounting.services.report_service import parse_month
from fulfillment_ledger.common.serializers import ClientField


class InvoiceRequestSerializer(serializers.Serializer):
    client = ClientField(max_length=100)
    expense_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        required=False,
        allow_empty=False,
    )
    month = serializers.CharField(required=False, help_text="Month to invoice, as YYYY-MM.")
    date = serializers.DateField(required=False, help_text="Invoice date; today when omitted.")

    def validate_month(self, value):
        return parse_month(value)

    def validate(self, data):
        if bool(data.get("expense_ids")) == bool(data.get("month")):
            raise serializers.ValidationError("Give either expense_ids or month, not both.")
        return data


class TaxGroupSerializer(serializers.Serializer):
    rate = serializers.CharField()
    base = serializers.CharField()
    tax = serializers.CharField()
    total = serializers.CharField()


class InvoiceSummarySerializer(serializers.Serializer):
    invoice_number = serializers.CharField()
    invoice_date = serializers.DateField()
    client = serializers.CharField()
    expense_ids = serializers.ListField(child=serializers.IntegerField())
    tax_groups = TaxGroupSerializer(many=True)
    product_subtotal = serializers.CharField()
    shipping_total = serializers.CharField()
    grand_total = serializers.CharField()
    total_paid = serializers.CharField()
    balance_due = serializers.CharField()

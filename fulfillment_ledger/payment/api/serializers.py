from django.db.models import Sum
from rest_framework import serializers

from fulfillment_ledger.common.money import ZERO, to_cents
from fulfillment_ledger.common.serializers import ClientField, clean_text
from ..models import Payment, PaymentApplication


class PaymentApplicationSerializer(serializers.ModelSerializer):
    expense_date = serializers.DateTimeField(source="expense.date", read_only=True)
    product_description = serializers.CharField(source="expense.product_description", read_only=True)

    class Meta:
        model = PaymentApplication
        fields = ['id', 'payment', 'expense', 'expense_date', 'product_description', 'amount_applied', 'created_at']
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    client = ClientField(max_length=100)
    applications = PaymentApplicationSerializer(many=True, read_only=True)
    amount_applied = serializers.SerializerMethodField()
    amount_unapplied = serializers.SerializerMethodField()

    class Meta:
        model = Payment
        fields = [
            'id', 'date', 'client', 'amount', 'notes', 'applications',
            'amount_applied', 'amount_unapplied', 'created_at',
        ]
        read_only_fields = ['id', 'applications', 'created_at']

    def _applied(self, obj):
        total = obj.applications.aggregate(total=Sum("amount_applied"))["total"]
        return to_cents(total or ZERO)

    def get_amount_applied(self, obj) -> str:
        return str(self._applied(obj))

    def get_amount_unapplied(self, obj) -> str:
        return str(to_cents(obj.amount) - self._applied(obj))

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be positive.")
        if value > 100000000:
            raise serializers.ValidationError("Amount cannot exceed 100,000,000.")
        return value

    def validate_notes(self, value):
        """Sanitize and validate notes."""
        if value:
            cleaned_value = clean_text(value)
            if len(cleaned_value) > 1000:
                raise serializers.ValidationError("Notes cannot exceed 1000 characters.")
            return cleaned_value
        return value

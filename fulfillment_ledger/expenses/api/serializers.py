from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from fulfillment_ledger.common.serializers import ClientField, clean_text
from ..models import Expense, ExpenseStatus, MarkupBasis


class ValuationSerializer(serializers.Serializer):
    tax_exclusive_cost = serializers.DecimalField(max_digits=14, decimal_places=2)
    tax_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    tax_inclusive_cost = serializers.DecimalField(max_digits=14, decimal_places=2)
    markup_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    cost_with_markup = serializers.DecimalField(max_digits=14, decimal_places=2)
    shipping_cost = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_billable = serializers.DecimalField(max_digits=14, decimal_places=2)
    outstanding_balance = serializers.DecimalField(max_digits=14, decimal_places=2)


class ExpenseSerializer(serializers.ModelSerializer):
    client = ClientField(max_length=100)
    markup_basis = serializers.ChoiceField(
        choices=MarkupBasis.choices,
        required=False,
        help_text="Apply the markup on the price before tax (before_tax) or after tax (after_tax).",
    )
    status = serializers.ChoiceField(
        choices=ExpenseStatus.choices,
        required=False,
        help_text="Order status. Informational only, it does not change any amount.",
    )
    tax_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, required=False)
    markup_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, required=False)
    valuation = serializers.SerializerMethodField()

    class Meta:
        model = Expense
        fields = [
            'id', 'date', 'client', 'product_description', 'quantity', 'product_cost',
            'tax_percentage', 'markup_basis', 'markup_percentage', 'shipping_cost',
            'shipping_carrier', 'payment_received', 'status', 'invoice_number', 'notes',
            'valuation', 'created_at',
        ]
        read_only_fields = ['id', 'payment_received', 'invoice_number', 'created_at']

    def get_valuation(self, obj) -> dict:
        return ValuationSerializer(obj.valuation.rounded()).data

    def validate_product_cost(self, value):
        if value < 0:
            raise serializers.ValidationError("Product cost cannot be negative.")
        return value

    def validate_shipping_cost(self, value):
        if value < 0:
            raise serializers.ValidationError("Shipping cost cannot be negative.")
        return value

    def validate_tax_percentage(self, value):
        return self._validate_percentage(value, "Tax percentage")

    def validate_markup_percentage(self, value):
        return self._validate_percentage(value, "Markup percentage")

    def validate_product_description(self, value):
        cleaned_value = clean_text(value)
        if not cleaned_value:
            raise serializers.ValidationError("Product description is required.")
        return cleaned_value

    def validate_quantity(self, value):
        cleaned_value = clean_text(value)
        if not cleaned_value:
            raise serializers.ValidationError("Quantity is required.")
        return cleaned_value

    def validate_shipping_carrier(self, value):
        return clean_text(value)

    def validate_notes(self, value):
        """Sanitize and validate notes."""
        if value:
            cleaned_value = clean_text(value)
            if len(cleaned_value) > 1000:
                raise serializers.ValidationError("Notes cannot exceed 1000 characters.")
            return cleaned_value
        return value

    def create(self, validated_data):
        validated_data.setdefault("tax_percentage", settings.LEDGER_DEFAULT_TAX_PERCENTAGE)
        validated_data.setdefault("markup_percentage", settings.LEDGER_DEFAULT_MARKUP_PERCENTAGE)
        return super().create(validated_data)

    @staticmethod
    def _validate_percentage(value, label):
        if value < Decimal("0") or value > Decimal("100"):
            raise serializers.ValidationError(f"{label} must be between 0 and 100.")
        return value

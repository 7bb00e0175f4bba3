import logging

import django_filters
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiParameter, OpenApiResponse
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import ModelViewSet

from fulfillment_ledger.common.clients import is_known_client
from fulfillment_ledger.common.money import to_cents
from ..models import Expense, ExpenseStatus
from .serializers import ExpenseSerializer

logger = logging.getLogger(__name__)


class ExpenseFilter(django_filters.FilterSet):
    start_date = django_filters.DateFilter(field_name="date", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="date", lookup_expr="date__lte")
    client = django_filters.CharFilter(field_name="client")
    status = django_filters.ChoiceFilter(field_name="status", choices=ExpenseStatus.choices)
    invoice_number = django_filters.CharFilter(field_name="invoice_number")

    class Meta:
        model = Expense
        fields = ['client', 'status', 'invoice_number', 'start_date', 'end_date']


@extend_schema_view(
    list=extend_schema(
        tags=["Expenses"],
        summary="List expenses",
        description="Expenses ordered by date, newest first. Filter by client, status, invoice number or date range."
    ),
    retrieve=extend_schema(
        tags=["Expenses"],
        summary="Retrieve an expense",
        description="One expense with its tax, markup and balance breakdown."
    ),
    create=extend_schema(
        tags=["Expenses"],
        summary="Record a new expense",
        description="Record an order line. Payments are never entered here; they are applied by recording a payment."
    ),
    update=extend_schema(
        tags=["Expenses"],
        summary="Update an expense",
        description="Editing costs does not re-apply payments; the outstanding balance is simply recomputed."
    ),
    partial_update=extend_schema(
        tags=["Expenses"],
        summary="Partially update an expense",
        description="Update some fields of an expense."
    ),
    destroy=extend_schema(
        tags=["Expenses"],
        summary="Delete an expense",
        description="Expenses that still have payments applied cannot be deleted."
    ),
)
class ExpenseViewSet(ModelViewSet):
    serializer_class = ExpenseSerializer
    permission_classes = [IsAuthenticated]
    queryset = Expense.objects.all().order_by("-date", "-id")
    filterset_class = ExpenseFilter

    def perform_create(self, serializer):
        expense = serializer.save()
        logger.info(f"Expense {expense.pk} recorded for {expense.client} by {self.request.user}")

    def perform_update(self, serializer):
        expense = serializer.save()
        logger.info(f"Expense {expense.pk} updated by {self.request.user}")

    def perform_destroy(self, instance):
        pk = instance.pk
        instance.delete()
        logger.info(f"Expense {pk} deleted by {self.request.user}")

    @extend_schema(
        tags=["Expenses"],
        summary="Outstanding expenses of a client",
        description=(
            "Expenses of one client that still have a positive balance, in the order "
            "a new payment would be applied to them (oldest first)."
        ),
        parameters=[
            OpenApiParameter(name="client", type=str, required=True, description="Client name"),
        ],
        responses={200: OpenApiResponse(description="Outstanding expenses and their total.")},
    )
    @action(detail=False, methods=["get"], url_path="outstanding")
    def outstanding(self, request):
        client = request.query_params.get("client", "")
        if not is_known_client(client):
            raise ValidationError({"client": "Unknown client."})

        rows = []
        total = 0
        for expense in Expense.objects.filter(client=client).order_by("date", "id"):
            balance = to_cents(expense.valuation.outstanding_balance)
            if balance <= 0:
                continue
            total += balance
            rows.append({
                "id": expense.id,
                "date": expense.date,
                "product_description": expense.product_description,
                "outstanding_balance": str(balance),
            })

        return Response({
            "client": client,
            "total_outstanding": str(to_cents(total)),
            "expenses": rows,
        })

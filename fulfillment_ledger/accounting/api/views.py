import logging

from django.http import HttpResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiResponse
from rest_framework import serializers
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import ViewSet

from fulfillment_ledger.accounting.services.invoice_service import issue_invoice, load_invoice
from fulfillment_ledger.accounting.services.report_service import (
    build_dashboard,
    build_monthly_report,
    parse_month,
)
from fulfillment_ledger.accounting.utils.pdf import render_pdf
from fulfillment_ledger.common.clients import ISSUER, is_known_client
from .serializers import InvoiceRequestSerializer, InvoiceSummarySerializer

logger = logging.getLogger(__name__)

PDF_RESPONSE = OpenApiResponse(response=OpenApiTypes.BINARY, description="PDF document.")
MONTH_PARAMETERS = [
    OpenApiParameter(name="month", type=str, required=True, description="Month as YYYY-MM"),
    OpenApiParameter(name="client", type=str, required=False, description="Limit to one client"),
]


def pdf_response(content, filename):
    response = HttpResponse(content, content_type="application/pdf")
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response


def _optional_date(request):
    value = request.query_params.get("date")
    if not value:
        return None
    field = serializers.DateField()
    try:
        return field.to_internal_value(value)
    except serializers.ValidationError as exc:
        raise ValidationError({"date": exc.detail})


class DashboardView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Accounting - Reports"],
        summary="Dashboard",
        description=(
            "Totals for the current month, the five latest expenses, what each client "
            "still owes and any payment credit not yet absorbed by an expense."
        ),
        responses={200: OpenApiResponse(description="Dashboard figures.")},
    )
    def get(self, request):
        return Response(build_dashboard())


class ReportViewSet(ViewSet):
    permission_classes = [IsAuthenticated]

    def _report(self, request):
        year, month = parse_month(request.query_params.get("month"))
        client = request.query_params.get("client") or None
        if client and not is_known_client(client):
            raise ValidationError({"client": "Unknown client."})
        return build_monthly_report(year, month, client)

    @extend_schema(
        tags=["Accounting - Reports"],
        summary="Monthly report",
        description="Expenses of a month with product, shipping, paid and balance totals.",
        parameters=MONTH_PARAMETERS,
        responses={200: OpenApiResponse(description="Monthly report."), 400: OpenApiResponse(description="Bad month or client.")},
    )
    @action(detail=False, methods=["get"], url_path="monthly")
    def monthly(self, request):
        return Response(self._report(request).as_dict())

    @extend_schema(
        tags=["Accounting - Reports"],
        summary="Monthly report as PDF",
        description="The monthly report laid out for printing. A month without expenses has no report.",
        parameters=MONTH_PARAMETERS,
        responses={200: PDF_RESPONSE, 400: OpenApiResponse(description="Bad month or no expenses.")},
    )
    @action(detail=False, methods=["get"], url_path="monthly/pdf")
    def monthly_pdf(self, request):
        report = self._report(request)
        if not report.lines:
            raise ValidationError({"month": "There are no expenses in this month."})

        content = render_pdf("accounting/monthly_report.html", {"report": report, "issuer": ISSUER})
        logger.info(f"Monthly report {report.filename} generated by {request.user}")
        return pdf_response(content, report.filename)


class InvoiceViewSet(ViewSet):
    permission_classes = [IsAuthenticated]
    lookup_field = "number"
    lookup_value_regex = r"[^/]+"

    @extend_schema(
        tags=["Accounting - Invoices"],
        summary="Issue an invoice",
        description=(
            "Give the next invoice number to a client's expenses and return the invoice PDF. "
            "Select the expenses by id, or a month to invoice every expense of that month "
            "not invoiced yet."
        ),
        request=InvoiceRequestSerializer,
        responses={200: PDF_RESPONSE, 400: OpenApiResponse(description="Invalid selection.")},
    )
    def create(self, request):
        serializer = InvoiceRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        invoice = issue_invoice(
            data["client"],
            expense_ids=data.get("expense_ids"),
            month=data.get("month"),
            invoice_date=data.get("date"),
        )
        content = render_pdf("accounting/invoice.html", {"invoice": invoice})
        logger.info(f"Invoice {invoice.number} issued by {request.user}")
        return pdf_response(content, invoice.filename)

    @extend_schema(
        tags=["Accounting - Invoices"],
        summary="Invoice summary",
        description="Totals and VAT summary of an issued invoice.",
        parameters=[OpenApiParameter(name="date", type=OpenApiTypes.DATE, required=False, description="Invoice date; today when omitted")],
        responses={200: InvoiceSummarySerializer, 404: OpenApiResponse(description="Invoice not found.")},
    )
    def retrieve(self, request, number=None):
        invoice = load_invoice(number, _optional_date(request))
        return Response(InvoiceSummarySerializer(invoice.as_dict()).data)

    @extend_schema(
        tags=["Accounting - Invoices"],
        summary="Invoice PDF",
        description="Print an issued invoice again.",
        parameters=[OpenApiParameter(name="date", type=OpenApiTypes.DATE, required=False, description="Invoice date; today when omitted")],
        responses={200: PDF_RESPONSE, 404: OpenApiResponse(description="Invoice not found.")},
    )
    @action(detail=True, methods=["get"], url_path="pdf")
    def pdf(self, request, number=None):
        invoice = load_invoice(number, _optional_date(request))
        return pdf_response(render_pdf("accounting/invoice.html", {"invoice": invoice}), invoice.filename)

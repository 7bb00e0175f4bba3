from decimal import Decimal
from unittest import mock

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from fulfillment_ledger.common.tests.factories import local_datetime, make_expense, make_user
from fulfillment_ledger.expenses.models import Expense

FAKE_PDF = b"%PDF-1.7 fake"


@mock.patch("fulfillment_ledger.accounting.api.views.render_pdf", return_value=FAKE_PDF)
class ReportApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=make_user())
        make_expense(date=local_datetime(2024, 1, 15))
        make_expense(client="LE PHÉNICIEN", date=local_datetime(2024, 1, 16))

    def test_monthly_report(self, render_pdf):
        response = self.client.get("/api/accounting/reports/monthly/", {"month": "2024-01"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["expense_count"], 2)
        self.assertEqual(response.data["grand_total"], "230.00")

    def test_monthly_report_for_one_client(self, render_pdf):
        response = self.client.get(
            "/api/accounting/reports/monthly/", {"month": "2024-01", "client": "LE PHÉNICIEN"}
        )

        self.assertEqual(response.data["expense_count"], 1)
        self.assertEqual(response.data["client"], "LE PHÉNICIEN")

    def test_bad_query(self, render_pdf):
        for params in ({}, {"month": "January"}, {"month": "2024-01", "client": "ACME"}):
            response = self.client.get("/api/accounting/reports/monthly/", params)
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, params)

    def test_monthly_pdf(self, render_pdf):
        response = self.client.get(
            "/api/accounting/reports/monthly/pdf/", {"month": "2024-01", "client": "BEST DEAL"}
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertIn('filename="expense-report-best-deal-2024-01.pdf"', response["Content-Disposition"])
        self.assertEqual(response.content, FAKE_PDF)
        template_name, context = render_pdf.call_args.args
        self.assertEqual(template_name, "accounting/monthly_report.html")
        self.assertEqual(len(context["report"].lines), 1)

    def test_empty_month_has_no_pdf(self, render_pdf):
        response = self.client.get("/api/accounting/reports/monthly/pdf/", {"month": "2023-01"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        render_pdf.assert_not_called()

    def test_requires_login(self, render_pdf):
        response = APIClient().get("/api/accounting/reports/monthly/", {"month": "2024-01"})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class DashboardApiTests(TestCase):
    def test_dashboard(self):
        client = APIClient()
        client.force_authenticate(user=make_user())
        make_expense(date=timezone.now())

        response = client.get("/api/accounting/dashboard/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["month"], f"{timezone.localdate():%Y-%m}")
        self.assertEqual(response.data["expense_count"], 1)
        self.assertEqual(response.data["total"], "115.00")


@mock.patch("fulfillment_ledger.accounting.api.views.render_pdf", return_value=FAKE_PDF)
class InvoiceApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=make_user())
        self.first = make_expense(date=local_datetime(2024, 1, 15))
        self.second = make_expense(date=local_datetime(2024, 1, 20))

    def test_issue_by_month(self, render_pdf):
        response = self.client.post(
            "/api/accounting/invoices/",
            {"client": "BEST DEAL", "month": "2024-01", "date": "2024-02-01"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertIn('filename="facture-1.pdf"', response["Content-Disposition"])
        self.assertEqual(Expense.objects.filter(invoice_number="1").count(), 2)
        template_name, context = render_pdf.call_args.args
        self.assertEqual(template_name, "accounting/invoice.html")
        self.assertEqual(str(context["invoice"].invoice_date), "2024-02-01")

    def test_issue_by_ids(self, render_pdf):
        response = self.client.post(
            "/api/accounting/invoices/",
            {"client": "BEST DEAL", "expense_ids": [self.second.pk]},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.second.refresh_from_db()
        self.first.refresh_from_db()
        self.assertEqual(self.second.invoice_number, "1")
        self.assertIsNone(self.first.invoice_number)

    def test_invalid_requests(self, render_pdf):
        for payload in (
            {"client": "BEST DEAL"},
            {"client": "BEST DEAL", "month": "2024-01", "expense_ids": [self.first.pk]},
            {"client": "BEST DEAL", "month": "2024-13"},
            {"client": "BEST DEAL", "expense_ids": []},
            {"client": "ACME", "month": "2024-01"},
            {"client": "LE PHÉNICIEN", "expense_ids": [self.first.pk]},
            {"client": "BEST DEAL", "month": "2022-01"},
        ):
            response = self.client.post("/api/accounting/invoices/", payload, format="json")
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, payload)
        render_pdf.assert_not_called()
        self.assertFalse(Expense.objects.exclude(invoice_number__isnull=True).exists())

    def test_summary_and_reprint(self, render_pdf):
        self.client.post("/api/accounting/invoices/", {"client": "BEST DEAL", "month": "2024-01"}, format="json")

        response = self.client.get("/api/accounting/invoices/1/", {"date": "2024-02-15"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["invoice_number"], "1")
        self.assertEqual(response.data["invoice_date"], "2024-02-15")
        self.assertEqual(response.data["grand_total"], "230.00")
        self.assertEqual(response.data["expense_ids"], [self.first.pk, self.second.pk])
        self.assertEqual(response.data["tax_groups"][0]["rate"], "20.00")

        response = self.client.get("/api/accounting/invoices/1/pdf/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.content, FAKE_PDF)

    def test_unknown_invoice(self, render_pdf):
        self.assertEqual(self.client.get("/api/accounting/invoices/9/").status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.get("/api/accounting/invoices/9/pdf/").status_code, status.HTTP_404_NOT_FOUND)

    def test_bad_reprint_date(self, render_pdf):
        self.client.post("/api/accounting/invoices/", {"client": "BEST DEAL", "month": "2024-01"}, format="json")
        response = self.client.get("/api/accounting/invoices/1/", {"date": "yesterday"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

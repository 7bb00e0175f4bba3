from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import DashboardView, InvoiceViewSet, ReportViewSet

router = DefaultRouter()
router.register(r'reports', ReportViewSet, basename='report')
router.register(r'invoices', InvoiceViewSet, basename='invoice')

urlpatterns = [
    path('dashboard/', DashboardView.as_view(), name='dashboard'),
    path('', include(router.urls)),
]

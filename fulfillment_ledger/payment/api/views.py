import logging

import django_filters
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiResponse
from rest_framework import mixins, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from fulfillment_ledger.payment.services.allocation_service import PaymentAllocationService
from ..models import Payment
from .serializers import PaymentApplicationSerializer, PaymentSerializer

logger = logging.getLogger(__name__)


class PaymentFilter(django_filters.FilterSet):
    start_date = django_filters.DateFilter(field_name="date", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="date", lookup_expr="date__lte")
    client = django_filters.CharFilter(field_name="client")

    class Meta:
        model = Payment
        fields = ['client', 'start_date', 'end_date']


@extend_schema_view(
    list=extend_schema(
        tags=["Payments"],
        summary="List payments",
        description="All recorded client payments, most recent first."
    ),
    retrieve=extend_schema(
        tags=["Payments"],
        summary="Retrieve a payment",
        description="One payment with the expenses it was applied to."
    ),
    create=extend_schema(
        tags=["Payments"],
        summary="Record a payment",
        description=(
            "Record money received from a client. It is applied right away to the client's "
            "unpaid expenses, oldest first. Any amount left over stays unapplied."
        )
    ),
    destroy=extend_schema(
        tags=["Payments"],
        summary="Delete a payment",
        description="Delete a payment and give back to each expense exactly what the payment had applied to it."
    ),
)
class PaymentViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    GenericViewSet,
):
    serializer_class = PaymentSerializer
    permission_classes = [IsAuthenticated]
    queryset = Payment.objects.prefetch_related("applications__expense").order_by("-date", "-id")
    filterset_class = PaymentFilter
    lookup_value_regex = r"\d+"

    def perform_create(self, serializer):
        data = serializer.validated_data
        serializer.instance = PaymentAllocationService.create_payment(
            client=data["client"],
            amount=data["amount"],
            date=data.get("date"),
            notes=data.get("notes", ""),
        )
        logger.info(f"Payment {serializer.instance.pk} recorded by {self.request.user}")

    def destroy(self, request, *args, **kwargs):
        PaymentAllocationService.delete_payment(kwargs[self.lookup_field])
        logger.info(f"Payment {kwargs[self.lookup_field]} deleted by {request.user}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        tags=["Payments"],
        summary="Applications of a payment",
        description="How much of the payment went to each expense.",
        responses={
            200: PaymentApplicationSerializer(many=True),
            404: OpenApiResponse(description="Payment not found."),
        },
    )
    @action(detail=True, methods=["get"], url_path="applications")
    def applications(self, request, pk=None):
        applications = PaymentAllocationService.get_applications(pk)
        return Response(PaymentApplicationSerializer(applications, many=True).data)

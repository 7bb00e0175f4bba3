import logging

from django.db.models import ProtectedError
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ConsistencyFault(APIException):
    """
    A ledger invariant does not hold: a payment applied more than its amount,
    or an expense's payment_received drifted from the sum of its applications.
    Operators must investigate; nothing is corrected automatically.
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Ledger consistency check failed."
    default_code = "consistency_fault"


def ledger_exception_handler(exc, context):
    if isinstance(exc, ProtectedError):
        exc = ValidationError(
            {"detail": "This record still has payments applied to it. Delete those payments first."}
        )

    if isinstance(exc, ConsistencyFault):
        view = context.get("view")
        logger.error(
            f"Consistency fault raised in {view.__class__.__name__ if view else 'unknown view'}: {exc.detail}"
        )

    return exception_handler(exc, context)

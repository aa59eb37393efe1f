# billing/views.py
"""
Billing endpoints: payment records, live calculation, submission and the
collections worklist.
"""
import logging

from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.exceptions import ValidationError as RequestValidationError
from rest_framework.response import Response

from core.api import error_response
from shared.services.studio import get_backend

from .calculator import calculate
from .outstanding import collect_outstanding
from .serializers import CalculateRequestSerializer, SubmitRequestSerializer
from .services import PendingChargeService, PaymentSubmissionCoordinator, parse_payment_date

logger = logging.getLogger(__name__)


def _backend(request):
    return get_backend(user=request.user)


def _as_of(request):
    """`asOf` query parameter as a date; today when absent."""
    raw = request.query_params.get('asOf')
    if not raw:
        return timezone.localdate()
    as_of = parse_payment_date(raw)
    if as_of is None:
        raise RequestValidationError({'asOf': ['Use the YYYY-MM-DD format.']})
    return as_of


# ============ PAYMENT RECORDS ============

@api_view(['GET', 'POST'])
def payment_list(request):
    backend = _backend(request)

    if request.method == 'POST':
        payment = backend.create_payment(request.data)
        return Response(payment, status=status.HTTP_201_CREATED)

    return Response(backend.list_payments(request.query_params.dict()))


@api_view(['POST'])
def payment_multi_class(request):
    payment = _backend(request).create_multi_class_payment(request.data)
    return Response(payment, status=status.HTTP_201_CREATED)


@api_view(['GET', 'DELETE'])
def payment_detail(request, payment_id):
    backend = _backend(request)

    if request.method == 'DELETE':
        PaymentSubmissionCoordinator(backend).delete(payment_id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    return Response(backend.get_payment(payment_id))


# ============ CHARGES & CALCULATION ============

@api_view(['GET'])
def pending_charges(request, student_id):
    service = PendingChargeService(_backend(request))
    charges = service.pending_charges(student_id, as_of=_as_of(request))
    return Response([charge.to_dict() for charge in charges])


@api_view(['POST'])
def payment_calculate(request):
    """Live preview; zero or negative overrides still produce a total."""
    serializer = CalculateRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    service = PendingChargeService(_backend(request))
    charges = service.charges_for(
        data['studentId'],
        as_of=data.get('asOf') or data['paymentDate'],
        class_ids=data.get('classIds'),
        amounts=data.get('amounts'),
    )
    return Response(calculate(charges, data['paymentDate']).to_dict())


@api_view(['POST'])
def payment_submit(request):
    """Derive the oldest unpaid month's charges, then hand them to the submission coordinator."""
    serializer = SubmitRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    backend = _backend(request)
    payment_date = parse_payment_date(data['paymentDate'])
    service = PendingChargeService(backend)
    _, due = service.billable_month(
        data['studentId'],
        as_of=data.get('asOf') or payment_date or timezone.localdate(),
    )
    charges = service.select(due, class_ids=data.get('classIds'), amounts=data.get('amounts'))

    outcome = PaymentSubmissionCoordinator(backend).submit(
        data['studentId'],
        charges,
        data['paymentDate'],
        data['paymentMethod'],
        data.get('notes') or '',
        pending=due,
    )
    if not outcome.ok:
        return error_response(outcome.error)

    return Response(
        {'payment': outcome.payment, 'summary': outcome.summary.to_dict(), 'message': outcome.message},
        status=status.HTTP_201_CREATED,
    )


# ============ COLLECTIONS ============

@api_view(['GET'])
def outstanding(request):
    summary = collect_outstanding(_backend(request), as_of=_as_of(request))
    return Response(summary.to_dict())

"""
Payment records for completed rides.

Status tracking only: a Payment is created as pending when a ride completes
and is later marked completed (or failed) by the rider's app or an operator.
"""

import logging
import uuid
from decimal import Decimal

from django.db import transaction

from common.exceptions import NotFoundError, InvalidStateError, PermissionDeniedError
from payments.models import Payment, PaymentMethod, PaymentStatus
from rides.models import Ride, RideStatus

logger = logging.getLogger(__name__)


class PaymentNotFoundError(NotFoundError):
    error_code = "payment_not_found"


class PaymentStateError(InvalidStateError):
    """Raised when a payment is already settled or its ride is not completed."""
    error_code = "invalid_payment_state"


class NotPaymentParticipantError(PermissionDeniedError):
    error_code = "not_payment_participant"


def generate_transaction_id() -> str:
    return "PAY-" + uuid.uuid4().hex[:12].upper()


def record_ride_payment(ride_id, amount, payment_method=PaymentMethod.CASH) -> Payment:
    """
    Create the pending payment for a completed ride.

    Idempotent: a second call for the same ride returns the existing record,
    so a redelivered task never double-bills.
    """
    try:
        ride = Ride.objects.get(pk=ride_id)
    except Ride.DoesNotExist:
        raise NotFoundError(f"Ride not found with id: {ride_id}")

    if ride.status != RideStatus.COMPLETED:
        raise PaymentStateError("Payment can only be recorded after ride completion")

    payment, created = Payment.objects.get_or_create(
        ride=ride,
        defaults={
            "amount": Decimal(str(amount)),
            "payment_method": payment_method,
            "status": PaymentStatus.PENDING,
            "transaction_id": generate_transaction_id(),
        },
    )
    if created:
        logger.info("Recorded pending payment %s for ride %s (%s)", payment.transaction_id, ride.id, payment.amount)
    return payment


def get_by_transaction(transaction_id) -> Payment:
    try:
        return Payment.objects.select_related("ride", "ride__driver").get(transaction_id=transaction_id)
    except Payment.DoesNotExist:
        raise PaymentNotFoundError(f"Payment not found with transaction id: {transaction_id}")


def get_by_ride(ride_id) -> Payment:
    try:
        return Payment.objects.select_related("ride", "ride__driver").get(ride_id=ride_id)
    except Payment.DoesNotExist:
        raise PaymentNotFoundError(f"Payment not found for ride: {ride_id}")


def ensure_participant(payment: Payment, user):
    """Only the ride's rider and its driver may see or settle a payment."""
    ride = payment.ride
    if user.id == ride.rider_id:
        return
    if ride.driver is not None and ride.driver.user_id == user.id:
        return
    raise NotPaymentParticipantError("Only the rider or the driver of this ride can access its payment")


@transaction.atomic
def complete_payment(transaction_id, payment_method=None) -> Payment:
    """
    Mark a pending payment as completed.

    Raises:
        PaymentNotFoundError: If the transaction id is unknown
        PaymentStateError: If the payment is not pending
    """
    payment = get_by_transaction(transaction_id)

    fields = {"status": PaymentStatus.COMPLETED}
    if payment_method:
        fields["payment_method"] = payment_method

    updated = Payment.objects.filter(pk=payment.pk, status=PaymentStatus.PENDING).update(**fields)
    if updated != 1:
        raise PaymentStateError(f"Payment is already {payment.status}")

    payment.refresh_from_db()
    logger.info("Payment %s completed for ride %s", payment.transaction_id, payment.ride_id)
    return payment

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from common.exceptions import RideflowError, error_response
from payments import services
from payments.serializers import PaymentSerializer, CompletePaymentSerializer


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def complete_payment(request, transaction_id):
    """Settle a pending payment, optionally recording how it was paid."""
    serializer = CompletePaymentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        payment = services.get_by_transaction(transaction_id)
        services.ensure_participant(payment, request.user)
        payment = services.complete_payment(
            transaction_id,
            serializer.validated_data.get('payment_method'),
        )
    except RideflowError as exc:
        return error_response(exc)

    return Response({
        'success': True,
        'message': 'Payment completed',
        'payment': PaymentSerializer(payment).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_for_ride(request, ride_id):
    try:
        payment = services.get_by_ride(ride_id)
        services.ensure_participant(payment, request.user)
    except RideflowError as exc:
        return error_response(exc)

    return Response(PaymentSerializer(payment).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_detail(request, transaction_id):
    try:
        payment = services.get_by_transaction(transaction_id)
        services.ensure_participant(payment, request.user)
    except RideflowError as exc:
        return error_response(exc)

    return Response(PaymentSerializer(payment).data)

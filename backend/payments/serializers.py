from rest_framework import serializers

from payments.models import Payment, PaymentMethod


class PaymentSerializer(serializers.ModelSerializer):
    ride_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Payment
        fields = ['id', 'ride_id', 'amount', 'payment_method', 'status',
                  'transaction_id', 'created_at', 'updated_at']
        read_only_fields = fields


class CompletePaymentSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, required=False)

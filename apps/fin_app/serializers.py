from rest_framework import serializers

from ispdesk.lib import local_phone
from ispdesk.lib.mixins import BaseCustomModelSerializer
from fin_app.models import Invoice, Payment


class InvoiceModelSerializer(BaseCustomModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    status_text = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Invoice
        exclude = ('site',)
        read_only_fields = ('invoice_number', 'vat_amount', 'total_amount', 'paid_at')

    def create(self, validated_data):
        vat_rate = self.context.get('vat_rate')
        customer = validated_data.pop('customer')
        amount = validated_data.pop('amount')
        validated_data.pop('site', None)
        return Invoice.create_for(
            customer=customer,
            amount=amount,
            vat_rate=vat_rate,
            **validated_data
        )


class PaymentModelSerializer(BaseCustomModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True, default=None)
    status_text = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Payment
        exclude = ('site',)


class StkPushSerializer(serializers.Serializer):
    phone = serializers.CharField(max_length=16)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=1)
    account_reference = serializers.CharField(max_length=32, required=False, allow_blank=True)
    description = serializers.CharField(max_length=64, required=False, allow_blank=True)

    def validate_phone(self, value):
        phone = local_phone(value)
        if len(phone) != 10:
            raise serializers.ValidationError('Bad phone number')
        return phone

    def create(self, validated_data):
        pass

    def update(self, instance, validated_data):
        pass


class CheckStatusSerializer(serializers.Serializer):
    invoice_id = serializers.IntegerField()
    checkout_request_id = serializers.CharField(max_length=128)

    def create(self, validated_data):
        pass

    def update(self, instance, validated_data):
        pass


class FamilyBankStkPushSerializer(StkPushSerializer):
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=1, required=False)
    invoice_id = serializers.IntegerField(required=False)

    def validate(self, attrs):
        if not attrs.get('amount') and not attrs.get('invoice_id'):
            raise serializers.ValidationError('Amount or invoice is required')
        return attrs


class FamilyBankQueryStatusSerializer(serializers.Serializer):
    third_party_trans_id = serializers.CharField(max_length=128)

    def create(self, validated_data):
        pass

    def update(self, instance, validated_data):
        pass

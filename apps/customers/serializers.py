from rest_framework import serializers

from ispdesk.lib.mixins import BaseCustomModelSerializer
from customers.models import Customer, WalletTransaction, ClientWorkflowStatus
from fin_app.models import PaymentMethod


class CustomerModelSerializer(BaseCustomModelSerializer):
    status_text = serializers.CharField(source='get_status_display', read_only=True)
    service_title = serializers.CharField(source='service.title', read_only=True)
    rate = serializers.DecimalField(source='get_rate', max_digits=10, decimal_places=2, read_only=True)
    workflow_stage = serializers.CharField(source='workflow.current_stage', read_only=True, default=None)

    class Meta:
        model = Customer
        exclude = ('site', 'last_reminder_at')
        read_only_fields = (
            'status', 'wallet_balance', 'subscription_start', 'subscription_end',
            'disconnection_scheduled_at', 'approved_by', 'approved_at',
            'rejected_by', 'rejected_at', 'rejection_reason',
        )


class WalletTransactionModelSerializer(BaseCustomModelSerializer):
    class Meta:
        model = WalletTransaction
        exclude = ('site',)


class ClientWorkflowStatusModelSerializer(BaseCustomModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    stage_text = serializers.CharField(source='get_current_stage_display', read_only=True)

    class Meta:
        model = ClientWorkflowStatus
        fields = '__all__'


class ApproveCustomerSerializer(serializers.Serializer):
    equipment_id = serializers.IntegerField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def create(self, validated_data):
        pass

    def update(self, instance, validated_data):
        pass


class RejectCustomerSerializer(serializers.Serializer):
    reason = serializers.CharField()

    def create(self, validated_data):
        pass

    def update(self, instance, validated_data):
        pass


class CreditWalletSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, default=PaymentMethod.CASH)
    reference_number = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)
    mpesa_receipt_number = serializers.CharField(max_length=32, required=False, allow_blank=True,
                                                 allow_null=True)
    description = serializers.CharField(max_length=256, required=False, allow_blank=True)

    def create(self, validated_data):
        pass

    def update(self, instance, validated_data):
        pass


class PortalAuthSerializer(serializers.Serializer):
    email = serializers.EmailField()
    id_number = serializers.CharField(max_length=32)

    def create(self, validated_data):
        pass

    def update(self, instance, validated_data):
        pass


class PortalRenewSerializer(PortalAuthSerializer):
    phone = serializers.CharField(max_length=16, required=False, allow_blank=True)


class PortalPaymentHistorySerializer(PortalAuthSerializer):
    page = serializers.IntegerField(min_value=1, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=100, default=10)

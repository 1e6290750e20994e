from datetime import timedelta
from typing import Tuple

from django.conf import settings
from django.utils import timezone
from django.utils.translation import gettext as _
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.generics import get_object_or_404
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from customers import serializers
from customers.models import Customer, ClientWorkflowStatus, WalletTransaction
from customers import workflow
from fin_app.models import Invoice, InvoiceType, InvoiceStatus, Payment, PaymentStatus, PaymentMethod, get_vat_rate
from fin_app import serializers as fin_serializers
from fin_app.mpesa import MpesaClient, MpesaError
from inventory.models import InventoryItem
from ispdesk.exceptions import ExternalServiceError
from ispdesk.lib import LogicError
from ispdesk.lib.logger import logger
from ispdesk.lib.mixins import SiteFilterMixin
from ispdesk.viewsets import IspModelViewSet, IspReadOnlyModelViewSet
from profiles.models import UserProfileLogActionType


class CustomerModelViewSet(SiteFilterMixin, IspModelViewSet):
    queryset = Customer.objects.select_related('service', 'workflow')
    serializer_class = serializers.CustomerModelSerializer
    filterset_fields = ('status', 'service', 'connection_type', 'county')

    def perform_create(self, serializer, **kwargs):
        customer = super().perform_create(serializer=serializer, **kwargs)
        self.request.user.log(
            do_type=UserProfileLogActionType.CREATE_CUSTOMER,
            additional_text='"%s", %s' % (customer.name, customer.phone)
        )
        return customer

    def perform_destroy(self, instance):
        self.request.user.log(
            do_type=UserProfileLogActionType.DELETE_CUSTOMER,
            additional_text='"%s", %s' % (instance.name, instance.phone)
        )
        return super().perform_destroy(instance)

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        customer = self.get_object()
        ser = serializers.ApproveCustomerSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        equipment = InventoryItem.objects.filter(pk=ser.validated_data['equipment_id']).first()
        if equipment is None:
            raise LogicError(_('Equipment not found'))
        invoice = workflow.approve_customer(
            customer=customer,
            equipment=equipment,
            author=request.user,
            notes=ser.validated_data.get('notes')
        )
        return Response({
            'status': customer.status,
            'invoice_id': invoice.pk,
            'invoice_number': invoice.invoice_number,
            'amount': invoice.amount,
            'vat_amount': invoice.vat_amount,
            'total_amount': invoice.total_amount,
        })

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        customer = self.get_object()
        ser = serializers.RejectCustomerSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        workflow.reject_customer(
            customer=customer,
            reason=ser.validated_data['reason'],
            author=request.user
        )
        return Response({
            'status': customer.status,
            'rejection_reason': customer.rejection_reason
        })

    @action(detail=True, methods=['post'])
    def credit_wallet(self, request, pk=None):
        customer = self.get_object()
        ser = serializers.CreditWalletSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        dat = ser.validated_data
        res = workflow.credit_wallet(
            customer=customer,
            amount=dat['amount'],
            payment_method=dat.get('payment_method', PaymentMethod.CASH),
            reference_number=dat.get('reference_number') or None,
            mpesa_receipt_number=dat.get('mpesa_receipt_number') or None,
            description=dat.get('description'),
            author=request.user
        )
        return Response(res)

    @action(detail=True, methods=['post'])
    def renew(self, request, pk=None):
        customer = self.get_object()
        customer.renew_subscription()
        return Response({
            'status': customer.status,
            'wallet_balance': customer.wallet_balance,
            'subscription_end': customer.subscription_end,
        })

    @action(detail=True, methods=['post'])
    def suspend(self, request, pk=None):
        customer = self.get_object()
        customer.suspend()
        return Response({'status': customer.status})

    @action(detail=True, methods=['post'])
    def activate(self, request, pk=None):
        customer = self.get_object()
        customer.activate()
        return Response({'status': customer.status})

    @action(detail=True)
    def wallet_transactions(self, request, pk=None):
        customer = self.get_object()
        ser = serializers.WalletTransactionModelSerializer(
            customer.wallet_transactions.all(), many=True
        )
        return Response(ser.data)


class ClientWorkflowStatusReadOnlyViewSet(IspReadOnlyModelViewSet):
    queryset = ClientWorkflowStatus.objects.select_related('customer')
    serializer_class = serializers.ClientWorkflowStatusModelSerializer
    filterset_fields = ('current_stage', 'customer')

    def get_queryset(self):
        qs = super().get_queryset()
        if self.request.user.is_superuser:
            return qs
        return qs.filter(customer__site=self.request.site)


class _PortalView(APIView):
    """Customer identifies himself by email and national id"""
    permission_classes = [AllowAny]
    serializer_class = serializers.PortalAuthSerializer

    def get_customer(self, data) -> Tuple[Customer, dict]:
        ser = self.serializer_class(data=data)
        ser.is_valid(raise_exception=True)
        dat = ser.validated_data
        customer = get_object_or_404(
            Customer.objects.select_related('service'),
            email__iexact=dat['email'],
            id_number=dat['id_number'],
            site=getattr(self.request, 'site', None)
        )
        return customer, dat


class PortalRenewView(_PortalView):
    """
    Self service renewal. Customer gets renewal invoice
    and payment request on his phone.
    """
    serializer_class = serializers.PortalRenewSerializer

    def post(self, request, *args, **kwargs):
        customer, dat = self.get_customer(request.data)
        rate = customer.get_rate()
        if rate <= 0:
            raise LogicError(_('Customer has no rate to renew'))
        now = timezone.now()
        duration = customer.service.duration_days if customer.service else 30
        start = customer.subscription_end if customer.is_subscription_active(now) else now
        due_minutes = getattr(settings, 'RENEWAL_INVOICE_DUE_MINUTES', 30)
        phone = dat.get('phone') or customer.mpesa_number or customer.phone

        invoice = Invoice.create_for(
            customer=customer,
            amount=rate,
            invoice_type=InvoiceType.RENEWAL,
            vat_rate=get_vat_rate(),
            due_date=now + timedelta(minutes=due_minutes),
            service_period_start=start,
            service_period_end=start + timedelta(days=duration)
        )
        try:
            resp = MpesaClient().stk_push(
                phone=phone,
                amount=invoice.total_amount,
                account_reference=invoice.invoice_number,
                description='Renewal'
            )
        except MpesaError as err:
            logger.error('Portal renewal STK push failed for customer %d: %s' % (customer.pk, err))
            invoice.status = InvoiceStatus.CANCELLED
            invoice.notes = _('Payment request failed: %s') % err
            invoice.save(update_fields=['status', 'notes'])
            raise ExternalServiceError(str(err))
        checkout_id = resp.get('CheckoutRequestID')
        Payment.objects.create(
            site=customer.site,
            customer=customer,
            invoice=invoice,
            amount=invoice.total_amount,
            payment_method=PaymentMethod.MPESA,
            status=PaymentStatus.PENDING,
            reference_number=checkout_id,
            phone=phone
        )
        return Response({
            'invoice_id': invoice.pk,
            'invoice_number': invoice.invoice_number,
            'amount': invoice.total_amount,
            'checkout_request_id': checkout_id,
            'message': resp.get('CustomerMessage', ''),
        }, status=status.HTTP_201_CREATED)


class PortalDashboardView(_PortalView):
    """Everything the customer sees on his portal page"""

    def get(self, request, *args, **kwargs):
        return self._dashboard(self.get_customer(request.query_params)[0])

    def post(self, request, *args, **kwargs):
        return self._dashboard(self.get_customer(request.data)[0])

    @staticmethod
    def _dashboard(customer: Customer):
        payments = customer.payments.order_by('-payment_date')[:10]
        wallet_transactions = customer.wallet_transactions.order_by('-create_time')[:20]
        invoices = customer.invoices.order_by('-create_time')
        pending_invoices = invoices.filter(status=InvoiceStatus.PENDING)
        service = customer.service
        mpesa_conf = getattr(settings, 'MPESA', {})
        return Response({
            'client': {
                'id': customer.pk,
                'name': customer.name,
                'email': customer.email,
                'phone': customer.phone,
                'mpesa_number': customer.mpesa_number,
                'id_number': customer.id_number,
                'status': customer.status,
                'wallet_balance': customer.wallet_balance,
                'monthly_rate': customer.get_rate(),
                'subscription_start': customer.subscription_start,
                'subscription_end': customer.subscription_end,
                'location': {
                    'address': customer.address,
                    'county': customer.county,
                    'sub_county': customer.sub_county,
                },
                'service': {
                    'id': service.pk,
                    'title': service.title,
                    'cost': service.cost,
                    'duration_days': service.duration_days,
                } if service else None,
                'payment_settings': {
                    'paybill_number': mpesa_conf.get('SHORTCODE', ''),
                    'account_number': customer.id_number,
                },
            },
            'payments': fin_serializers.PaymentModelSerializer(payments, many=True).data,
            'wallet_transactions': serializers.WalletTransactionModelSerializer(
                wallet_transactions, many=True
            ).data,
            'pending_invoices': fin_serializers.InvoiceModelSerializer(pending_invoices, many=True).data,
            'recent_invoices': fin_serializers.InvoiceModelSerializer(invoices[:10], many=True).data,
            'summary': {
                'total_payments': customer.payments.count(),
                'pending_invoices_count': pending_invoices.count(),
                'current_balance': customer.wallet_balance,
                'monthly_rate': customer.get_rate(),
            },
        })


class PortalWalletTransactionsView(_PortalView):
    def post(self, request, *args, **kwargs):
        customer, _dat = self.get_customer(request.data)
        transactions = WalletTransaction.objects.filter(customer=customer).order_by('-create_time')[:100]
        return Response({
            'client': {
                'id': customer.pk,
                'name': customer.name,
                'email': customer.email,
                'phone': customer.phone,
            },
            'transactions': serializers.WalletTransactionModelSerializer(transactions, many=True).data,
        })


class PortalPaymentHistoryView(_PortalView):
    serializer_class = serializers.PortalPaymentHistorySerializer

    def get(self, request, *args, **kwargs):
        customer, dat = self.get_customer(request.query_params)
        page, limit = dat['page'], dat['limit']
        qs = customer.payments.order_by('-payment_date')
        total = qs.count()
        total_pages = (total + limit - 1) // limit
        offset = (page - 1) * limit
        return Response({
            'payments': fin_serializers.PaymentModelSerializer(qs[offset:offset + limit], many=True).data,
            'pagination': {
                'page': page,
                'limit': limit,
                'total': total,
                'total_pages': total_pages,
                'has_next': page < total_pages,
                'has_prev': page > 1,
            },
        })

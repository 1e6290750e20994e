from django.utils.translation import gettext as _
from django.utils.dateparse import parse_datetime
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.generics import get_object_or_404
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from customers.models import Customer
from fin_app import serializers
from fin_app.billing import (
    check_invoice_payment, settle_payment, fail_payment, process_c2b_payment,
    process_family_bank_callback, check_family_bank_payment
)
from fin_app.family_bank import FamilyBankClient, FamilyBankError
from fin_app.models import Invoice, Payment, PaymentStatus, PaymentMethod, report_by_pays, get_vat_rate
from fin_app.mpesa import MpesaClient, MpesaError
from fin_app.receipts import make_payment_receipt, make_invoice_receipt, render_receipt
from ispdesk.exceptions import ExternalServiceError
from ispdesk.lib import safe_int
from ispdesk.lib.logger import logger
from ispdesk.lib.mixins import SiteFilterMixin
from ispdesk.viewsets import IspModelViewSet


class InvoiceModelViewSet(SiteFilterMixin, IspModelViewSet):
    queryset = Invoice.objects.select_related('customer')
    serializer_class = serializers.InvoiceModelSerializer
    filterset_fields = ('status', 'customer', 'invoice_type')

    def get_serializer_context(self):
        ctx = super().get_serializer_context()
        ctx['vat_rate'] = get_vat_rate()
        return ctx

    @action(detail=True)
    def receipt(self, request, pk=None):
        receipt = make_invoice_receipt(self.get_object())
        return Response({
            'receipt': receipt,
            'receipt_html': render_receipt(receipt),
        })


class PaymentModelViewSet(SiteFilterMixin, IspModelViewSet):
    queryset = Payment.objects.select_related('customer')
    serializer_class = serializers.PaymentModelSerializer
    filterset_fields = ('status', 'customer', 'invoice', 'payment_method')

    @action(detail=False, methods=['post'])
    def stk_push(self, request):
        ser = serializers.StkPushSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        dat = ser.validated_data
        phone = dat['phone']
        customer = Customer.objects.by_phone(phone).filter(site=request.site).first()
        try:
            resp = MpesaClient().stk_push(
                phone=phone,
                amount=dat['amount'],
                account_reference=dat.get('account_reference'),
                description=dat.get('description')
            )
        except MpesaError as err:
            raise ExternalServiceError(str(err))
        checkout_id = resp.get('CheckoutRequestID')
        payment_id = None
        if customer is not None and checkout_id:
            payment = Payment.objects.create(
                site=request.site,
                customer=customer,
                amount=dat['amount'],
                payment_method=PaymentMethod.MPESA,
                status=PaymentStatus.PENDING,
                reference_number=checkout_id,
                phone=phone
            )
            payment_id = payment.pk
        return Response({
            'checkout_request_id': checkout_id,
            'merchant_request_id': resp.get('MerchantRequestID'),
            'message': resp.get('CustomerMessage', ''),
            'payment_id': payment_id,
        })

    @action(detail=False, methods=['post'])
    def check_status(self, request):
        ser = serializers.CheckStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        dat = ser.validated_data
        invoice = Invoice.objects.select_related('customer').filter(pk=dat['invoice_id']).first()
        if invoice is None:
            return Response({
                'status': 'unknown',
                'message': _('Invoice not found')
            }, status=status.HTTP_400_BAD_REQUEST)
        try:
            res = check_invoice_payment(invoice, dat['checkout_request_id'])
        except MpesaError as err:
            logger.error('Payment status check failed: %s' % err)
            return Response({
                'status': 'error',
                'message': str(err)
            }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(res)

    @action(detail=False)
    def report(self, request):
        from_time = parse_datetime(request.query_params.get('from_time', ''))
        to_time = parse_datetime(request.query_params.get('to_time', ''))
        site = None if request.user.is_superuser else request.site
        res = report_by_pays(
            from_time=from_time,
            to_time=to_time,
            site=site,
            group_by=request.query_params.get('group_by', 0),
            limit=safe_int(request.query_params.get('limit'), 50)
        )
        return Response(tuple(res))

    @action(detail=True)
    def receipt(self, request, pk=None):
        receipt = make_payment_receipt(self.get_object())
        return Response({
            'receipt': receipt,
            'receipt_html': render_receipt(receipt),
        })

    @action(detail=False, methods=['post'], url_path='family-bank/stk-push')
    def family_bank_stk_push(self, request):
        ser = serializers.FamilyBankStkPushSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        dat = ser.validated_data
        phone = dat['phone']
        invoice = None
        if dat.get('invoice_id'):
            invoice = get_object_or_404(
                Invoice.objects.select_related('customer'), pk=dat['invoice_id'], site=request.site
            )
            if invoice.is_paid:
                return Response({
                    'status': 'completed',
                    'message': _('Invoice already paid')
                }, status=status.HTTP_400_BAD_REQUEST)
            customer = invoice.customer
            amount = dat.get('amount') or invoice.total_amount
            account_reference = invoice.invoice_number
        else:
            customer = Customer.objects.by_phone(phone).filter(site=request.site).first()
            amount = dat['amount']
            account_reference = dat.get('account_reference') or 'WALLET_TOPUP'
        if customer is None:
            raise NotFound(_('Customer with this phone not found'))
        try:
            resp = FamilyBankClient().stk_push(
                phone=phone,
                amount=amount,
                account_reference=account_reference,
                description=dat.get('description')
            )
        except FamilyBankError as err:
            logger.error('Family Bank STK push for customer %d failed: %s' % (customer.pk, err))
            return Response({
                'status': 'failed',
                'message': str(err),
                'error_code': err.response.get('ResponseCode'),
            }, status=status.HTTP_400_BAD_REQUEST)
        trans_id = resp['ThirdPartyTransID']
        payment = Payment.objects.create(
            site=request.site,
            customer=customer,
            invoice=invoice,
            amount=amount,
            payment_method=PaymentMethod.FAMILY_BANK,
            status=PaymentStatus.PENDING,
            reference_number=trans_id,
            phone=phone
        )
        return Response({
            'status': 'pending',
            'third_party_trans_id': trans_id,
            'message': resp.get('ResponseDescription', ''),
            'payment_id': payment.pk,
        })

    @action(detail=False, methods=['post'], url_path='family-bank/query-status')
    def family_bank_query_status(self, request):
        ser = serializers.FamilyBankQueryStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        payment = self.get_queryset().filter(
            reference_number=ser.validated_data['third_party_trans_id'],
            payment_method=PaymentMethod.FAMILY_BANK
        ).first()
        if payment is None:
            raise NotFound(_('Transaction not found'))
        return Response(check_family_bank_payment(payment))


class _PaymentCallbackView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @staticmethod
    def accepted():
        return Response({'ResultCode': 0, 'ResultDesc': 'Accepted'})


class StkCallbackView(_PaymentCallbackView):
    """Result of STK push from Daraja"""

    def post(self, request, *args, **kwargs):
        callback = request.data.get('Body', {}).get('stkCallback')
        if not callback:
            return Response({'ResultCode': 1, 'ResultDesc': 'Bad callback'},
                            status=status.HTTP_400_BAD_REQUEST)
        checkout_id = callback.get('CheckoutRequestID')
        payment = Payment.objects.filter(reference_number=checkout_id).first()
        if payment is None:
            logger.warning('STK callback for unknown checkout %s' % checkout_id)
            return self.accepted()
        if payment.status != PaymentStatus.PENDING:
            # duplicated callback
            return self.accepted()
        if safe_int(callback.get('ResultCode'), -1) == 0:
            items = {
                i.get('Name'): i.get('Value')
                for i in callback.get('CallbackMetadata', {}).get('Item', ())
            }
            settle_payment(
                payment,
                receipt=items.get('MpesaReceiptNumber'),
                amount=items.get('Amount')
            )
        else:
            fail_payment(payment, callback.get('ResultDesc', ''))
        return self.accepted()


class C2BConfirmationView(_PaymentCallbackView):
    """Paybill payment made by customer himself"""

    def post(self, request, *args, **kwargs):
        dat = request.data
        trans_id = dat.get('TransID')
        msisdn = dat.get('MSISDN')
        if not trans_id or not msisdn:
            return Response({'ResultCode': 1, 'ResultDesc': 'Bad request'},
                            status=status.HTTP_400_BAD_REQUEST)
        res = process_c2b_payment(
            trans_id=trans_id,
            amount=dat.get('TransAmount'),
            msisdn=str(msisdn),
            bill_ref=dat.get('BillRefNumber'),
            site=getattr(request, 'site', None)
        )
        if res is None:
            return Response({'ResultCode': 1, 'ResultDesc': 'Customer not found'},
                            status=status.HTTP_404_NOT_FOUND)
        return self.accepted()


class FamilyBankStkCallbackView(_PaymentCallbackView):
    """Result of Family Bank STK push"""

    def post(self, request, *args, **kwargs):
        trans_id = request.data.get('ThirdPartyTransID')
        payment = process_family_bank_callback(request.data)
        if payment is None:
            return Response({
                'success': False,
                'error': 'STK request not found',
                'transaction_id': trans_id
            }, status=status.HTTP_404_NOT_FOUND)
        return Response({
            'success': True,
            'status': payment.status,
            'transaction_id': trans_id
        })


class FamilyBankC2BCallbackView(_PaymentCallbackView):
    """Paybill payment confirmed by Family Bank"""

    def post(self, request, *args, **kwargs):
        dat = request.data
        trans_id = dat.get('TransID')
        msisdn = dat.get('MSISDN')
        if not trans_id or not msisdn:
            return Response({'ResultCode': '1', 'ResultDesc': 'Bad request'},
                            status=status.HTTP_400_BAD_REQUEST)
        ack = {
            'ResultCode': '0',
            'ResultDesc': 'Success. Transaction received and processed',
            'TransactionID': trans_id,
            'ConversationID': dat.get('CheckoutRequestID') or '',
            'OriginatorConversationID': dat.get('InvoiceNumber') or '',
        }
        if str(dat.get('ResultCode', '0')) != '0':
            logger.warning('Family Bank C2B %s is not successful: %s' % (trans_id, dat.get('ResultDesc')))
            ack['ResultDesc'] = 'Transaction received'
            return Response(ack)
        res = process_c2b_payment(
            trans_id=trans_id,
            amount=dat.get('TransAmount'),
            msisdn=str(msisdn),
            bill_ref=dat.get('BillRefNumber'),
            site=getattr(request, 'site', None),
            payment_method=PaymentMethod.FAMILY_BANK
        )
        if res is None:
            return Response({'ResultCode': '1', 'ResultDesc': 'Customer not found'},
                            status=status.HTTP_404_NOT_FOUND)
        return Response(ack)

from decimal import Decimal
from typing import Optional

from django.db import transaction
from django.utils.translation import gettext as _

from customers.models import Customer, WalletTransaction, WalletTransactionType
from customers.workflow import try_auto_renew, credit_wallet
from fin_app.models import Invoice, InvoiceType, Payment, PaymentStatus, PaymentMethod
from fin_app.family_bank import FamilyBankClient, FamilyBankError
from fin_app.mpesa import MpesaClient, MpesaError
from ispdesk.lib import safe_decimal, phone_variants
from ispdesk.lib.logger import logger
from messenger.tasks import notify_customer, NotificationType


# Daraja answers with this code while customer did not confirm payment yet
STK_IN_PROCESS_ERROR_CODE = '500.001.1001'


def receipt_seen(receipt: Optional[str]) -> bool:
    if not receipt:
        return False
    return Payment.objects.filter(mpesa_receipt_number=receipt).exists() or \
        WalletTransaction.objects.filter(mpesa_receipt_number=receipt).exists()


def settle_payment(payment: Payment, receipt: Optional[str] = None, amount=None,
                   notification=NotificationType.PAYMENT_SUCCESS) -> bool:
    """
    Complete pending payment: put money on customer wallet,
    close invoice and renew subscription when it is possible.
    :return: False if payment was already settled
    """
    if receipt and receipt_seen(receipt):
        logger.warning('Receipt %s already processed' % receipt)
        return False
    amount = safe_decimal(amount, payment.amount)
    with transaction.atomic():
        updated = Payment.objects.filter(pk=payment.pk, status=PaymentStatus.PENDING).update(
            status=PaymentStatus.COMPLETED,
            mpesa_receipt_number=receipt,
            amount=amount
        )
        if not updated:
            return False
        payment.refresh_from_db()
        customer = payment.customer
        if customer is None:
            return True
        invoice = payment.invoice
        customer.add_balance(
            amount=amount,
            description=_('%s payment') % payment.get_payment_method_display(),
            reference_number=invoice.invoice_number if invoice else payment.reference_number,
            mpesa_receipt_number=receipt
        )
        if invoice is not None and not invoice.is_paid:
            invoice.mark_paid()
        if invoice is not None and invoice.invoice_type == InvoiceType.RENEWAL and \
                customer.wallet_balance >= customer.get_rate() > 0:
            customer.renew_subscription()
        else:
            try_auto_renew(customer)
    notify_customer(customer, notification, {
        'amount': amount,
        'receipt': receipt or '',
        'invoice_number': invoice.invoice_number if invoice else '',
    })
    return True


def fail_payment(payment: Payment, reason: str) -> None:
    Payment.objects.filter(pk=payment.pk, status=PaymentStatus.PENDING).update(
        status=PaymentStatus.FAILED,
        notes=reason or ''
    )
    payment.refresh_from_db(fields=['status', 'notes'])


def query_stk_result(checkout_request_id: str) -> dict:
    """
    Ask Daraja about STK push result.
    :return: dict with status "completed", "failed" or "pending" and Daraja response
    """
    try:
        resp = MpesaClient().query_status(checkout_request_id)
    except MpesaError as err:
        if err.response.get('errorCode') == STK_IN_PROCESS_ERROR_CODE:
            return {'status': 'pending', 'response': err.response}
        raise
    code = resp.get('ResultCode')
    if code is None:
        return {'status': 'pending', 'response': resp}
    if str(code) == '0':
        return {'status': 'completed', 'response': resp}
    return {'status': 'failed', 'message': resp.get('ResultDesc', ''), 'response': resp}


def check_stk_payment(payment: Payment) -> str:
    """Poll Daraja for pending STK payment and apply the result"""
    res = query_stk_result(payment.reference_number)
    if res['status'] == 'completed':
        settle_payment(payment)
    elif res['status'] == 'failed':
        fail_payment(payment, res.get('message'))
    return res['status']


def _link_invoice(payment: Payment, invoice: Invoice) -> None:
    if payment.invoice_id is None:
        payment.invoice = invoice
        payment.save(update_fields=['invoice'])


def check_invoice_payment(invoice: Invoice, checkout_request_id: str) -> dict:
    if invoice.is_paid:
        return {'status': 'completed', 'message': _('Invoice already paid')}
    res = query_stk_result(checkout_request_id)
    if res['status'] == 'completed':
        customer = invoice.customer
        with transaction.atomic():
            invoice = Invoice.objects.select_for_update().get(pk=invoice.pk)
            payment = Payment.objects.select_for_update().filter(
                reference_number=checkout_request_id
            ).first()
            if payment is None:
                payment = Payment.objects.create(
                    site=invoice.site,
                    customer=customer,
                    invoice=invoice,
                    amount=invoice.total_amount,
                    payment_method=PaymentMethod.MPESA,
                    reference_number=checkout_request_id,
                    phone=customer.mpesa_number or customer.phone
                )
            elif payment.status == PaymentStatus.COMPLETED:
                # money came through callback or poller, wallet is already credited
                _link_invoice(payment, invoice)
                if not invoice.is_paid:
                    invoice.mark_paid()
                payment = None
            else:
                _link_invoice(payment, invoice)
                if payment.status == PaymentStatus.FAILED:
                    Payment.objects.filter(pk=payment.pk).update(status=PaymentStatus.PENDING)
        if payment is not None:
            settle_payment(payment, amount=invoice.total_amount, notification=NotificationType.WALLET_CREDIT)
        customer.refresh_from_db()
        return {
            'status': 'completed',
            'message': res['response'].get('ResultDesc', ''),
            'new_balance': customer.wallet_balance,
        }
    if res['status'] == 'failed':
        payment = Payment.objects.filter(
            reference_number=checkout_request_id, status=PaymentStatus.PENDING
        ).first()
        if payment is not None:
            fail_payment(payment, res.get('message'))
        return {'status': 'failed', 'message': res.get('message', '')}
    return {'status': 'pending', 'message': _('Payment is still being processed')}


def find_customer_for_c2b(msisdn: str, site=None) -> Optional[Customer]:
    """By M-Pesa number first, then by phone, filling M-Pesa number on the way"""
    qs = Customer.objects.all()
    if site is not None:
        qs = qs.filter(site=site)
    customer = qs.filter(mpesa_number__in=phone_variants(msisdn)).first()
    if customer is not None:
        return customer
    customer = qs.filter(phone__in=phone_variants(msisdn)).first()
    if customer is not None:
        customer.mpesa_number = msisdn
        customer.save(update_fields=['mpesa_number'])
    return customer


def process_c2b_payment(trans_id: str, amount, msisdn: str, bill_ref: Optional[str] = None,
                        site=None, payment_method=PaymentMethod.MPESA) -> Optional[dict]:
    """
    Apply C2B confirmation.
    :return: credit result, None when customer not found
    """
    amount = safe_decimal(amount, Decimal(0))
    description = _('%s payment') % PaymentMethod(payment_method).label
    if receipt_seen(trans_id):
        logger.info('C2B transaction %s already processed' % trans_id)
        return {'duplicate': True}
    customer = find_customer_for_c2b(msisdn, site=site)
    if customer is None:
        WalletTransaction.objects.create(
            site=site,
            customer=None,
            transaction_type=WalletTransactionType.CREDIT,
            amount=amount,
            description=_('Unmatched payment from %s') % msisdn,
            reference_number=bill_ref,
            mpesa_receipt_number=trans_id
        )
        logger.warning('C2B payment %s from %s did not match any customer' % (trans_id, msisdn))
        return None
    res = credit_wallet(
        customer=customer,
        amount=amount,
        payment_method=payment_method,
        reference_number=bill_ref,
        mpesa_receipt_number=trans_id,
        description=description
    )
    notify_customer(customer, NotificationType.PAYMENT_SUCCESS, {
        'amount': amount,
        'receipt': trans_id,
    })
    return res


def _bank_receipt(data: dict) -> Optional[str]:
    return data.get('MpesaReceiptNumber') or data.get('TransID') or None


def process_family_bank_callback(data: dict) -> Optional[Payment]:
    """
    Apply STK push result sent by Family Bank.
    :return: payment the callback is about, None when it is unknown
    """
    trans_id = data.get('ThirdPartyTransID')
    if not trans_id:
        return None
    payment = Payment.objects.filter(
        reference_number=trans_id, payment_method=PaymentMethod.FAMILY_BANK
    ).first()
    if payment is None:
        logger.warning('Family Bank callback for unknown transaction %s' % trans_id)
        return None
    if payment.status != PaymentStatus.PENDING:
        return payment
    if str(data.get('ResponseCode')) == '0':
        settle_payment(payment, receipt=_bank_receipt(data))
    else:
        fail_payment(payment, data.get('ResponseDescription') or data.get('ResultDesc', ''))
    payment.refresh_from_db()
    return payment


def query_family_bank_result(trans_id: str) -> dict:
    """
    Ask Family Bank about STK push result.
    Unavailable query means we still do not know, so it is "pending".
    """
    try:
        resp = FamilyBankClient().query_status(trans_id)
    except FamilyBankError as err:
        logger.warning('Family Bank query for %s failed: %s' % (trans_id, err))
        return {'status': 'pending', 'message': str(err)}
    if str(resp.get('ResponseCode')) != '0' or resp.get('ResultCode') is None:
        return {'status': 'pending', 'response': resp}
    if str(resp['ResultCode']) == '0':
        return {'status': 'completed', 'response': resp}
    return {'status': 'failed', 'message': resp.get('ResultDesc', ''), 'response': resp}


def check_family_bank_payment(payment: Payment) -> dict:
    if payment.status == PaymentStatus.COMPLETED:
        return {'status': 'completed', 'message': _('Payment already completed')}
    if payment.status == PaymentStatus.FAILED:
        return {'status': 'failed', 'message': payment.notes}
    res = query_family_bank_result(payment.reference_number)
    if res['status'] == 'completed':
        settle_payment(payment, receipt=_bank_receipt(res['response']))
        customer = payment.customer
        if customer is not None:
            customer.refresh_from_db(fields=['wallet_balance'])
        return {
            'status': 'completed',
            'message': res['response'].get('ResultDesc', ''),
            'new_balance': customer.wallet_balance if customer else None,
        }
    if res['status'] == 'failed':
        fail_payment(payment, res.get('message'))
        return {'status': 'failed', 'message': res.get('message', '')}
    return {'status': 'pending', 'message': _('Payment is still being processed')}

from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.translation import gettext as _

from fin_app.models import Invoice, Payment, PaymentStatus
from ispdesk.lib import LogicError


def payment_receipt_number(payment: Payment) -> str:
    return "RCP-P%06d" % payment.pk


def invoice_receipt_number(invoice: Invoice) -> str:
    return "RCP-I%06d" % invoice.pk


def _customer_part(customer) -> dict:
    if customer is None:
        return {'client_name': '', 'client_email': '', 'client_phone': ''}
    return {
        'client_name': customer.name,
        'client_email': customer.email or '',
        'client_phone': customer.phone,
    }


def make_payment_receipt(payment: Payment) -> dict:
    if payment.status != PaymentStatus.COMPLETED:
        raise LogicError(_('Receipt is available only for completed payments'))
    invoice = payment.invoice
    return {
        'receipt_number': payment_receipt_number(payment),
        'date': timezone.now(),
        **_customer_part(payment.customer),
        'amount': payment.amount,
        'payment_method': payment.payment_method,
        'payment_method_text': payment.get_payment_method_display(),
        'reference_number': payment.reference_number or '',
        'mpesa_receipt': payment.mpesa_receipt_number or '',
        'invoice_number': invoice.invoice_number if invoice else '',
        'description': payment.notes or _('Payment received'),
        'payment_date': payment.payment_date,
    }


def make_invoice_receipt(invoice: Invoice) -> dict:
    if not invoice.is_paid:
        raise LogicError(_('Invoice is not paid yet'))
    receipt = {
        'receipt_number': invoice_receipt_number(invoice),
        'date': timezone.now(),
        **_customer_part(invoice.customer),
        'amount': invoice.total_amount,
        'invoice_number': invoice.invoice_number,
        'description': invoice.notes or _('Invoice payment'),
        'payment_date': invoice.paid_at,
        'service_period': '',
    }
    if invoice.service_period_start and invoice.service_period_end:
        receipt['service_period'] = '%s - %s' % (
            invoice.service_period_start.date(),
            invoice.service_period_end.date()
        )
    return receipt


def render_receipt(receipt: dict) -> str:
    return render_to_string('fin_app/receipt.html', receipt)

from datetime import timedelta

from celery.utils.log import get_task_logger
from django.utils import timezone

from ispdesk import celery_app
from fin_app.billing import check_stk_payment
from fin_app.models import Invoice, InvoiceStatus, Payment, PaymentStatus, PaymentMethod
from fin_app.mpesa import MpesaError
from messenger.tasks import notify_customer, NotificationType


logger = get_task_logger(__name__)


def poll_pending_stk_payments(now=None) -> dict:
    """STK payments without callback for more than a minute are asked from Daraja"""
    now = now or timezone.now()
    payments = Payment.objects.filter(
        status=PaymentStatus.PENDING,
        payment_method=PaymentMethod.MPESA,
        payment_date__lt=now - timedelta(minutes=1),
        payment_date__gt=now - timedelta(days=1),
    ).exclude(reference_number=None).select_related('customer', 'invoice')
    res = {'completed': 0, 'failed': 0, 'pending': 0}
    for payment in payments.iterator():
        try:
            st = check_stk_payment(payment)
        except MpesaError as err:
            logger.error('Failed to check payment %d: %s' % (payment.pk, err))
            continue
        res[st] += 1
    return res


def mark_overdue_invoices(now=None) -> int:
    """Pending invoices past due date become overdue, their customers get payment reminder"""
    now = now or timezone.now()
    invoices = list(Invoice.objects.filter(
        status=InvoiceStatus.PENDING,
        due_date__lt=now
    ).select_related('customer'))
    Invoice.objects.filter(
        pk__in=[inv.pk for inv in invoices], status=InvoiceStatus.PENDING
    ).update(status=InvoiceStatus.OVERDUE)
    for inv in invoices:
        notify_customer(inv.customer, NotificationType.PAYMENT_REMINDER, {
            'invoice_number': inv.invoice_number,
            'amount': inv.total_amount,
            'due_date': timezone.localtime(inv.due_date).strftime('%Y-%m-%d'),
        })
    return len(invoices)


@celery_app.task
def poll_pending_payments_task():
    res = poll_pending_stk_payments()
    logger.info('Pending STK payments polled: %s' % res)
    return res


@celery_app.task
def mark_overdue_invoices_task():
    return mark_overdue_invoices()


celery_app.add_periodic_task(
    60,
    poll_pending_payments_task.s(),
    name='Poll pending STK payments every minute'
)

celery_app.add_periodic_task(
    3600,
    mark_overdue_invoices_task.s(),
    name='Mark overdue invoices every hour'
)

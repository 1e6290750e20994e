from datetime import timedelta

from celery.utils.log import get_task_logger
from django.utils import timezone

from ispdesk import celery_app
from ispdesk.lib import LogicError
from customers.models import Customer, CustomerStatus
from messenger.tasks import notify_customer, NotificationType


logger = get_task_logger(__name__)

REMIND_DAYS_BEFORE = 3


def process_expired_subscriptions(now=None) -> dict:
    """
    Active customers with finished subscription are renewed from
    wallet when it is possible, others are suspended.
    """
    now = now or timezone.now()
    renewed = suspended = 0
    expired = Customer.objects.filter(
        status=CustomerStatus.ACTIVE,
        subscription_end__lte=now
    ).select_related('service', 'site')
    for customer in expired.iterator():
        rate = customer.get_rate()
        if rate > 0 and customer.wallet_balance >= rate:
            try:
                customer.renew_subscription(now=now)
            except LogicError as err:
                logger.warning('Failed to renew customer %d: %s' % (customer.pk, err))
            else:
                renewed += 1
                notify_customer(customer, NotificationType.SERVICE_RENEWAL, {
                    'amount': rate,
                    'expiry_date': timezone.localtime(customer.subscription_end).strftime('%Y-%m-%d'),
                })
                continue
        customer.suspend()
        suspended += 1
        notify_customer(customer, NotificationType.SERVICE_SUSPENDED, {
            'amount': rate,
        })
    return {'renewed': renewed, 'suspended': suspended}


def send_expiry_reminders(now=None) -> int:
    """Remind once a day about subscription that finishes soon"""
    now = now or timezone.now()
    customers = Customer.objects.filter(
        status=CustomerStatus.ACTIVE,
        subscription_end__gt=now,
        subscription_end__lte=now + timedelta(days=REMIND_DAYS_BEFORE)
    ).exclude(
        last_reminder_at__gt=now - timedelta(days=1)
    )
    count = 0
    for customer in customers.iterator():
        days_left = (customer.subscription_end - now).days
        notify_customer(customer, NotificationType.SERVICE_EXPIRY, {
            'days_left': days_left,
            'amount': customer.get_rate(),
            'expiry_date': timezone.localtime(customer.subscription_end).strftime('%Y-%m-%d'),
        })
        Customer.objects.filter(pk=customer.pk).update(last_reminder_at=now)
        count += 1
    return count


@celery_app.task
def check_subscriptions_task():
    res = process_expired_subscriptions()
    res['reminded'] = send_expiry_reminders()
    logger.info('Subscriptions checked: %s' % res)
    return res


celery_app.add_periodic_task(
    3600,
    check_subscriptions_task.s(),
    name='Check customer subscriptions every hour'
)

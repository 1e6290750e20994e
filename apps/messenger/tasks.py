from typing import List, Optional

from django.contrib.sites.models import Site
from django.db import transaction
from django.utils.translation import gettext as _

from ispdesk import celery_app
from ispdesk.lib import LogicError, normalize_msisdn
from ispdesk.lib.logger import logger
from messenger.models import SmsMessage, SmsTemplate, SmsMessageStatus


class NotificationType:
    PAYMENT_SUCCESS = 'payment_success'
    WALLET_CREDIT = 'wallet_credit'
    SERVICE_RENEWAL = 'service_renewal'
    SERVICE_EXPIRY = 'service_expiry'
    SERVICE_SUSPENDED = 'service_suspended'
    PAYMENT_REMINDER = 'payment_reminder'
    ACCOUNT_APPROVED = 'account_approved'
    RADIUS_CREDENTIALS = 'radius_credentials'

    all = (
        PAYMENT_SUCCESS, WALLET_CREDIT, SERVICE_RENEWAL, SERVICE_EXPIRY,
        SERVICE_SUSPENDED, PAYMENT_REMINDER, ACCOUNT_APPROVED, RADIUS_CREDENTIALS,
    )


@celery_app.task
def send_sms_task(message_id: int):
    msg = SmsMessage.objects.filter(pk=message_id, status=SmsMessageStatus.QUEUED).first()
    if msg is None:
        return
    msg.send()


def queue_sms(recipient: str, text: str, site: Optional[Site] = None, template_key='') -> SmsMessage:
    msg = SmsMessage.objects.create(
        site=site,
        recipient=normalize_msisdn(recipient),
        text=text,
        template_key=template_key
    )
    transaction.on_commit(lambda: send_sms_task.delay(msg.pk))
    return msg


def send_bulk_sms(site: Optional[Site], template_key: str, recipients: List[str], variables=None) -> dict:
    """
    Render active template and send it to every recipient.
    :return: dict with counters and overall status: "sent", "partial" or "failed"
    """
    if not template_key or not recipients:
        raise LogicError(_('template_key and recipients are required'))
    template = SmsTemplate.objects.filter(
        site=site, template_key=template_key, is_active=True
    ).first()
    if template is None:
        raise LogicError(_('Active template "%s" not found') % template_key)
    text = template.render(variables)
    sent = failed = 0
    for rcpt in recipients:
        msg = SmsMessage.objects.create(
            site=site,
            recipient=normalize_msisdn(rcpt),
            text=text,
            template_key=template_key
        )
        if msg.send():
            sent += 1
        else:
            failed += 1
    if failed == 0:
        status = 'sent'
    elif sent == 0:
        status = 'failed'
    else:
        status = 'partial'
    logger.info('Bulk sms "%s": sent %d, failed %d' % (template_key, sent, failed))
    return {
        'status': status,
        'total': len(recipients),
        'sent': sent,
        'failed': failed,
        'message': text,
    }


def notify_customer(customer, notification_type: str, data: Optional[dict] = None) -> Optional[SmsMessage]:
    """
    Send notification sms to customer by template with key equal to notification type.
    :param customer: customers.models.Customer instance
    :param notification_type: one of NotificationType
    :param data: template variables, customer_name and phone are added
    """
    template = SmsTemplate.objects.filter(
        site=customer.site, template_key=notification_type, is_active=True
    ).first()
    if template is None:
        logger.warning('No active sms template "%s" for site %s, notification skipped' % (
            notification_type, customer.site_id
        ))
        return None
    variables = {
        'customer_name': customer.name,
        'phone': customer.phone,
        'balance': customer.wallet_balance,
    }
    if data:
        variables.update(data)
    return queue_sms(
        recipient=customer.phone,
        text=template.render(variables),
        site=customer.site,
        template_key=notification_type
    )

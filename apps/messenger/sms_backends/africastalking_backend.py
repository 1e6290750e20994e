from typing import List

import africastalking
from django.conf import settings
from django.utils.translation import gettext_lazy as _

from ispdesk.lib.logger import logger
from .base import BaseSmsBackend, SmsSendError, SmsSendResult

# Africa's Talking status codes meaning the message was accepted
_ACCEPTED_CODES = (100, 101, 102)


class AfricasTalkingBackend(BaseSmsBackend):
    description = _("Africa's Talking")

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        africastalking.initialize(
            username=getattr(settings, 'AFRICASTALKING_USERNAME', 'sandbox'),
            api_key=getattr(settings, 'AFRICASTALKING_API_KEY', '')
        )
        self.client = africastalking.SMS

    def send(self, recipients: List[str], text: str) -> List[SmsSendResult]:
        recipients = ['+' + r.lstrip('+') for r in recipients]
        try:
            if self.sender_id:
                response = self.client.send(text, recipients, sender_id=self.sender_id)
            else:
                response = self.client.send(text, recipients)
        except Exception as err:
            # SDK raises bare Exception for http failures
            logger.error("Africa's Talking sms failed: %s" % err)
            raise SmsSendError(str(err)) from err
        res = []
        for rcpt in response.get('SMSMessageData', {}).get('Recipients', []):
            success = rcpt.get('statusCode') in _ACCEPTED_CODES
            res.append(SmsSendResult(
                recipient=rcpt.get('number', '').lstrip('+'),
                success=success,
                message_id=rcpt.get('messageId'),
                error=None if success else rcpt.get('status')
            ))
        if not res:
            raise SmsSendError(response.get('SMSMessageData', {}).get('Message', 'Empty response'))
        return res

from typing import List

import requests
from django.conf import settings
from django.utils.translation import gettext_lazy as _

from ispdesk.lib.logger import logger
from .base import BaseSmsBackend, SmsSendError, SmsSendResult


class CelcomAfricaBackend(BaseSmsBackend):
    description = _('Celcom Africa')

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.url = getattr(settings, 'CELCOMAFRICA_URL', 'https://api.celcomafrica.com/v1/sms/send')
        self.api_key = getattr(settings, 'CELCOMAFRICA_API_KEY', '')

    def send(self, recipients: List[str], text: str) -> List[SmsSendResult]:
        res = []
        for rcpt in recipients:
            try:
                r = requests.post(self.url, json={
                    'to': rcpt,
                    'message': text,
                    'from': self.sender_id or 'INTERNET',
                }, headers={
                    'Authorization': 'Bearer %s' % self.api_key,
                }, timeout=30)
            except requests.RequestException as err:
                logger.error('Celcom Africa sms failed: %s' % err)
                raise SmsSendError(str(err)) from err
            if r.ok:
                try:
                    data = r.json()
                except ValueError:
                    data = {}
                res.append(SmsSendResult(recipient=rcpt, success=True, message_id=data.get('id')))
            else:
                res.append(SmsSendResult(recipient=rcpt, success=False, error=r.text[:255]))
        return res

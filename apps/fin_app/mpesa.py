"""
Safaricom Daraja API client.

Only the calls the billing needs: OAuth token, STK push (Lipa na M-Pesa
online) and STK push status query.
"""
import base64
import re
from datetime import datetime
from typing import Optional

import requests
from django.conf import settings
from django.utils import timezone

from ispdesk.lib import normalize_msisdn
from ispdesk.lib.logger import logger


DEFAULT_SHORTCODE = '174379'
DEFAULT_DESCRIPTION = 'Wallet TopUp'


class MpesaError(Exception):
    def __init__(self, message: str, response: Optional[dict] = None):
        super().__init__(message)
        self.response = response or {}


def sanitize_description(description: Optional[str]) -> str:
    """Daraja accepts at most 13 alphanumeric chars in TransactionDesc"""
    if description is None:
        description = DEFAULT_DESCRIPTION
    clean = re.sub(r'[^a-zA-Z0-9\s]', '', str(description))[:13]
    return clean or 'Payment'


def make_timestamp(now: Optional[datetime] = None) -> str:
    now = now or timezone.localtime()
    return now.strftime('%Y%m%d%H%M%S')


def make_password(shortcode: str, passkey: str, timestamp: str) -> str:
    return base64.b64encode(("%s%s%s" % (shortcode, passkey, timestamp)).encode()).decode()


class MpesaClient:
    def __init__(self, base_url=None, consumer_key=None, consumer_secret=None,
                 passkey=None, shortcode=None, callback_url=None, timeout=None):
        conf = getattr(settings, 'MPESA', {})
        self.base_url = (base_url or conf.get('BASE_URL', 'https://sandbox.safaricom.co.ke')).rstrip('/')
        self.consumer_key = consumer_key or conf.get('CONSUMER_KEY')
        self.consumer_secret = consumer_secret or conf.get('CONSUMER_SECRET')
        self.passkey = passkey or conf.get('PASSKEY', '')
        self.shortcode = str(shortcode or conf.get('SHORTCODE') or DEFAULT_SHORTCODE)
        self.callback_url = callback_url or conf.get('CALLBACK_URL')
        self.timeout = timeout or conf.get('TIMEOUT', 30)

    def _post(self, path: str, payload: dict) -> dict:
        token = self.get_access_token()
        try:
            r = requests.post(
                "%s%s" % (self.base_url, path),
                json=payload,
                headers={'Authorization': 'Bearer %s' % token},
                timeout=self.timeout
            )
        except requests.RequestException as err:
            raise MpesaError('M-Pesa request failed: %s' % err) from err
        try:
            data = r.json()
        except ValueError:
            data = {'errorMessage': r.text}
        if not r.ok or data.get('errorCode'):
            logger.error('M-Pesa %s failed: %s' % (path, data))
            raise MpesaError(
                data.get('errorMessage') or data.get('ResponseDescription') or 'M-Pesa request failed',
                response=data
            )
        return data

    def get_access_token(self) -> str:
        if not self.consumer_key or not self.consumer_secret:
            raise MpesaError('M-Pesa credentials are not configured')
        try:
            r = requests.get(
                "%s/oauth/v1/generate" % self.base_url,
                params={'grant_type': 'client_credentials'},
                auth=(self.consumer_key, self.consumer_secret),
                timeout=self.timeout
            )
        except requests.RequestException as err:
            raise MpesaError('Failed to get M-Pesa access token: %s' % err) from err
        if not r.ok:
            raise MpesaError('Failed to get M-Pesa access token: %s' % r.text)
        token = r.json().get('access_token')
        if not token:
            raise MpesaError('M-Pesa did not return access token')
        return token

    def stk_push(self, phone: str, amount, account_reference: Optional[str] = None,
                 description: Optional[str] = None) -> dict:
        """
        Ask customer phone for payment confirmation.
        :return: Daraja response, contains CheckoutRequestID and MerchantRequestID
        """
        msisdn = normalize_msisdn(phone)
        timestamp = make_timestamp()
        payload = {
            'BusinessShortCode': self.shortcode,
            'Password': make_password(self.shortcode, self.passkey, timestamp),
            'Timestamp': timestamp,
            'TransactionType': 'CustomerPayBillOnline',
            'Amount': int(round(float(amount))),
            'PartyA': msisdn,
            'PartyB': self.shortcode,
            'PhoneNumber': msisdn,
            'CallBackURL': self.callback_url,
            'AccountReference': account_reference or msisdn,
            'TransactionDesc': sanitize_description(description),
        }
        logger.info('M-Pesa STK push to %s, amount %s' % (msisdn, payload['Amount']))
        return self._post('/mpesa/stkpush/v1/processrequest', payload)

    def query_status(self, checkout_request_id: str) -> dict:
        timestamp = make_timestamp()
        payload = {
            'BusinessShortCode': self.shortcode,
            'Password': make_password(self.shortcode, self.passkey, timestamp),
            'Timestamp': timestamp,
            'CheckoutRequestID': checkout_request_id,
        }
        return self._post('/mpesa/stkpushquery/v1/query', payload)

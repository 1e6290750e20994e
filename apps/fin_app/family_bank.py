"""
Family Bank open banking client.

STK push goes to the same Lipa na M-Pesa flow as Daraja, but requests
are keyed by our own ThirdPartyTransID and password is made from
merchant code and client id.
"""
import secrets
import string
import time
from typing import Optional

import requests
from django.conf import settings

from fin_app.mpesa import make_timestamp, make_password
from ispdesk.lib import normalize_msisdn
from ispdesk.lib.logger import logger


DEFAULT_TOKEN_URL = 'https://openbank.familybank.co.ke:8083/connect/token'
DEFAULT_STK_URL = 'https://openbank.familybank.co.ke:8084/api/v1/mpesa/stkpush/'

_trans_chars = string.ascii_lowercase + string.digits


class FamilyBankError(Exception):
    def __init__(self, message: str, response: Optional[dict] = None):
        super().__init__(message)
        self.response = response or {}


def generate_trans_id() -> str:
    rnd = ''.join(secrets.choice(_trans_chars) for _i in range(9))
    return "FB_%d_%s" % (int(time.time() * 1000), rnd)


class FamilyBankClient:
    def __init__(self, token_url=None, stk_url=None, client_id=None, client_secret=None,
                 scope=None, merchant_code=None, callback_url=None, timeout=None):
        conf = getattr(settings, 'FAMILY_BANK', {})
        self.token_url = token_url or conf.get('TOKEN_URL') or DEFAULT_TOKEN_URL
        self.stk_url = stk_url or conf.get('STK_URL') or DEFAULT_STK_URL
        self.client_id = client_id or conf.get('CLIENT_ID')
        self.client_secret = client_secret or conf.get('CLIENT_SECRET')
        self.scope = scope or conf.get('SCOPE', '')
        self.merchant_code = str(merchant_code or conf.get('MERCHANT_CODE') or '')
        self.callback_url = callback_url or conf.get('CALLBACK_URL')
        self.timeout = timeout or conf.get('TIMEOUT', 30)

    @property
    def query_url(self) -> str:
        return self.stk_url.replace('/stkpush/', '/stkpushquery/')

    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.merchant_code)

    def get_access_token(self) -> str:
        if not self.is_configured():
            raise FamilyBankError('Family Bank credentials are not configured')
        try:
            r = requests.post(
                self.token_url,
                data={'grant_type': 'client_credentials', 'scope': self.scope},
                auth=(self.client_id, self.client_secret),
                timeout=self.timeout
            )
        except requests.RequestException as err:
            raise FamilyBankError('Failed to get Family Bank access token: %s' % err) from err
        if not r.ok:
            raise FamilyBankError('Failed to get Family Bank access token: %s' % r.status_code)
        token = r.json().get('access_token')
        if not token:
            raise FamilyBankError('Family Bank did not return access token')
        return token

    def _post(self, url: str, payload: dict) -> dict:
        token = self.get_access_token()
        try:
            r = requests.post(
                url,
                json=payload,
                headers={'Authorization': 'Bearer %s' % token},
                timeout=self.timeout
            )
        except requests.RequestException as err:
            raise FamilyBankError('Family Bank request failed: %s' % err) from err
        try:
            data = r.json()
        except ValueError:
            data = {'ResponseDescription': r.text}
        if not r.ok:
            logger.error('Family Bank %s failed: %s' % (url, data))
            raise FamilyBankError(
                data.get('ResponseDescription') or data.get('errorMessage') or 'Family Bank request failed',
                response=data
            )
        return data

    def _auth_fields(self) -> dict:
        timestamp = make_timestamp()
        return {
            'BusinessShortCode': self.merchant_code,
            'Password': make_password(self.merchant_code, self.client_id, timestamp),
            'Timestamp': timestamp,
        }

    def stk_push(self, phone: str, amount, account_reference: str,
                 description: Optional[str] = None, trans_id: Optional[str] = None) -> dict:
        """
        Send payment request to customer phone.
        :return: bank response with ThirdPartyTransID added
        :raises FamilyBankError: when request failed or bank did not accept it
        """
        msisdn = normalize_msisdn(phone)
        trans_id = trans_id or generate_trans_id()
        payload = {
            **self._auth_fields(),
            'TransactionType': 'CustomerPayBillOnline',
            'Amount': str(int(round(float(amount)))),
            'PartyA': msisdn,
            'PartyB': self.merchant_code,
            'PhoneNumber': msisdn,
            'CallBackURL': self.callback_url,
            'AccountReference': account_reference,
            'TransactionDesc': description or 'Payment for invoice %s' % account_reference,
            'ThirdPartyTransID': trans_id,
        }
        logger.info('Family Bank STK push %s to %s, amount %s' % (trans_id, msisdn, payload['Amount']))
        data = self._post(self.stk_url, payload)
        if str(data.get('ResponseCode')) != '0':
            raise FamilyBankError(
                data.get('ResponseDescription') or 'STK push was not accepted',
                response=data
            )
        return {**data, 'ThirdPartyTransID': trans_id}

    def query_status(self, trans_id: str) -> dict:
        return self._post(self.query_url, {
            **self._auth_fields(),
            'ThirdPartyTransID': trans_id,
        })

from functools import lru_cache
from typing import Optional

from django.conf import settings
from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import APIException
from pyrad.client import Client, Timeout
from pyrad import packet
from pyrad import dictionary


class RadiusBaseException(APIException):
    pass


class RadiusSessionNotFoundException(RadiusBaseException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = _('Radius session not found error')


class RadiusTimeoutException(RadiusBaseException):
    status_code = status.HTTP_408_REQUEST_TIMEOUT
    default_detail = _('Radius timeout error')


class RadiusInvalidRequestException(RadiusBaseException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _('Radius invalid request')


class RadiusMissingAttributeException(RadiusBaseException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _('Radius missing attribute')


@lru_cache(maxsize=1)
def get_dictionary() -> dictionary.Dictionary:
    return dictionary.Dictionary(settings.RADIUS_DICTIONARY_PATH)


class RadiusInteract:
    """CoA and Disconnect requests to one NAS"""

    def __init__(self, server: str, secret: str, coa_port: Optional[int] = None, timeout=5):
        self.client = Client(
            server=server,
            secret=secret.encode() if isinstance(secret, str) else secret,
            coaport=int(coa_port or settings.RADIUS_COA_PORT),
            dict=get_dictionary()
        )
        self.client.timeout = timeout
        self.client.retries = 2

    def coa_rate_limit(self, uname: str, rate_limit: str):
        attrs = {
            'User-Name': uname,
            'Mikrotik-Rate-Limit': rate_limit,
        }
        return self.coa(**attrs)

    def coa(self, **attrs):
        # create coa request
        request = self.client.CreateCoAPacket(**attrs)
        return self._process_request(request)

    def disconnect(self, uname: str):
        attrs = {
            "User-Name": uname
        }
        # create disconnect request
        request = self.client.CreateCoAPacket(code=packet.DisconnectRequest, **attrs)
        return self._process_request(request)

    def _process_request(self, request) -> str:
        try:
            res = self.client.SendPacket(request)
        except Timeout as e:
            raise RadiusTimeoutException(e) from e
        except OSError as e:
            raise RadiusBaseException(e) from e
        if res.code in (packet.CoAACK, packet.DisconnectACK):
            # ok
            return 'ok'
        res_keys = list(res.keys())
        exception = RadiusInvalidRequestException
        if 'Error-Cause' in res_keys:
            errs = [str(e) for e in res.get('Error-Cause')]
            if 'Session-Context-Not-Found' in errs:
                exception = RadiusSessionNotFoundException
            elif 'Missing-Attribute' in errs:
                exception = RadiusMissingAttributeException
            res_keys.remove('Error-Cause')
            res_keys.append('Error-Cause')
        # get err text
        res_text = '; '.join(
            '%s: %s' % (k, ', '.join(str(v) for v in res.get(k))) for k in res_keys
        )
        raise exception(res_text or _('NAS rejected the request'))


def _filter_uname(uname: str) -> str:
    _uname = str(uname)
    _uname = _uname.replace('"', "")
    _uname = _uname.replace("'", "")
    return _uname


def _interact_for(nas) -> RadiusInteract:
    return RadiusInteract(
        server=str(nas.nas_ip),
        secret=nas.secret,
        coa_port=nas.coa_port
    )


def finish_session(nas, radius_uname: str) -> Optional[str]:
    """Send radius disconnect packet to NAS."""
    if not radius_uname:
        return None
    uname = _filter_uname(radius_uname)
    return _interact_for(nas).disconnect(uname=uname)


def change_session_rate_limit(nas, radius_uname: str, rate_limit: str) -> Optional[str]:
    """
    Send CoA with new MikroTik rate limit to live session.
    :param nas: radiusapp.models.NasClient instance
    :param radius_uname: User-Name from radius
    :param rate_limit: "upload/download", for example "5M/10M"
    """
    if not radius_uname:
        return None
    uname = _filter_uname(radius_uname)
    return _interact_for(nas).coa_rate_limit(uname=uname, rate_limit=rate_limit)

import re
import string
import secrets
from decimal import Decimal, InvalidOperation
from hashlib import sha256
from typing import Any, Optional, Mapping
from ipaddress import ip_address, ip_network

from django.conf import settings
from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import APIException
from .process_lock import ProcessLocked


def safe_int(i: Any, default=0) -> int:
    if isinstance(i, int):
        return i
    try:
        return default if not i else int(i)
    except (ValueError, OverflowError):
        return default


def safe_decimal(d: Any, default=None) -> Optional[Decimal]:
    if isinstance(d, Decimal):
        return d
    try:
        return Decimal(str(d)) if d not in (None, "") else default
    except (InvalidOperation, ValueError):
        return default


def safe_bool(v: Any) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "on")
    return v is True or (isinstance(v, int) and v == 1)


# Exceptions
class LogicError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _("Internal logic error")
    default_code = "logic_error"


#
# Phone numbers
#

def local_phone(phone: str) -> str:
    """
    Kenyan phone in local form, 07XXXXXXXX.
    :param phone: phone in any form: +254..., 254..., 07..., 7...
    """
    digits = re.sub(r"\D", "", str(phone or ""))
    if not digits:
        return ""
    if digits.startswith("254"):
        return "0" + digits[3:]
    if digits.startswith("0"):
        return digits
    return "0" + digits


def normalize_msisdn(phone: str) -> str:
    """Phone in international form without plus, 2547XXXXXXXX, as M-Pesa wants it"""
    digits = re.sub(r"\D", "", str(phone or ""))
    if not digits:
        return ""
    if digits.startswith("254"):
        return digits
    if digits.startswith("0"):
        return "254" + digits[1:]
    return "254" + digits


def phone_variants(phone: str) -> tuple:
    return tuple({local_phone(phone), normalize_msisdn(phone), "+" + normalize_msisdn(phone)})


PASSWORD_CHARS = string.ascii_letters + string.digits + "!@#$%^&*"


def generate_password(length=12, chars=PASSWORD_CHARS) -> str:
    return "".join(secrets.choice(chars) for _i in range(length))


#
# Function for hash auth
#


def calc_hash(get_values: Mapping) -> str:
    api_auth_secret = getattr(settings, "API_AUTH_SECRET")
    get_list = [str(v) for v in get_values.values() if v not in (None, "") and not isinstance(v, (dict, list))]
    get_list.sort()
    get_list.append(api_auth_secret)
    hashed = "_".join(get_list)

    if isinstance(hashed, str):
        result_data = hashed.encode("utf-8")
    else:
        result_data = bytes(hashed)
    return sha256(result_data).hexdigest()


def check_sign(get_values: Mapping, external_sign: str) -> bool:
    my_sign = calc_hash(get_values)
    return secrets.compare_digest(external_sign, my_sign)


def check_subnet(headers_dict: Mapping[str, str]):
    """
    Check if user ip in allowed subnet.
    Return 403 denied otherwise.
    """
    ip = headers_dict.get("HTTP_X_REAL_IP", headers_dict.get('REMOTE_ADDR'))
    if ip is None:
        raise ValueError("Failed to get remote addr")
    ip = ip_address(ip)
    api_auth_subnet = getattr(settings, "API_AUTH_SUBNET")
    if isinstance(api_auth_subnet, (str, bytes)):
        if ip in ip_network(api_auth_subnet):
            return
    elif isinstance(api_auth_subnet, (list, tuple)):
        for subnet in api_auth_subnet:
            if ip in ip_network(subnet, strict=False):
                return
    raise ValueError("Bad Subnet")


__all__ = (
    'safe_int', 'safe_decimal', 'safe_bool', 'LogicError',
    'calc_hash', 'check_sign', 'check_subnet',
    'local_phone', 'normalize_msisdn', 'phone_variants', 'generate_password',
    'PASSWORD_CHARS', 'ProcessLocked',
)

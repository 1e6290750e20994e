from typing import Optional, Type

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .base import BaseSmsBackend, SmsSendError, SmsSendResult
from .africastalking_backend import AfricasTalkingBackend
from .celcomafrica import CelcomAfricaBackend

_backends = {}


def add_sms_backend(name: str, backend_class: Type[BaseSmsBackend]):
    global _backends
    if name in _backends:
        raise ImproperlyConfigured('Sms backend "%s" already registered' % name)
    _backends[name] = backend_class


def get_sms_backend(name: Optional[str] = None) -> BaseSmsBackend:
    name = name or getattr(settings, 'SMS_BACKEND', 'africastalking')
    backend_class = _backends.get(name)
    if backend_class is None:
        raise ImproperlyConfigured('Unknown sms backend "%s"' % name)
    return backend_class(sender_id=getattr(settings, 'SMS_SENDER_ID', None))


add_sms_backend("africastalking", AfricasTalkingBackend)
add_sms_backend("celcomafrica", CelcomAfricaBackend)


__all__ = (
    'BaseSmsBackend', 'SmsSendError', 'SmsSendResult', 'add_sms_backend',
    'get_sms_backend'
)

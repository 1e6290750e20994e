import re
from typing import Mapping, Optional

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from ispdesk.lib.logger import logger
from ispdesk.models import SiteOwnedModel
from messenger.sms_backends import get_sms_backend, SmsSendError


_var_re = re.compile(r'\{\{\s*(\w+)\s*\}\}')


def render_text(content: str, variables: Optional[Mapping] = None) -> str:
    """Replace every {{key}} by its value, unknown keys are left as is"""
    variables = variables or {}

    def _repl(m):
        key = m.group(1)
        if key in variables:
            return str(variables[key])
        return m.group(0)

    return _var_re.sub(_repl, content)


class SmsTemplate(SiteOwnedModel):
    template_key = models.SlugField(_('Template key'), max_length=64, allow_unicode=False)
    name = models.CharField(_('Name'), max_length=128)
    content = models.TextField(_('Content'), help_text=_('Use {{variable}} placeholders'))
    variables = models.JSONField(_('Variables'), default=list, blank=True)
    is_active = models.BooleanField(_('Is active'), default=True)
    create_time = models.DateTimeField(auto_now_add=True)

    def render(self, variables: Optional[Mapping] = None) -> str:
        return render_text(self.content, variables)

    def placeholders(self):
        return sorted(set(_var_re.findall(self.content)))

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'sms_templates'
        verbose_name = _('Sms template')
        verbose_name_plural = _('Sms templates')
        unique_together = ('site', 'template_key')
        ordering = ('template_key',)


class SmsMessageStatus(models.TextChoices):
    QUEUED = 'queued', _('Queued')
    SENT = 'sent', _('Sent')
    FAILED = 'failed', _('Failed')


class SmsMessage(SiteOwnedModel):
    recipient = models.CharField(_('Recipient'), max_length=16)
    text = models.TextField(_('Text'))
    template_key = models.CharField(max_length=64, blank=True, default='')
    status = models.CharField(max_length=8, choices=SmsMessageStatus.choices, default=SmsMessageStatus.QUEUED)
    provider = models.CharField(max_length=32, blank=True, default='')
    provider_message_id = models.CharField(max_length=128, blank=True, null=True, default=None)
    error = models.CharField(max_length=255, blank=True, null=True, default=None)
    create_time = models.DateTimeField(auto_now_add=True)
    sent_time = models.DateTimeField(blank=True, null=True, default=None)

    def send(self, backend_name: Optional[str] = None) -> bool:
        """Send through configured gateway and store result"""
        backend = get_sms_backend(backend_name)
        self.provider = backend_name or getattr(settings, "SMS_BACKEND", "")
        try:
            results = backend.send([self.recipient], self.text)
        except SmsSendError as err:
            self.status = SmsMessageStatus.FAILED
            self.error = str(err)[:255]
            self.save(update_fields=['status', 'error', 'provider'])
            return False
        res = results[0]
        if res.success:
            self.status = SmsMessageStatus.SENT
            self.provider_message_id = res.message_id
            self.sent_time = timezone.now()
        else:
            self.status = SmsMessageStatus.FAILED
            self.error = (res.error or '')[:255]
            logger.warning('Sms to %s was not accepted: %s' % (self.recipient, res.error))
        self.save(update_fields=['status', 'error', 'provider', 'provider_message_id', 'sent_time'])
        return res.success

    def __str__(self):
        return "%s: %s" % (self.recipient, self.get_status_display())

    class Meta:
        db_table = 'sms_messages'
        ordering = ('-create_time',)

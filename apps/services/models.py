from django.contrib.sites.models import Site
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from ispdesk.models import BaseAbstractModel


class Service(BaseAbstractModel):
    """Internet package which customer pays for monthly"""

    title = models.CharField(_("Service title"), max_length=128)
    descr = models.TextField(_("Service description"), null=True, blank=True, default=None)
    speed_in = models.FloatField(
        _("Download speed, Mbit/s"),
        validators=[
            MinValueValidator(limit_value=0.1),
        ],
    )
    speed_out = models.FloatField(
        _("Upload speed, Mbit/s"),
        validators=[
            MinValueValidator(limit_value=0.1),
        ],
    )
    cost = models.DecimalField(
        verbose_name=_("Monthly rate"),
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(limit_value=0.0)]
    )
    duration_days = models.PositiveSmallIntegerField(_("Duration days"), default=30)
    session_timeout = models.PositiveIntegerField(_("Session timeout, sec"), default=86400)
    idle_timeout = models.PositiveIntegerField(_("Idle timeout, sec"), default=1800)
    is_active = models.BooleanField(_("Is active"), default=True)
    sites = models.ManyToManyField(Site, blank=True)
    create_time = models.DateTimeField(_("Create time"), auto_now_add=True)

    def rate_limit(self) -> str:
        """MikroTik rx/tx rate limit, "upload/download" from the router point of view"""
        return "%dM/%dM" % (max(int(self.speed_out), 1), max(int(self.speed_in), 1))

    @property
    def download_kbps(self) -> int:
        return int(self.speed_in * 1024)

    @property
    def upload_kbps(self) -> int:
        return int(self.speed_out * 1024)

    def __str__(self):
        return "%s (%.2f)" % (self.title, self.cost)

    class Meta:
        db_table = "services"
        verbose_name = _("Service")
        verbose_name_plural = _("Services")
        ordering = ("title",)

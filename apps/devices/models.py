from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from devices.snmp_util import (
    SnmpWorker, SnmpError,
    SYS_NAME_OID, SYS_UPTIME_OID, SYS_DESCR_OID, IF_NUMBER_OID
)
from gateways.models import MikrotikRouter, SnmpVersion
from ispdesk.lib import safe_int
from ispdesk.lib.logger import logger
from ispdesk.models import SiteOwnedModel


class DeviceType(models.TextChoices):
    ROUTER = 'router', _('Router')
    SWITCH = 'switch', _('Switch')
    ACCESS_POINT = 'access_point', _('Access point')
    OLT = 'olt', _('OLT')
    OTHER = 'other', _('Other')


class DeviceStatus(models.TextChoices):
    UNKNOWN = 'unknown', _('Unknown')
    UP = 'up', _('Up')
    DOWN = 'down', _('Down')


class NetworkDeviceQuerySet(models.QuerySet):
    def monitored(self):
        return self.filter(is_monitored=True)

    def status_summary(self) -> dict:
        res = {s: 0 for s in DeviceStatus.values}
        for row in self.values('status').annotate(cnt=models.Count('pk')).order_by():
            res[row['status']] = row['cnt']
        res['total'] = sum(res.values())
        return res


class NetworkDevice(SiteOwnedModel):
    name = models.CharField(_("Name"), max_length=127)
    ip_address = models.GenericIPAddressField(_("Ip address"))
    device_type = models.CharField(
        _("Device type"), max_length=16, choices=DeviceType.choices, default=DeviceType.OTHER
    )
    snmp_community = models.CharField(_("SNMP community"), max_length=64, default='public')
    snmp_version = models.PositiveSmallIntegerField(
        _("SNMP version"), choices=SnmpVersion.choices, default=SnmpVersion.V2C
    )
    router = models.ForeignKey(
        MikrotikRouter, on_delete=models.SET_NULL, related_name='devices',
        blank=True, null=True, default=None
    )
    status = models.CharField(
        _("Status"), max_length=8, choices=DeviceStatus.choices, default=DeviceStatus.UNKNOWN
    )
    last_polled = models.DateTimeField(_("Last polled"), blank=True, null=True, default=None)
    metrics = models.JSONField(_("Metrics"), blank=True, default=dict)
    last_error = models.TextField(_("Last error"), blank=True, default='')
    is_monitored = models.BooleanField(_("Is monitored"), default=True)
    create_time = models.DateTimeField(auto_now_add=True)

    objects = NetworkDeviceQuerySet.as_manager()

    def get_snmp_worker(self) -> SnmpWorker:
        return SnmpWorker(
            ip=self.ip_address,
            community=self.snmp_community,
            ver=self.snmp_version
        )

    def poll(self) -> bool:
        """
        Read system metrics over snmp.
        :return: True if device answered
        """
        self.last_polled = timezone.now()
        try:
            snmp = self.get_snmp_worker()
            sys_name = snmp.get_item(SYS_NAME_OID)
            self.metrics = {
                'sys_name': sys_name,
                'sys_descr': snmp.get_item(SYS_DESCR_OID),
                'sys_uptime': safe_int(snmp.get_item(SYS_UPTIME_OID)),
                'if_count': safe_int(snmp.get_item(IF_NUMBER_OID)),
            }
            self.status = DeviceStatus.UP
            self.last_error = ''
        except (SnmpError, ImportError) as err:
            self.status = DeviceStatus.DOWN
            self.last_error = str(err)
            logger.warning('Device "%s" poll failed: %s' % (self.name, err))
        self.save(update_fields=['last_polled', 'metrics', 'status', 'last_error'])
        return self.status == DeviceStatus.UP

    def __str__(self):
        return "%s (%s)" % (self.name, self.ip_address)

    class Meta:
        db_table = "network_devices"
        verbose_name = _("Network device")
        verbose_name_plural = _("Network devices")
        unique_together = ('site', 'ip_address')
        ordering = ('name',)

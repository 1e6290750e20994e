from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from encrypted_model_fields.fields import EncryptedCharField

from devices.snmp_util import SnmpWorker, SnmpError, SYS_NAME_OID
from inventory.models import InventoryItem
from ispdesk import ping
from ispdesk.lib.logger import logger
from ispdesk.models import SiteOwnedModel
from .gw_facade import GatewayFacade, GatewayNetworkError, MIKROTIK


class RouterStatus(models.TextChoices):
    PENDING = 'pending', _('Pending')
    ACTIVE = 'active', _('Active')
    INACTIVE = 'inactive', _('Inactive')
    ERROR = 'error', _('Error')


class ConnectionStatus(models.TextChoices):
    ONLINE = 'online', _('Online')
    OFFLINE = 'offline', _('Offline')
    TESTING = 'testing', _('Testing')
    CONNECTED = 'connected', _('Connected')
    CONFIGURATION_FAILED = 'configuration_failed', _('Configuration failed')


class SyncStatus(models.TextChoices):
    PENDING = 'pending', _('Pending')
    SYNCED = 'synced', _('Synced')
    FAILED = 'failed', _('Failed')


class SnmpVersion(models.IntegerChoices):
    V1 = 1, 'v1'
    V2C = 2, 'v2c'


class MikrotikRouter(SiteOwnedModel):
    name = models.CharField(_("Name"), max_length=127)
    ip_address = models.GenericIPAddressField(_("Ip address"), unique=True)
    api_port = models.PositiveIntegerField(_("API port"), default=8728)
    username = models.CharField(_("Admin username"), max_length=64, default='admin')
    password = EncryptedCharField(_("Admin password"), max_length=127, blank=True, default='')
    snmp_community = models.CharField(_("SNMP community"), max_length=64, default='public')
    snmp_version = models.PositiveSmallIntegerField(
        _("SNMP version"), choices=SnmpVersion.choices, default=SnmpVersion.V2C
    )
    pppoe_interface = models.CharField(_("PPPoE interface"), max_length=64, default='pppoe-server1')
    dns_servers = models.CharField(_("DNS servers"), max_length=128, default='8.8.8.8,8.8.4.4')
    client_network = models.CharField(_("Client network"), max_length=43, default='10.0.0.0/24')
    gateway = models.GenericIPAddressField(_("Gateway"), blank=True, null=True, default=None)
    status = models.CharField(
        _("Status"), max_length=16, choices=RouterStatus.choices, default=RouterStatus.PENDING
    )
    connection_status = models.CharField(
        _("Connection status"), max_length=32,
        choices=ConnectionStatus.choices, default=ConnectionStatus.OFFLINE
    )
    is_enabled = models.BooleanField(_("Enabled"), default=True)
    sync_status = models.CharField(
        _("Sync status"), max_length=16, choices=SyncStatus.choices, default=SyncStatus.PENDING
    )
    last_test_results = models.JSONField(_("Last test results"), blank=True, null=True, default=None)
    last_sync_at = models.DateTimeField(_("Last sync"), blank=True, null=True, default=None)
    last_error = models.TextField(_("Last error"), blank=True, default='')
    inventory_item = models.ForeignKey(
        InventoryItem, on_delete=models.SET_NULL,
        blank=True, null=True, default=None, related_name='routers'
    )
    create_time = models.DateTimeField(_("Create time"), auto_now_add=True)

    def get_gw_manager(self) -> GatewayFacade:
        try:
            if hasattr(self, "_gw_mngr"):
                o = getattr(self, "_gw_mngr")
            else:
                o = GatewayFacade(
                    MIKROTIK,
                    login=self.username,
                    password=self.password,
                    ip=self.ip_address,
                    port=int(self.api_port),
                )
                setattr(self, "_gw_mngr", o)
            return o
        except ConnectionResetError as ce:
            raise GatewayNetworkError("ConnectionResetError") from ce

    def get_snmp_worker(self) -> SnmpWorker:
        return SnmpWorker(
            ip=self.ip_address,
            community=self.snmp_community,
            ver=self.snmp_version
        )

    def test_connection(self) -> dict:
        """
        Check router by icmp ping, snmp and management api.
        Router is online only when all of them pass.
        """
        MikrotikRouter.objects.filter(pk=self.pk).update(connection_status=ConnectionStatus.TESTING)
        errors = []
        results = {'ping': False, 'snmp': False, 'api': False}

        try:
            results['ping'] = ping(self.ip_address, count=2)
        except ValueError as err:
            errors.append('ping: %s' % err)
        if not results['ping']:
            errors.append('ping: host %s is unreachable' % self.ip_address)

        try:
            results['snmp'] = bool(self.get_snmp_worker().get_item(SYS_NAME_OID))
        except (SnmpError, ImportError) as err:
            errors.append('snmp: %s' % err)

        gw = self.get_gw_manager()
        try:
            gw.ping()
            results['api'] = True
        except GatewayNetworkError as err:
            errors.append('api: %s' % err)
        finally:
            gw.close()

        online = all(results.values())
        results.update({
            'timestamp': timezone.now().isoformat(),
            'errors': errors,
        })
        self.last_test_results = results
        self.connection_status = ConnectionStatus.ONLINE if online else ConnectionStatus.OFFLINE
        self.status = RouterStatus.ACTIVE if online else RouterStatus.ERROR
        self.last_error = '; '.join(errors)
        self.save(update_fields=['last_test_results', 'connection_status', 'status', 'last_error'])
        if not online:
            logger.warning('Router "%s" test failed: %s' % (self.name, self.last_error))
        return results

    def refresh_connection_status(self) -> bool:
        """Quick api check, used by periodic reconciliation"""
        gw = self.get_gw_manager()
        try:
            gw.ping()
        except GatewayNetworkError as err:
            self.connection_status = ConnectionStatus.OFFLINE
            self.last_error = str(err)
            self.save(update_fields=['connection_status', 'last_error'])
            return False
        finally:
            gw.close()
        self.connection_status = ConnectionStatus.ONLINE
        self.save(update_fields=['connection_status'])
        return True

    def __str__(self):
        return "%s (%s)" % (self.name, self.ip_address)

    class Meta:
        db_table = "mikrotik_routers"
        verbose_name = _("MikroTik router")
        verbose_name_plural = _("MikroTik routers")
        ordering = ('name',)

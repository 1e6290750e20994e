from django.db import models, transaction
from django.utils.translation import gettext_lazy as _
from encrypted_model_fields.fields import EncryptedCharField

from customers.models import Customer
from gateways.models import MikrotikRouter, SyncStatus
from ispdesk.lib.validators import shortnameValidator
from ispdesk.models import BaseAbstractModel, SiteOwnedModel
from services.models import Service


class RadiusGroup(SiteOwnedModel):
    name = models.CharField(_("Name"), max_length=64)
    description = models.CharField(_("Description"), max_length=256, blank=True, default='')
    service = models.OneToOneField(
        Service, on_delete=models.SET_NULL, related_name='radius_group',
        blank=True, null=True, default=None
    )
    upload_limit = models.PositiveIntegerField(_("Upload limit, Mbit/s"), default=1)
    download_limit = models.PositiveIntegerField(_("Download limit, Mbit/s"), default=5)
    session_timeout = models.PositiveIntegerField(_("Session timeout, sec"), default=86400)
    idle_timeout = models.PositiveIntegerField(_("Idle timeout, sec"), default=1800)
    is_active = models.BooleanField(_("Is active"), default=True)

    def rate_limit(self) -> str:
        return "%dM/%dM" % (self.upload_limit, self.download_limit)

    @classmethod
    def for_service(cls, service: Service, site=None) -> 'RadiusGroup':
        group, _created = cls.objects.update_or_create(
            service=service,
            defaults={
                'site': site,
                'name': service.title[:64],
                'upload_limit': max(int(service.speed_out), 1),
                'download_limit': max(int(service.speed_in), 1),
                'session_timeout': service.session_timeout,
                'idle_timeout': service.idle_timeout,
            }
        )
        return group

    def __str__(self):
        return self.name

    class Meta:
        db_table = "radius_groups"
        verbose_name = _("Radius group")
        verbose_name_plural = _("Radius groups")
        ordering = ('name',)


class RadiusServer(SiteOwnedModel):
    name = models.CharField(_("Name"), max_length=64)
    server_address = models.CharField(_("Server address"), max_length=128)
    auth_port = models.PositiveIntegerField(_("Auth port"), default=1812)
    acct_port = models.PositiveIntegerField(_("Accounting port"), default=1813)
    secret = EncryptedCharField(_("Shared secret"), max_length=128)
    timeout = models.PositiveSmallIntegerField(_("Timeout, sec"), default=5)
    is_enabled = models.BooleanField(_("Enabled"), default=True)
    is_primary = models.BooleanField(_("Is primary"), default=False)
    routers = models.ManyToManyField(MikrotikRouter, blank=True, related_name='radius_servers')
    last_synced_at = models.DateTimeField(blank=True, null=True, default=None)

    def save(self, *args, **kwargs):
        with transaction.atomic():
            if self.is_primary:
                RadiusServer.objects.filter(
                    site=self.site, is_primary=True
                ).exclude(pk=self.pk).update(is_primary=False)
            return super().save(*args, **kwargs)

    @classmethod
    def get_primary(cls, site=None):
        return cls.objects.filter(site=site, is_primary=True, is_enabled=True).first()

    def __str__(self):
        return "%s (%s)" % (self.name, self.server_address)

    class Meta:
        db_table = "radius_servers"
        verbose_name = _("Radius server")
        verbose_name_plural = _("Radius servers")
        ordering = ('name',)


class NasType(models.TextChoices):
    MIKROTIK = 'mikrotik', 'MikroTik'
    CISCO = 'cisco', 'Cisco'
    OTHER = 'other', _('Other')


class NasClient(SiteOwnedModel):
    name = models.CharField(_("Name"), max_length=127)
    shortname = models.CharField(_("Short name"), max_length=32, validators=(shortnameValidator,))
    nas_type = models.CharField(_("Type"), max_length=16, choices=NasType.choices, default=NasType.MIKROTIK)
    nas_ip = models.GenericIPAddressField(_("NAS ip address"))
    secret = EncryptedCharField(_("Shared secret"), max_length=128)
    auth_port = models.PositiveIntegerField(_("Auth port"), default=1812)
    acct_port = models.PositiveIntegerField(_("Accounting port"), default=1813)
    coa_port = models.PositiveIntegerField(_("CoA port"), default=3799)
    snmp_community = models.CharField(_("SNMP community"), max_length=64, blank=True, default='public')
    description = models.CharField(_("Description"), max_length=256, blank=True, default='')
    is_active = models.BooleanField(_("Is active"), default=True)
    router = models.OneToOneField(
        MikrotikRouter, on_delete=models.SET_NULL, related_name='nas_client',
        blank=True, null=True, default=None
    )
    create_time = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return "%s (%s)" % (self.shortname, self.nas_ip)

    class Meta:
        db_table = "radius_nas_clients"
        verbose_name = _("NAS client")
        verbose_name_plural = _("NAS clients")
        unique_together = ('site', 'nas_ip')
        ordering = ('name',)


class RadiusUser(SiteOwnedModel):
    customer = models.OneToOneField(Customer, on_delete=models.CASCADE, related_name='radius_user')
    username = models.CharField(_("Username"), max_length=64, unique=True)
    password = EncryptedCharField(_("Password"), max_length=64)
    group = models.ForeignKey(
        RadiusGroup, on_delete=models.SET_NULL, related_name='users',
        blank=True, null=True, default=None
    )
    max_upload = models.CharField(_("Max upload"), max_length=16, default='1M')
    max_download = models.CharField(_("Max download"), max_length=16, default='5M')
    expiration = models.DateTimeField(_("Expiration"), blank=True, null=True, default=None)
    # Desired state
    is_active = models.BooleanField(_("Is active"), default=False)
    sync_status = models.CharField(max_length=16, choices=SyncStatus.choices, default=SyncStatus.PENDING)
    last_synced_at = models.DateTimeField(blank=True, null=True, default=None)
    last_error = models.TextField(blank=True, default='')
    # Observed state
    is_online = models.BooleanField(_("Is online"), default=False)
    last_seen_at = models.DateTimeField(blank=True, null=True, default=None)
    create_time = models.DateTimeField(auto_now_add=True)

    def rate_limit(self) -> str:
        return "%s/%s" % (self.max_upload, self.max_download)

    def mark_pending(self, **fields) -> None:
        self.sync_status = SyncStatus.PENDING
        for fname, fval in fields.items():
            setattr(self, fname, fval)
        self.save(update_fields=['sync_status', *fields.keys()])

    def __str__(self):
        return self.username

    class Meta:
        db_table = "radius_users"
        verbose_name = _("Radius user")
        verbose_name_plural = _("Radius users")
        ordering = ('username',)


class RadiusSessionStatus(models.TextChoices):
    ACTIVE = 'active', _('Active')
    ENDED = 'ended', _('Ended')


class RadiusSession(BaseAbstractModel):
    user = models.ForeignKey(
        RadiusUser, on_delete=models.SET_NULL, related_name='sessions',
        blank=True, null=True, default=None
    )
    customer = models.ForeignKey(
        Customer, on_delete=models.CASCADE, related_name='radius_sessions',
        blank=True, null=True, default=None
    )
    router = models.ForeignKey(
        MikrotikRouter, on_delete=models.SET_NULL, related_name='radius_sessions',
        blank=True, null=True, default=None
    )
    session_id = models.CharField(_("Session id"), max_length=128, unique=True)
    username = models.CharField(_("Username"), max_length=64)
    nas_ip = models.GenericIPAddressField(_("NAS ip"), blank=True, null=True, default=None)
    framed_ip = models.GenericIPAddressField(_("Framed ip"), blank=True, null=True, default=None)
    start_time = models.DateTimeField(_("Start time"), blank=True, null=True, default=None)
    end_time = models.DateTimeField(_("End time"), blank=True, null=True, default=None)
    session_time = models.PositiveIntegerField(_("Session time, sec"), default=0)
    input_octets = models.BigIntegerField(default=0)
    output_octets = models.BigIntegerField(default=0)
    terminate_cause = models.CharField(max_length=64, blank=True, default='')
    status = models.CharField(
        max_length=8, choices=RadiusSessionStatus.choices, default=RadiusSessionStatus.ACTIVE
    )
    update_time = models.DateTimeField(auto_now=True)

    def __str__(self):
        return "%s: %s" % (self.username, self.session_id)

    class Meta:
        db_table = "radius_sessions"
        ordering = ('-start_time',)


class RadiusEvent(SiteOwnedModel):
    user = models.ForeignKey(
        RadiusUser, on_delete=models.SET_NULL, related_name='events',
        blank=True, null=True, default=None
    )
    customer = models.ForeignKey(
        Customer, on_delete=models.CASCADE, related_name='radius_events',
        blank=True, null=True, default=None
    )
    username = models.CharField(max_length=64, blank=True, default='')
    action = models.CharField(max_length=32)
    success = models.BooleanField(default=True)
    error = models.TextField(blank=True, default='')
    details = models.JSONField(blank=True, default=dict)
    timestamp = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return "%s %s" % (self.username, self.action)

    class Meta:
        db_table = "radius_events"
        ordering = ('-timestamp',)


class TestCategory(models.TextChoices):
    RADIUS = 'radius', 'RADIUS'
    PPPOE = 'pppoe', 'PPPoE'
    NETWORK = 'network', _('Network')


class TestStatus(models.TextChoices):
    PASSED = 'passed', _('Passed')
    FAILED = 'failed', _('Failed')
    PENDING = 'pending', _('Pending')
    NOT_RUN = 'not_run', _('Not run')


class SystemTestResult(SiteOwnedModel):
    category = models.CharField(max_length=16, choices=TestCategory.choices)
    test_name = models.CharField(max_length=64)
    status = models.CharField(max_length=16, choices=TestStatus.choices, default=TestStatus.NOT_RUN)
    message = models.TextField(blank=True, default='')
    details = models.JSONField(blank=True, default=dict)
    last_run = models.DateTimeField(blank=True, null=True, default=None)

    def __str__(self):
        return "%s: %s" % (self.test_name, self.get_status_display())

    class Meta:
        db_table = "radius_system_tests"
        unique_together = ('site', 'test_name')
        ordering = ('category', 'test_name')

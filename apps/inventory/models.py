from typing import Optional

from django.conf import settings
from django.core.validators import RegexValidator
from django.db import models, transaction
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from netaddr import EUI, mac_unix_expanded, AddrFormatError

from customers.models import Customer
from ispdesk import MAC_ADDR_REGEXP
from ispdesk.lib import LogicError
from ispdesk.models import BaseAbstractModel, SiteOwnedModel


class ItemType(models.TextChoices):
    ROUTER = 'router', _('Router')
    CPE = 'cpe', _('CPE')
    SWITCH = 'switch', _('Switch')
    CABLE = 'cable', _('Cable')
    OTHER = 'other', _('Other')


class ItemStatus(models.TextChoices):
    IN_STOCK = 'in_stock', _('In stock')
    ASSIGNED = 'assigned', _('Assigned')
    DEPLOYED = 'deployed', _('Deployed')
    FAULTY = 'faulty', _('Faulty')


def normalize_mac(mac: Optional[str]) -> Optional[str]:
    if not mac:
        return None
    try:
        return str(EUI(mac, dialect=mac_unix_expanded))
    except AddrFormatError:
        return mac


class InventoryItem(SiteOwnedModel):
    name = models.CharField(_('Name'), max_length=128)
    category = models.CharField(_('Category'), max_length=64, blank=True, default='')
    item_type = models.CharField(_('Type'), max_length=16, choices=ItemType.choices, default=ItemType.OTHER)
    model = models.CharField(_('Model'), max_length=128, blank=True, default='')
    serial_number = models.CharField(_('Serial number'), max_length=128, blank=True, null=True, default=None,
                                     unique=True)
    mac_address = models.CharField(
        _('Mac address'), max_length=17, blank=True, null=True, default=None,
        validators=(RegexValidator(MAC_ADDR_REGEXP),)
    )
    status = models.CharField(_('Status'), max_length=16, choices=ItemStatus.choices, default=ItemStatus.IN_STOCK)
    notes = models.TextField(_('Notes'), blank=True, default='')
    create_time = models.DateTimeField(auto_now_add=True)

    def save(self, *args, **kwargs):
        self.mac_address = normalize_mac(self.mac_address)
        return super().save(*args, **kwargs)

    def current_assignment(self) -> Optional['EquipmentAssignment']:
        return self.assignments.filter(returned_at=None).order_by('-assigned_at').first()

    def assign_to(self, customer: Customer, author=None, notes: str = '') -> 'EquipmentAssignment':
        if self.status != ItemStatus.IN_STOCK:
            raise LogicError(_('Item "%(name)s" is not in stock') % {'name': self.name})
        with transaction.atomic():
            updated = InventoryItem.objects.filter(
                pk=self.pk, status=ItemStatus.IN_STOCK
            ).update(status=ItemStatus.ASSIGNED)
            if not updated:
                raise LogicError(_('Item "%(name)s" is not in stock') % {'name': self.name})
            self.status = ItemStatus.ASSIGNED
            return EquipmentAssignment.objects.create(
                customer=customer,
                item=self,
                assigned_by=author,
                installation_notes=notes or ''
            )

    def release(self) -> None:
        with transaction.atomic():
            self.assignments.filter(returned_at=None).update(returned_at=timezone.now())
            self.status = ItemStatus.IN_STOCK
            self.save(update_fields=['status'])

    def mark_deployed(self, note: Optional[str] = None) -> None:
        self.status = ItemStatus.DEPLOYED
        if note:
            self.notes = "%s - %s" % (self.notes, note) if self.notes else note
        self.save(update_fields=['status', 'notes'])

    def __str__(self):
        return "%s %s" % (self.name, self.serial_number or '')

    class Meta:
        db_table = 'inventory_items'
        verbose_name = _('Inventory item')
        verbose_name_plural = _('Inventory items')
        ordering = ('name',)


class EquipmentAssignment(BaseAbstractModel):
    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name='equipment')
    item = models.ForeignKey(InventoryItem, on_delete=models.CASCADE, related_name='assignments')
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
        blank=True, null=True, default=None
    )
    installation_notes = models.TextField(blank=True, default='')
    assigned_at = models.DateTimeField(auto_now_add=True)
    returned_at = models.DateTimeField(blank=True, null=True, default=None)

    def __str__(self):
        return "%s -> %s" % (self.item, self.customer)

    class Meta:
        db_table = 'equipment_assignments'
        ordering = ('-assigned_at',)

import re

from django.db import transaction
from django.utils.translation import gettext as _

from gateways.models import MikrotikRouter, RouterStatus
from inventory.models import InventoryItem, ItemStatus
from ispdesk.lib import LogicError, generate_password
from ispdesk.lib.logger import logger
from profiles.models import UserProfileLogActionType
from radiusapp.models import NasClient, NasType, RadiusServer


PROMOTED_NOTE = "Promoted to MikroTik Router"

_shortname_bad_chars = re.compile(r'[^a-zA-Z0-9_-]+')


def make_shortname(name: str) -> str:
    short = _shortname_bad_chars.sub('-', name.strip()).strip('-').lower()
    return short[:32] or 'nas'


def _ensure_nas_client(router: MikrotikRouter, secret=None) -> NasClient:
    """Create or update NAS client of router, matched by router link or ip"""
    nas = NasClient.objects.filter(router=router).first()
    if nas is None:
        nas = NasClient.objects.filter(site=router.site, nas_ip=router.ip_address).first()
    if nas is None:
        nas = NasClient(site=router.site, nas_ip=router.ip_address)
    nas.router = router
    nas.nas_ip = router.ip_address
    nas.name = router.name
    nas.shortname = make_shortname(router.name)
    nas.nas_type = NasType.MIKROTIK
    nas.snmp_community = router.snmp_community
    nas.is_active = True
    if secret:
        nas.secret = secret
    elif not nas.secret:
        nas.secret = generate_password(16, chars='abcdefghijkmnpqrstuvwxyzABCDEFGHJKLMNPQRSTUVWXYZ23456789')
    nas.save()
    return nas


def register_nas(inventory_item: InventoryItem, data: dict, author=None) -> MikrotikRouter:
    """
    Promote inventory item to MikroTik router with its NAS client.
    :param inventory_item: item which becomes router
    :param data: router fields, "ip_address" is required,
                 "radius_secret" is optional NAS shared secret
    :param author: profiles.UserProfile who made it
    """
    if inventory_item.status == ItemStatus.DEPLOYED:
        raise LogicError(_('Item "%(name)s" is already deployed') % {'name': inventory_item.name})
    ip_address = data.get('ip_address')
    if not ip_address:
        raise LogicError(_('Ip address is required'))
    router_fields = {
        k: v for k, v in data.items()
        if k in ('api_port', 'username', 'password', 'snmp_community', 'snmp_version',
                 'pppoe_interface', 'dns_servers', 'client_network', 'gateway')
    }
    with transaction.atomic():
        router = MikrotikRouter.objects.create(
            site=inventory_item.site,
            name=data.get('name') or inventory_item.name,
            ip_address=ip_address,
            inventory_item=inventory_item,
            status=RouterStatus.PENDING,
            **router_fields
        )
        nas = _ensure_nas_client(router, secret=data.get('radius_secret'))
        primary = RadiusServer.get_primary(site=router.site)
        if primary is not None:
            primary.routers.add(router)
        inventory_item.mark_deployed(note=PROMOTED_NOTE)
        if author is not None:
            author.log(
                do_type=UserProfileLogActionType.REGISTER_NAS,
                additional_text='"%s" %s, nas "%s"' % (router.name, router.ip_address, nas.shortname)
            )
    logger.info('Inventory item %d registered as router "%s"' % (inventory_item.pk, router.name))
    return router


def reconcile_nas_clients(site=None) -> dict:
    """
    Every enabled router must have active NAS client with the same ip.
    NAS clients of deleted or disabled routers are deactivated.
    """
    routers = MikrotikRouter.objects.filter(is_enabled=True)
    nas_qs = NasClient.objects.all()
    if site is not None:
        routers = routers.filter(site=site)
        nas_qs = nas_qs.filter(site=site)
    created = []
    updated = []
    for router in routers.select_related('nas_client'):
        nas = getattr(router, 'nas_client', None)
        if nas is None:
            nas = NasClient.objects.filter(site=router.site, nas_ip=router.ip_address).first()
            if nas is None:
                created.append(_ensure_nas_client(router).shortname)
                continue
        if not nas.is_active or str(nas.nas_ip) != str(router.ip_address) or nas.router_id != router.pk:
            updated.append(_ensure_nas_client(router).shortname)
    orphans = nas_qs.filter(is_active=True, nas_type=NasType.MIKROTIK).exclude(
        router__is_enabled=True
    )
    deactivated = list(orphans.values_list('shortname', flat=True))
    orphans.update(is_active=False)
    if created or updated or deactivated:
        logger.info('NAS clients reconciled: created %s, updated %s, deactivated %s' % (
            created, updated, deactivated
        ))
    return {
        'created': created,
        'updated': updated,
        'deactivated': deactivated,
    }

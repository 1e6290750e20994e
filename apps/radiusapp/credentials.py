import re
from datetime import datetime
from typing import Optional

from django.db import transaction
from django.utils import timezone

from customers.models import Customer, CustomerStatus
from gateways.models import SyncStatus
from ispdesk.lib import local_phone, generate_password
from ispdesk.lib.logger import logger
from messenger.tasks import notify_customer, NotificationType
from radiusapp.models import RadiusUser, RadiusGroup
from radiusapp.tasks import push_user_state_task

DEFAULT_DOWNLOAD_KBPS = 5120
DEFAULT_UPLOAD_KBPS = 512
DEFAULT_SESSION_TIMEOUT = 86400
DEFAULT_IDLE_TIMEOUT = 1800

_username_bad_chars = re.compile(r'[^a-z0-9._-]')


def _username_base(customer: Customer) -> str:
    base = ''
    if customer.email:
        base = _username_bad_chars.sub('', customer.email.split('@')[0].lower())
    if not base and customer.phone:
        base = local_phone(customer.phone)
    return base or 'client%d' % customer.pk


def make_username(customer: Customer) -> str:
    """Email local part, else local phone, with numeric suffix when taken"""
    base = _username_base(customer)[:56]
    taken = set(
        RadiusUser.objects.filter(username__startswith=base)
        .exclude(customer=customer)
        .values_list('username', flat=True)
    )
    if base not in taken:
        return base
    n = 1
    while '%s%d' % (base, n) in taken:
        n += 1
    return '%s%d' % (base, n)


def _limits_for(customer: Customer) -> dict:
    service = customer.service
    if service is None:
        return {'group': None}
    return {
        'group': RadiusGroup.for_service(service, site=customer.site),
        'max_upload': '%dM' % max(int(service.speed_out), 1),
        'max_download': '%dM' % max(int(service.speed_in), 1),
    }


def apply_service_limits(ruser: RadiusUser) -> None:
    """Take group and speed limits from current customer package"""
    fields = _limits_for(ruser.customer)
    for fname, fval in fields.items():
        setattr(ruser, fname, fval)
    ruser.sync_status = SyncStatus.PENDING
    ruser.save(update_fields=[*fields.keys(), 'sync_status'])


def generate_credentials(customer: Customer, regenerate=False) -> dict:
    """
    Create RADIUS identity for customer.
    Existing credentials are returned untouched unless regenerate is set,
    then the password is replaced.
    :return: dict with username, password, bandwidth_profile and created flag
    """
    ruser = RadiusUser.objects.filter(customer=customer).select_related('group').first()
    if ruser is not None and not regenerate:
        return _credentials_info(ruser, created=False)

    with transaction.atomic():
        fields = _limits_for(customer)
        fields.update({
            'site': customer.site,
            'expiration': customer.subscription_end,
            'is_active': customer.status == CustomerStatus.ACTIVE,
            'sync_status': SyncStatus.PENDING,
            'password': generate_password(12),
        })
        if ruser is None:
            ruser = RadiusUser.objects.create(
                customer=customer,
                username=make_username(customer),
                **fields
            )
            created = True
        else:
            for fname, fval in fields.items():
                setattr(ruser, fname, fval)
            ruser.save()
            created = False
        ruser_id = ruser.pk
        transaction.on_commit(lambda: push_user_state_task.delay(ruser_id))
    logger.info('Radius credentials %s for customer %d: %s' % (
        'generated' if created else 'regenerated', customer.pk, ruser.username
    ))
    notify_customer(customer, NotificationType.RADIUS_CREDENTIALS, {
        'username': ruser.username,
        'password': ruser.password,
    })
    return _credentials_info(ruser, created=created)


def _credentials_info(ruser: RadiusUser, created: bool) -> dict:
    return {
        'client_id': ruser.customer_id,
        'username': ruser.username,
        'password': ruser.password,
        'bandwidth_profile': ruser.group.name if ruser.group else 'default',
        'created': created,
    }


def bulk_generate_credentials(site=None) -> list:
    """Credentials for every active customer who has none yet"""
    qs = Customer.objects.active().filter(radius_user__isnull=True)
    if site is not None:
        qs = qs.filter(site=site)
    results = []
    for customer in qs.select_related('service', 'site'):
        try:
            res = generate_credentials(customer)
            results.append({
                'client_id': customer.pk,
                'client_name': customer.name,
                'success': True,
                'credentials': res,
                'error': None,
            })
        except Exception as err:
            logger.error('Radius credentials for customer %d failed: %s' % (customer.pk, err))
            results.append({
                'client_id': customer.pk,
                'client_name': customer.name,
                'success': False,
                'credentials': None,
                'error': str(err),
            })
    return results


def client_status_report(site=None, now: Optional[datetime] = None) -> dict:
    now = now or timezone.now()
    qs = RadiusUser.objects.select_related('customer', 'customer__service', 'group')
    if site is not None:
        qs = qs.filter(site=site)
    clients = []
    for ruser in qs.iterator():
        customer = ruser.customer
        service = customer.service
        clients.append({
            'client_id': customer.pk,
            'name': customer.name,
            'phone': customer.phone,
            'email': customer.email,
            'status': customer.status,
            'username': ruser.username,
            'password': ruser.password,
            'bandwidth_profile': ruser.group.name if ruser.group else 'default',
            'download_speed_kbps': service.download_kbps if service else DEFAULT_DOWNLOAD_KBPS,
            'upload_speed_kbps': service.upload_kbps if service else DEFAULT_UPLOAD_KBPS,
            'session_timeout': service.session_timeout if service else DEFAULT_SESSION_TIMEOUT,
            'idle_timeout': service.idle_timeout if service else DEFAULT_IDLE_TIMEOUT,
            'sync_status': ruser.sync_status,
            'last_synced': ruser.last_synced_at,
            'needs_sync': ruser.sync_status == SyncStatus.PENDING,
            'is_online': ruser.is_online,
            'subscription_end_date': customer.subscription_end,
            'wallet_balance': customer.wallet_balance,
            'monthly_rate': customer.get_rate(),
            'scheduled_for_disconnection': customer.disconnection_scheduled_at is not None,
            'action': 'ensure_connected' if customer.status == CustomerStatus.ACTIVE else 'disconnect',
        })
    return {
        'clients': clients,
        'total_clients': len(clients),
        'pending_sync': sum(1 for c in clients if c['needs_sync']),
        'active_clients': sum(1 for c in clients if c['status'] == CustomerStatus.ACTIVE),
        'suspended_clients': sum(1 for c in clients if c['status'] == CustomerStatus.SUSPENDED),
        'last_updated': now,
    }

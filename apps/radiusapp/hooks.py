"""
Handlers of calls from external RADIUS backend.
Each handler returns data for response or raises RadiusHookError.
"""
from datetime import timedelta
from typing import Optional

from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from rest_framework import status

from customers.models import Customer, CustomerStatus
from gateways.models import MikrotikRouter, ConnectionStatus, SyncStatus
from ispdesk.lib import safe_int, safe_bool
from ispdesk.lib.logger import logger
from radiusapp.models import RadiusUser, RadiusSession, RadiusSessionStatus, RadiusEvent


class RadiusHookError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST


class RadiusHookNotFound(RadiusHookError):
    status_code = status.HTTP_404_NOT_FOUND


def _parse_time(value, default=None):
    if not value:
        return default
    return parse_datetime(str(value)) or default


def _get_radius_user(username: str) -> RadiusUser:
    ruser = RadiusUser.objects.select_related('customer', 'site').filter(username=username).first()
    if ruser is None:
        raise RadiusHookNotFound('RADIUS user not found: %s' % username)
    return ruser


def process_coa_event(data: dict) -> dict:
    username = data.get('username')
    action = data.get('action')
    if not username or not action:
        raise RadiusHookError('username and action are required for CoA events')
    ruser = _get_radius_user(username)
    success = safe_bool(data.get('success'))
    error = data.get('error') or ''
    timestamp = _parse_time(data.get('timestamp'), timezone.now())
    customer = ruser.customer
    with transaction.atomic():
        if success and action == 'disconnect':
            RadiusUser.objects.filter(pk=ruser.pk).update(
                is_active=False, is_online=False, sync_status=SyncStatus.SYNCED
            )
            RadiusSession.objects.filter(user=ruser, status=RadiusSessionStatus.ACTIVE).update(
                status=RadiusSessionStatus.ENDED, end_time=timestamp, terminate_cause='Admin-Reset'
            )
            customer.suspend()
        RadiusEvent.objects.create(
            site=ruser.site,
            user=ruser,
            customer=customer,
            username=username,
            action='coa_%s' % action,
            success=success,
            error='' if success else error,
            details={'timestamp': timestamp.isoformat()}
        )
    if not success:
        logger.warning('CoA %s for "%s" failed: %s' % (action, username, error))
    return {
        'username': username,
        'action': action,
        'success': success,
        'error': error or None,
        'timestamp': timestamp,
        'client_id': customer.pk,
    }


def _get_by_id(model, value):
    pk = safe_int(value)
    if pk <= 0:
        if value:
            logger.warning('Invalid %s id "%s" in sync callback, skipped' % (model.__name__, value))
        return None
    obj = model.objects.filter(pk=pk).first()
    if obj is None:
        logger.warning('%s %d from sync callback not found' % (model.__name__, pk))
    return obj


def _sync_router(router: MikrotikRouter, data: dict, timestamp) -> None:
    sync_status = data.get('sync_status') or SyncStatus.SYNCED
    error_message = data.get('error_message') or ''
    router.sync_status = sync_status
    router.connection_status = data.get('connection_status') or (
        ConnectionStatus.CONNECTED if sync_status == SyncStatus.SYNCED
        else ConnectionStatus.CONFIGURATION_FAILED
    )
    router.last_sync_at = timestamp
    router.last_error = error_message
    router.last_test_results = {
        'message': error_message or 'RADIUS configuration completed successfully',
        'timestamp': timestamp.isoformat(),
    }
    router.save(update_fields=[
        'sync_status', 'connection_status', 'last_sync_at', 'last_error', 'last_test_results'
    ])


def _sync_customer(customer: Customer, data: dict, timestamp) -> None:
    action = data.get('action')
    st = data.get('status')
    sync_status = data.get('sync_status') or SyncStatus.SYNCED
    error_message = data.get('error_message') or ''
    if action == 'disconnect' or st == 'inactive':
        new_status = CustomerStatus.SUSPENDED
    elif action == 'connect' or st == 'active':
        new_status = CustomerStatus.ACTIVE
    else:
        new_status = None
    ruser = RadiusUser.objects.filter(customer=customer).first()
    if ruser is not None:
        ruser.sync_status = sync_status
        ruser.last_synced_at = timestamp
        ruser.last_error = error_message
        update_fields = ['sync_status', 'last_synced_at', 'last_error']
        if new_status is not None:
            ruser.is_active = new_status == CustomerStatus.ACTIVE
            update_fields.append('is_active')
        ruser.save(update_fields=update_fields)
    if new_status == CustomerStatus.SUSPENDED:
        customer.suspend()
    elif new_status == CustomerStatus.ACTIVE:
        customer.activate()


def process_sync_callback(data: dict) -> dict:
    timestamp = _parse_time(data.get('timestamp'), timezone.now())
    router = _get_by_id(MikrotikRouter, data.get('router_id'))
    customer = _get_by_id(Customer, data.get('client_id'))
    error_message = data.get('error_message')
    with transaction.atomic():
        if router is not None:
            _sync_router(router, data, timestamp)
        if customer is not None:
            _sync_customer(customer, data, timestamp)
            if error_message or data.get('sync_status') == SyncStatus.FAILED:
                RadiusEvent.objects.create(
                    site=customer.site,
                    customer=customer,
                    username='client_%d' % customer.pk,
                    action=data.get('action') or 'sync',
                    success=not error_message,
                    error=error_message or '',
                    details={'status': data.get('status'), 'sync_status': data.get('sync_status')}
                )
    return {
        'client_id': customer.pk if customer else None,
        'router_id': router.pk if router else None,
        'sync_status': data.get('sync_status'),
        'last_synced': timestamp,
        'connection_status': router.connection_status if router else None,
    }


def process_accounting(data: dict) -> dict:
    username = data.get('username')
    session_id = data.get('session_id')
    if not username or not session_id:
        raise RadiusHookError('username and session_id are required')
    ruser = _get_radius_user(username)
    now = timezone.now()
    nas_ip = data.get('nas_ip_address') or None
    session_time = safe_int(data.get('session_time'))
    terminate_cause = data.get('terminate_cause') or ''
    router: Optional[MikrotikRouter] = None
    if nas_ip:
        router = MikrotikRouter.objects.filter(ip_address=nas_ip, site=ruser.site).first()
    ended = bool(terminate_cause)
    with transaction.atomic():
        sess, created = RadiusSession.objects.update_or_create(
            session_id=session_id,
            defaults={
                'user': ruser,
                'customer_id': ruser.customer_id,
                'username': username,
                'router': router,
                'nas_ip': nas_ip,
                'framed_ip': data.get('framed_ip_address') or None,
                'start_time': _parse_time(data.get('start_time'), now - timedelta(seconds=session_time)),
                'end_time': _parse_time(data.get('end_time'), now) if ended else None,
                'session_time': session_time,
                'input_octets': safe_int(data.get('input_octets')),
                'output_octets': safe_int(data.get('output_octets')),
                'terminate_cause': terminate_cause,
                'status': RadiusSessionStatus.ENDED if ended else RadiusSessionStatus.ACTIVE,
            }
        )
        if ended:
            still_online = RadiusSession.objects.filter(
                user=ruser, status=RadiusSessionStatus.ACTIVE
            ).exists()
            RadiusUser.objects.filter(pk=ruser.pk).update(is_online=still_online, last_seen_at=now)
        else:
            RadiusUser.objects.filter(pk=ruser.pk).update(is_online=True, last_seen_at=now)
    return {
        'session_id': sess.session_id,
        'status': sess.status,
        'created': created,
    }

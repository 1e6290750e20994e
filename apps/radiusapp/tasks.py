from typing import Optional

import requests
from celery.utils.log import get_task_logger
from django.conf import settings
from django.contrib.sites.models import Site
from django.db.models import Q
from django.utils import timezone

from customers.models import CustomerStatus
from gateways.gw_facade import GatewayNetworkError
from gateways.models import MikrotikRouter, ConnectionStatus, SyncStatus
from gateways.nas import reconcile_nas_clients
from ispdesk import celery_app
from ispdesk.lib import ProcessLocked
from ispdesk.lib.process_lock import process_lock_cm
from radiusapp.models import RadiusUser, RadiusSession, RadiusSessionStatus
from radiusapp.session_control import disconnect_user, change_user_rate_limit, close_active_sessions


logger = get_task_logger(__name__)


def push_user_state(ruser: RadiusUser) -> bool:
    """
    Send desired state of user to external RADIUS backend.
    :return: False when backend is not configured
    """
    url = getattr(settings, 'RADIUS_BACKEND_URL', None)
    if not url:
        logger.debug('RADIUS_BACKEND_URL is empty, push of "%s" skipped' % ruser.username)
        return False
    payload = {
        'client_id': ruser.customer_id,
        'username': ruser.username,
        'status': 'active' if ruser.is_active else 'suspended',
        'action': 'connect' if ruser.is_active else 'disconnect',
    }
    try:
        r = requests.post(url, json=payload, timeout=10)
        r.raise_for_status()
    except requests.RequestException as err:
        RadiusUser.objects.filter(pk=ruser.pk).update(
            sync_status=SyncStatus.FAILED,
            last_error=str(err)
        )
        logger.error('Push of "%s" to radius backend failed: %s' % (ruser.username, err))
        raise
    RadiusUser.objects.filter(pk=ruser.pk).update(
        sync_status=SyncStatus.SYNCED,
        last_synced_at=timezone.now(),
        last_error=''
    )
    return True


@celery_app.task(autoretry_for=(requests.RequestException,), retry_backoff=True, max_retries=5)
def push_user_state_task(radius_user_id: int):
    ruser = RadiusUser.objects.filter(pk=radius_user_id).first()
    if ruser is None:
        return False
    return push_user_state(ruser)


@celery_app.task
def disconnect_user_task(radius_user_id: int):
    ruser = RadiusUser.objects.select_related('site').filter(pk=radius_user_id).first()
    if ruser is None:
        return None
    res = disconnect_user(ruser)
    if not res['disconnected']:
        logger.warning('Session of "%s" was not found on any NAS' % ruser.username)
    return res


@celery_app.task
def change_rate_limit_task(radius_user_id: int):
    ruser = RadiusUser.objects.select_related('site').filter(pk=radius_user_id).first()
    if ruser is None:
        return False
    return change_user_rate_limit(ruser)


def _sync_desired_state(site: Site) -> int:
    """Users whose desired state lags behind customer status are pushed again"""
    pending = 0
    users = RadiusUser.objects.filter(site=site).select_related('customer')
    for ruser in users.iterator():
        desired = ruser.customer.status == CustomerStatus.ACTIVE
        if ruser.is_active != desired:
            ruser.mark_pending(is_active=desired)
        elif ruser.sync_status != SyncStatus.FAILED:
            continue
        pending += 1
        push_user_state_task.delay(ruser.pk)
    return pending


def reconcile_site(site: Site) -> dict:
    """
    Compare what routers report with what we want.
    Online flags follow active PPPoE sessions, sessions of disabled
    users are kicked, desired state is pushed where it differs.
    """
    report = {
        'routers_checked': 0,
        'routers_offline': 0,
        'online_users': 0,
        'kicked': [],
        'pending_sync': _sync_desired_state(site),
        'nas': reconcile_nas_clients(site),
        'errors': [],
    }
    disabled = set(
        RadiusUser.objects.filter(site=site, is_active=False).values_list('username', flat=True)
    )
    observed = set()
    reachable = False
    failed_routers = []
    for router in MikrotikRouter.objects.filter(site=site, is_enabled=True):
        report['routers_checked'] += 1
        gw = router.get_gw_manager()
        try:
            sessions = gw.get_active_pppoe_sessions()
            for sess in sessions:
                uname = sess.get('username')
                if uname in disabled:
                    gw.kick_pppoe_session(uname)
                    report['kicked'].append(uname)
                else:
                    observed.add(uname)
        except GatewayNetworkError as err:
            report['routers_offline'] += 1
            report['errors'].append('%s: %s' % (router.name, err))
            MikrotikRouter.objects.filter(pk=router.pk).update(
                connection_status=ConnectionStatus.OFFLINE,
                last_error=str(err)
            )
            failed_routers.append(router)
            logger.warning('Router "%s" is unreachable: %s' % (router.name, err))
            continue
        finally:
            gw.close()
        reachable = True
        MikrotikRouter.objects.filter(pk=router.pk).update(
            connection_status=ConnectionStatus.ONLINE,
            last_sync_at=timezone.now(),
            last_error=''
        )

    if reachable:
        now = timezone.now()
        RadiusUser.objects.filter(site=site, username__in=observed).update(
            is_online=True, last_seen_at=now
        )
        gone = RadiusUser.objects.filter(site=site, is_online=True).exclude(username__in=observed)
        if failed_routers:
            # nothing is known about sessions held on unreachable routers
            held = RadiusSession.objects.filter(status=RadiusSessionStatus.ACTIVE).filter(
                Q(router__in=failed_routers) | Q(nas_ip__in=[r.ip_address for r in failed_routers])
            ).values_list('user_id', flat=True)
            gone = gone.exclude(pk__in=set(held))
        for ruser in gone:
            close_active_sessions(ruser, cause='Lost-Service')
        report['online_users'] = len(observed)
    return report


RECONCILE_LOCK_NAME = 'radius_reconcile'


def reconcile_all() -> Optional[dict]:
    try:
        with process_lock_cm(lock_name=RECONCILE_LOCK_NAME):
            return {site.domain: reconcile_site(site) for site in Site.objects.all()}
    except ProcessLocked:
        logger.info('Reconciliation is already running')
        return None


@celery_app.task
def reconcile_task():
    res = reconcile_all()
    logger.info('Reconciliation finished: %s' % res)
    return res


celery_app.add_periodic_task(
    getattr(settings, 'RECONCILE_INTERVAL', 300),
    reconcile_task.s(),
    name='Reconcile routers, sessions and radius users'
)

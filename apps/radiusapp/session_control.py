from typing import List

from django.utils import timezone

from gateways.gw_facade import GatewayNetworkError
from gateways.models import MikrotikRouter
from ispdesk.lib.logger import logger
from radiusapp.models import RadiusUser, RadiusSession, RadiusSessionStatus, NasClient, RadiusEvent
from radiusapp.radius_commands import (
    finish_session,
    change_session_rate_limit,
    RadiusBaseException,
    RadiusSessionNotFoundException
)


def _nas_for_user(ruser: RadiusUser) -> List[NasClient]:
    """NAS clients where user was seen, all active NAS of the site otherwise"""
    active = ruser.sessions.filter(status=RadiusSessionStatus.ACTIVE)
    nas_ips = {s.nas_ip for s in active if s.nas_ip}
    router_ids = {s.router_id for s in active if s.router_id}
    qs = NasClient.objects.filter(site=ruser.site, is_active=True)
    if nas_ips or router_ids:
        seen = list(qs.filter(nas_ip__in=nas_ips)) + list(qs.filter(router_id__in=router_ids))
        by_pk = {n.pk: n for n in seen}
        return list(by_pk.values())
    return list(qs)


def _kick_on_routers(username: str, site) -> bool:
    kicked = False
    for router in MikrotikRouter.objects.filter(site=site, is_enabled=True):
        gw = router.get_gw_manager()
        try:
            if gw.kick_pppoe_session(username):
                kicked = True
        except GatewayNetworkError as err:
            logger.warning('Failed to kick "%s" on router "%s": %s' % (username, router.name, err))
        finally:
            gw.close()
    return kicked


def close_active_sessions(ruser: RadiusUser, cause='Admin-Reset') -> int:
    now = timezone.now()
    count = RadiusSession.objects.filter(
        user=ruser, status=RadiusSessionStatus.ACTIVE
    ).update(status=RadiusSessionStatus.ENDED, end_time=now, terminate_cause=cause)
    RadiusUser.objects.filter(pk=ruser.pk).update(is_online=False)
    ruser.is_online = False
    return count


def disconnect_user(ruser: RadiusUser) -> dict:
    """
    Drop user session. Disconnect-Request goes to NAS first,
    RouterOS api kick is used when no NAS acknowledged it.
    """
    errors = []
    method = None
    for nas in _nas_for_user(ruser):
        try:
            finish_session(nas, ruser.username)
            method = 'coa'
            break
        except RadiusSessionNotFoundException:
            continue
        except RadiusBaseException as err:
            logger.warning('Disconnect-Request for "%s" to %s failed: %s' % (ruser.username, nas, err))
            errors.append('%s: %s' % (nas.nas_ip, err))
    if method is None and _kick_on_routers(ruser.username, ruser.site):
        method = 'routeros'
    closed = close_active_sessions(ruser)
    RadiusEvent.objects.create(
        site=ruser.site,
        user=ruser,
        customer_id=ruser.customer_id,
        username=ruser.username,
        action='disconnect',
        success=method is not None,
        error='; '.join(errors),
        details={'method': method, 'closed_sessions': closed}
    )
    return {
        'disconnected': method is not None,
        'method': method,
        'closed_sessions': closed,
        'errors': errors,
    }


def change_user_rate_limit(ruser: RadiusUser) -> bool:
    """Apply current user limits to the live session by CoA"""
    if not ruser.is_online:
        return False
    rate_limit = ruser.rate_limit()
    for nas in _nas_for_user(ruser):
        try:
            change_session_rate_limit(nas, ruser.username, rate_limit)
        except RadiusSessionNotFoundException:
            continue
        except RadiusBaseException as err:
            logger.warning('CoA for "%s" to %s failed: %s' % (ruser.username, nas, err))
            continue
        RadiusEvent.objects.create(
            site=ruser.site,
            user=ruser,
            customer_id=ruser.customer_id,
            username=ruser.username,
            action='rate_limit',
            details={'rate_limit': rate_limit, 'nas_ip': str(nas.nas_ip)}
        )
        return True
    return False

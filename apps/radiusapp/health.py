from typing import Callable, List, Tuple

from django.db import connection, DatabaseError
from django.utils import timezone

from gateways.models import MikrotikRouter, ConnectionStatus
from ispdesk import ping
from ispdesk.lib.logger import logger
from radiusapp.models import (
    RadiusServer, RadiusUser, RadiusSession, RadiusSessionStatus,
    SystemTestResult, TestCategory, TestStatus
)

# (passed, message, details)
CheckResult = Tuple[bool, str, dict]


def check_radius_server(site) -> CheckResult:
    server = RadiusServer.get_primary(site=site)
    if server is None:
        return False, 'No primary RADIUS server configured', {}
    try:
        reachable = ping(server.server_address, count=2)
    except ValueError as err:
        return False, str(err), {'server': server.server_address}
    if not reachable:
        return False, 'RADIUS server %s is unreachable' % server.server_address, {
            'server': server.server_address
        }
    return True, 'RADIUS server is accessible and responding', {
        'server': server.server_address,
        'active_users': RadiusUser.objects.filter(site=site, is_active=True).count(),
    }


def check_database(site) -> CheckResult:
    try:
        connection.ensure_connection()
        users = RadiusUser.objects.filter(site=site).count()
    except DatabaseError as err:
        return False, 'Database error: %s' % err, {}
    return True, 'Database connection active. %d RADIUS users configured' % users, {
        'radius_users': users
    }


def check_user_authentication(site) -> CheckResult:
    users = RadiusUser.objects.filter(site=site)
    if not users.exists():
        return False, 'No RADIUS users configured. Add clients to enable authentication', {}
    return True, 'User authentication system configured and ready', {
        'active_users': users.filter(is_active=True).count()
    }


def check_session_tracking(site) -> CheckResult:
    active = RadiusSession.objects.filter(
        user__site=site, status=RadiusSessionStatus.ACTIVE
    ).count()
    return True, 'Session tracking active. %d active sessions' % active, {
        'active_sessions': active
    }


def check_pppoe_configuration(site) -> CheckResult:
    routers = MikrotikRouter.objects.filter(site=site, is_enabled=True).exclude(pppoe_interface='')
    cnt = routers.count()
    if cnt == 0:
        return False, 'No MikroTik routers configured for PPPoE', {}
    return True, 'PPPoE ready on %d router(s)' % cnt, {'configured_routers': cnt}


def check_mikrotik_integration(site) -> CheckResult:
    routers = MikrotikRouter.objects.filter(site=site, is_enabled=True)
    online = 0
    for router in routers:
        if router.refresh_connection_status():
            online += 1
    total = routers.count()
    return online > 0, '%d MikroTik device(s) online' % online, {
        'online_routers': online,
        'total_routers': total,
    }


def check_speed_limits(site) -> CheckResult:
    cnt = RadiusUser.objects.filter(site=site).exclude(max_upload='').exclude(max_download='').count()
    if cnt == 0:
        return False, 'No RADIUS users with speed limits', {}
    return True, 'Speed limit control system configured and ready', {'users_with_limits': cnt}


def check_client_connectivity(site) -> CheckResult:
    online = RadiusUser.objects.filter(site=site, is_online=True).count()
    if online == 0:
        return False, 'No active client connections detected', {}
    return True, '%d client(s) currently connected' % online, {'active_connections': online}


HEALTH_CHECKS: List[Tuple[str, str, Callable]] = [
    (TestCategory.RADIUS, 'RADIUS Server Connection', check_radius_server),
    (TestCategory.RADIUS, 'Database Integration', check_database),
    (TestCategory.RADIUS, 'User Authentication', check_user_authentication),
    (TestCategory.RADIUS, 'Session Tracking', check_session_tracking),
    (TestCategory.PPPOE, 'PPPoE Configuration', check_pppoe_configuration),
    (TestCategory.PPPOE, 'MikroTik Integration', check_mikrotik_integration),
    (TestCategory.PPPOE, 'Speed Limit Control', check_speed_limits),
    (TestCategory.PPPOE, 'Client Connectivity', check_client_connectivity),
]


def run_health_checks(site) -> dict:
    """Run every check and persist its result"""
    now = timezone.now()
    results = []
    for category, test_name, check_fn in HEALTH_CHECKS:
        passed, message, details = check_fn(site)
        res, _created = SystemTestResult.objects.update_or_create(
            site=site,
            test_name=test_name,
            defaults={
                'category': category,
                'status': TestStatus.PASSED if passed else TestStatus.FAILED,
                'message': message,
                'details': details,
                'last_run': now,
            }
        )
        results.append(res)
    passed = sum(1 for r in results if r.status == TestStatus.PASSED)
    failed = len(results) - passed
    if failed:
        logger.warning('Health checks for site %s: %d passed, %d failed' % (site, passed, failed))
    return {
        'results': results,
        'passed': passed,
        'failed': failed,
    }

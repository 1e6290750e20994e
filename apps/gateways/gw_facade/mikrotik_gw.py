from typing import List, Optional

from django.utils.translation import gettext_lazy as _
from librouteros import connect
from librouteros.exceptions import LibRouterosError

from gateways.gw_facade.base_gw import BaseGateway


class GatewayNetworkError(Exception):
    pass


class MikrotikGateway(BaseGateway):
    description = _("Mikrotik gateway")

    def __init__(self, ip: str, login: str, password: str, port=8728, timeout=10, **kwargs):
        self.ip = ip
        self.login = login
        self.password = password
        self.port = int(port)
        self.timeout = timeout
        self._api = None

    def _get_api(self):
        if self._api is None:
            try:
                self._api = connect(
                    username=self.login,
                    password=self.password,
                    host=self.ip,
                    port=self.port,
                    timeout=self.timeout
                )
            except (LibRouterosError, OSError) as err:
                raise GatewayNetworkError(
                    "Failed to connect to %s:%d: %s" % (self.ip, self.port, err)
                ) from err
        return self._api

    def _query(self, *path) -> List[dict]:
        api = self._get_api()
        try:
            return list(api.path(*path))
        except (LibRouterosError, OSError) as err:
            raise GatewayNetworkError(str(err)) from err

    def close(self):
        if self._api is not None:
            self._api.close()
            self._api = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def ping(self) -> str:
        identity = self._query('system', 'identity')
        if not identity:
            return ''
        return identity[0].get('name', '')

    def get_active_pppoe_sessions(self) -> List[dict]:
        return [{
            'session_id': s.get('.id'),
            'username': s.get('name'),
            'address': s.get('address'),
            'caller_id': s.get('caller-id'),
            'uptime': s.get('uptime'),
            'service': s.get('service'),
        } for s in self._query('ppp', 'active')]

    def _find_session_id(self, username: str) -> Optional[str]:
        for s in self._query('ppp', 'active'):
            if s.get('name') == username:
                return s.get('.id')
        return None

    def kick_pppoe_session(self, username: str) -> bool:
        session_id = self._find_session_id(username)
        if session_id is None:
            return False
        api = self._get_api()
        try:
            api.path('ppp', 'active').remove(session_id)
        except (LibRouterosError, OSError) as err:
            raise GatewayNetworkError(str(err)) from err
        return True

    def system_resources(self) -> dict:
        res = self._query('system', 'resource')
        if not res:
            return {}
        r = res[0]
        return {
            'uptime': r.get('uptime'),
            'version': r.get('version'),
            'board_name': r.get('board-name'),
            'cpu_load': r.get('cpu-load'),
            'free_memory': r.get('free-memory'),
            'total_memory': r.get('total-memory'),
        }

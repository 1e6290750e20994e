from typing import List

from gateways.gw_facade.base_gw import BaseGateway
from gateways.gw_facade.mikrotik_gw import MikrotikGateway, GatewayNetworkError


MIKROTIK = 0

GATEWAY_TYPES = ((MIKROTIK, MikrotikGateway),)


class GatewayFacade(BaseGateway):
    description = "GatewayFacade"

    def __init__(self, gw_type: int, *args, **kwargs):
        self._gw_type = gw_type
        try:
            gw_class = next(klass for num, klass in GATEWAY_TYPES if num == gw_type)
        except StopIteration:
            raise TypeError("gw_type must be GATEWAY_TYPES choice")
        self.gw_instance = gw_class(*args, **kwargs)

    def ping(self) -> str:
        return self.gw_instance.ping()

    def get_active_pppoe_sessions(self) -> List[dict]:
        return self.gw_instance.get_active_pppoe_sessions()

    def kick_pppoe_session(self, username: str) -> bool:
        return self.gw_instance.kick_pppoe_session(username)

    def system_resources(self) -> dict:
        return self.gw_instance.system_resources()

    def close(self):
        self.gw_instance.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


__all__ = "GatewayFacade", "GATEWAY_TYPES", "GatewayNetworkError", "MIKROTIK", "MikrotikGateway"

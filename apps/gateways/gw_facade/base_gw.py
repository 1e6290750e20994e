from abc import ABC, abstractmethod
from typing import List


class BaseGateway(ABC):
    @property
    @abstractmethod
    def description(self):
        """
        :return: Returned a description of gateway implementation
        """
        raise NotImplementedError

    @abstractmethod
    def ping(self) -> str:
        """
        Check that management api is reachable
        :return: gateway identity
        """

    @abstractmethod
    def get_active_pppoe_sessions(self) -> List[dict]:
        """
        Currently connected PPPoE subscribers
        :return: list of dicts with keys username, address, caller_id, uptime, session_id
        """

    @abstractmethod
    def kick_pppoe_session(self, username: str) -> bool:
        """
        Drop active PPPoE session of subscriber
        :return: False if subscriber has no active session
        """

    @abstractmethod
    def system_resources(self) -> dict:
        """
        :return: uptime, version, cpu and memory usage of gateway
        """

import abc
from typing import List, NamedTuple, Optional


class SmsSendError(Exception):
    pass


class SmsSendResult(NamedTuple):
    recipient: str
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class BaseSmsBackend(abc.ABC):
    @property
    @abc.abstractmethod
    def description(self):
        """
        :return: Returned a description of sms gateway implementation
        """
        raise NotImplementedError

    def __init__(self, sender_id: Optional[str] = None):
        self.sender_id = sender_id

    @abc.abstractmethod
    def send(self, recipients: List[str], text: str) -> List[SmsSendResult]:
        """
        Send one text to many recipients.
        :param recipients: phone numbers in international form
        :param text: message text
        :return: result for each recipient
        :raises SmsSendError: when gateway is unreachable or refused the whole request
        """

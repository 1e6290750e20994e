from typing import Generator, Optional

from django.utils.translation import gettext


SYS_NAME_OID = '.1.3.6.1.2.1.1.5.0'
SYS_UPTIME_OID = '.1.3.6.1.2.1.1.3.0'
SYS_DESCR_OID = '.1.3.6.1.2.1.1.1.0'
IF_NUMBER_OID = '.1.3.6.1.2.1.2.1.0'
IF_DESCR_OID = '.1.3.6.1.2.1.2.2.1.2'


class SnmpError(Exception):
    pass


class SnmpWorker:
    ses = None

    def __init__(self, ip: Optional[str], community='public', ver=2, timeout=2, retries=1):
        if ip is None or ip == '':
            raise SnmpError(gettext('Ip address is required'))
        self._ip = ip
        self._community = community
        self._ver = ver
        self._timeout = timeout
        self._retries = retries

    def start_ses(self):
        if self.ses is None:
            # easysnmp needs net-snmp libraries, it is an optional dependency
            from easysnmp import Session, EasySNMPError

            try:
                self.ses = Session(
                    hostname=self._ip, community=self._community,
                    version=self._ver, timeout=self._timeout,
                    retries=self._retries
                )
            except EasySNMPError as err:
                raise SnmpError(str(err)) from err

    def get_list(self, oid) -> Generator:
        from easysnmp import EasySNMPError

        self.start_ses()
        try:
            for v in self.ses.walk(oid):
                yield v.value
        except EasySNMPError as err:
            raise SnmpError(str(err)) from err

    def get_item(self, oid):
        from easysnmp import EasySNMPError

        self.start_ses()
        try:
            v = self.ses.get(oid).value
        except EasySNMPError as err:
            raise SnmpError(str(err)) from err
        if v != 'NOSUCHINSTANCE':
            return v

import os
from ipaddress import ip_address

from .celery import app as celery_app


MAC_ADDR_REGEXP = r"^([0-9a-fA-F]{2}[:.-]){5}[0-9a-fA-F]{2}|([0-9a-fA-F]{4}[:.-]){2}[0-9a-fA-F]{4}$"


def ping(ip_addr: str, count=1, interval=0.2) -> bool:
    """
    Icmp check of router or radius server from this host.
    :raises ValueError: if ip_addr is not an ip address, hostnames are not resolved
    """
    try:
        addr = ip_address(str(ip_addr))
    except ValueError as err:
        raise ValueError('"%s" is not valid ip address' % ip_addr) from err
    family = "-6" if addr.version == 6 else "-4"
    response = os.system(f"`which ping` {family} -Anq -i {interval} -c{count} -W1 {addr} > /dev/null")
    return response == 0


__all__ = ("ping", "MAC_ADDR_REGEXP", "celery_app")

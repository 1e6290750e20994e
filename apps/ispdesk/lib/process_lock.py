import socket
from types import FunctionType
from typing import Union, Optional
from time import sleep
from contextlib import contextmanager


LOCK_FN_TYPE = Optional[Union[FunctionType, str]]


class ProcessLocked(OSError):
    """only one process for function"""


@contextmanager
def process_lock_cm(lock_name: LOCK_FN_TYPE = None, wait=False):
    s = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        # Create an abstract socket, by prefixing it with null.
        if callable(lock_name):
            really_lock_name = lock_name()
        else:
            really_lock_name = str(lock_name)
        try:
            if wait:
                while True:
                    try:
                        s.bind('\0ispdesk_lock_%s' % really_lock_name)
                        break
                    except OSError:
                        sleep(0.2)
            else:
                s.bind('\0ispdesk_lock_%s' % really_lock_name)
        except OSError as err:
            raise ProcessLocked from err
        yield s
    finally:
        s.close()

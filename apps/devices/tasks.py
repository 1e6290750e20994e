from celery.utils.log import get_task_logger

from devices.models import NetworkDevice
from ispdesk import celery_app


logger = get_task_logger(__name__)


def poll_devices(site=None) -> dict:
    devices = NetworkDevice.objects.monitored()
    if site is not None:
        devices = devices.filter(site=site)
    res = {'up': 0, 'down': 0}
    for dev in devices.iterator():
        if dev.poll():
            res['up'] += 1
        else:
            res['down'] += 1
    return res


@celery_app.task
def poll_devices_task():
    res = poll_devices()
    logger.info('Devices polled: %s' % res)
    return res


celery_app.add_periodic_task(
    300,
    poll_devices_task.s(),
    name='Poll monitored devices over snmp'
)

from django.db.models.signals import pre_delete
from django.dispatch import receiver

from gateways.models import MikrotikRouter
from radiusapp.models import NasClient


@receiver(pre_delete, sender=MikrotikRouter)
def router_pre_delete(sender, instance: MikrotikRouter, **kwargs):
    # NAS client without router can not authenticate anybody
    NasClient.objects.filter(router=instance).update(is_active=False)

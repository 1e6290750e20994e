"""Radius application signals file."""
from django.db import transaction
from django.db.models.signals import pre_save, post_save
from django.dispatch.dispatcher import receiver

from customers import custom_signals as customer_custom_signals
from customers.models import Customer, CustomerStatus, ConnectionType
from radiusapp.credentials import generate_credentials, apply_service_limits
from radiusapp.models import RadiusUser
from radiusapp.tasks import push_user_state_task, disconnect_user_task, change_rate_limit_task


@receiver(customer_custom_signals.customer_status_changed, sender=Customer)
def customer_status_changed_signal_handler(sender, instance: Customer, old_status, new_status, **kwargs):
    """
    Keep desired state of radius user equal to customer status.
    Network calls run only after the surrounding transaction commits.
    """
    desired = new_status == CustomerStatus.ACTIVE
    ruser = RadiusUser.objects.filter(customer=instance).first()
    if ruser is None:
        if desired and instance.connection_type == ConnectionType.PPPOE:
            generate_credentials(instance)
        return
    if ruser.is_active == desired:
        return
    ruser.mark_pending(is_active=desired, expiration=instance.subscription_end)
    ruser_id = ruser.pk
    transaction.on_commit(lambda: push_user_state_task.delay(ruser_id))
    if not desired:
        transaction.on_commit(lambda: disconnect_user_task.delay(ruser_id))


@receiver(pre_save, sender=Customer)
def customer_pre_save_signal_handler(sender, instance: Customer, update_fields=None, **kwargs):
    if instance.pk is None or (update_fields is not None and 'service' not in update_fields):
        return
    instance._old_service_id = Customer.objects.filter(
        pk=instance.pk
    ).values_list('service_id', flat=True).first()


@receiver(post_save, sender=Customer)
def customer_post_save_signal_handler(sender, instance: Customer, created=False, **kwargs):
    """When customer package changed, live session gets new rate limit by CoA"""
    if created or not hasattr(instance, '_old_service_id'):
        return
    old_service_id = instance.__dict__.pop('_old_service_id')
    if old_service_id == instance.service_id:
        return
    ruser = RadiusUser.objects.select_related('customer__service').filter(customer=instance).first()
    if ruser is None:
        return
    apply_service_limits(ruser)
    ruser_id = ruser.pk
    transaction.on_commit(lambda: push_user_state_task.delay(ruser_id))
    transaction.on_commit(lambda: change_rate_limit_task.delay(ruser_id))

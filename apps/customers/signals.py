from django.db.models.signals import post_save
from django.dispatch.dispatcher import receiver

from customers.models import Customer, ClientWorkflowStatus


@receiver(post_save, sender=Customer)
def customer_post_save_signal(sender, instance: Customer, created=False, **kwargs):
    if created:
        ClientWorkflowStatus.objects.get_or_create(customer=instance)

from django.apps import AppConfig


class CustomersConfig(AppConfig):
    name = 'customers'
    default_auto_field = 'django.db.models.AutoField'

    def ready(self):
        from customers import signals  # noqa
        from customers import tasks  # noqa

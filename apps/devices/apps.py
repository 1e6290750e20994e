from django.apps import AppConfig


class DevicesConfig(AppConfig):
    name = "devices"
    default_auto_field = 'django.db.models.AutoField'

    def ready(self):
        from devices import tasks  # noqa

from django.apps import AppConfig


class MessengerConfig(AppConfig):
    name = 'messenger'
    default_auto_field = 'django.db.models.AutoField'

    def ready(self):
        from messenger import tasks  # noqa

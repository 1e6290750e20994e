from django.apps import AppConfig


class FinAppConfig(AppConfig):
    name = 'fin_app'
    default_auto_field = 'django.db.models.AutoField'

    def ready(self):
        from fin_app import tasks  # noqa

from django.apps import AppConfig


class RadiusAppConfig(AppConfig):
    name = "radiusapp"
    default_auto_field = 'django.db.models.AutoField'

    def ready(self):
        from radiusapp import signals  # noqa
        from radiusapp import tasks  # noqa

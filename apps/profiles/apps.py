from django.apps import AppConfig


class ProfilesConfig(AppConfig):
    name = 'profiles'
    default_auto_field = 'django.db.models.AutoField'

    def ready(self):
        from profiles import signals  # noqa

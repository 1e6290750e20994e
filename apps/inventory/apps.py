from django.apps import AppConfig


class InventoryConfig(AppConfig):
    name = 'inventory'
    default_auto_field = 'django.db.models.AutoField'

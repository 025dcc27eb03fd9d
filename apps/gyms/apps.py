from django.apps import AppConfig


class GymsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.gyms'
    verbose_name = 'Pickup Gyms'

from django.apps import AppConfig


class LiquifyAppConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'liquify_app'
    verbose_name = 'Liquify'

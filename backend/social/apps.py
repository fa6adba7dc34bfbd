"""
Social App Configuration
"""
from django.apps import AppConfig


class SocialConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'social'
    verbose_name = 'Watchscape social'

    def ready(self):
        # Import signals when app is ready
        import social.signals  # noqa

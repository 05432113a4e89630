from django.apps import AppConfig


class WardConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'ward'
    verbose_name = 'Ward'

    def ready(self):
        from ward import signals  # noqa: F401

from django.apps import AppConfig


class FaresConfig(AppConfig):
    name = 'fares'
    verbose_name = 'Fares and pricing'

    def ready(self):
        from . import signals  # noqa: F401

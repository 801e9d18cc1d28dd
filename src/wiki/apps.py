"""Wiki Django app configuration."""

from django.apps import AppConfig


class WikiConfig(AppConfig):
    """Wiki app configuration."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "wiki"

    def ready(self):
        """Build the browser compatibility table once at startup."""
        from .services.compat import get_compatibility_gate

        get_compatibility_gate()

from django.apps import AppConfig


class DrfTokenAuthorityConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "drf_token_authority"

    def ready(self):
        # run extra user configuration checks; importing them also loads
        # settings, which syncs the swappable model name before first use
        import drf_token_authority.checks  # noqa: F401

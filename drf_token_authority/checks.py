from django.core.checks import Error, register

from drf_token_authority.settings import authority_settings


@register()
def check_cryptography_installed(app_configs, **kwargs):
    errors = []
    algo = authority_settings.JWT_ALGORITHM

    if algo.startswith(("RS", "ES", "PS")):
        try:
            import cryptography  # noqa: F401
        except ImportError:
            errors.append(
                Error(
                    f"The algorithm '{algo}' requires the 'cryptography' library.",
                    hint="Install it with 'pip install drf-token-authority[crypto]'.",
                    obj="settings.DRF_TOKEN_AUTHORITY['JWT_ALGORITHM']",
                    id="drf_token_authority.E001",
                )
            )
    return errors


@register()
def check_refresh_store(app_configs, **kwargs):
    from drf_token_authority.base.stores import BaseRefreshStore

    store_class = authority_settings.REFRESH_STORE
    if isinstance(store_class, type) and issubclass(store_class, BaseRefreshStore):
        return []

    return [
        Error(
            "REFRESH_STORE must point to a BaseRefreshStore subclass.",
            obj="settings.DRF_TOKEN_AUTHORITY['REFRESH_STORE']",
            id="drf_token_authority.E002",
        )
    ]

"""
Configuration management for the token authority.

This module handles the loading, validation, and caching of library settings.
It enforces logical constraints (e.g., TTL relationships) and synchronizes
swappable model settings with the Django runtime.

A ``TokenAuthoritySettings`` instance is an ordinary object: the module-level
``authority_settings`` is only the default, built from ``DRF_TOKEN_AUTHORITY``.
Pass a dedicated instance to ``SessionAuthority`` to run with different keys.
"""

from datetime import timedelta

import jwt
from django.conf import settings
from django.test.signals import setting_changed
from django.utils.module_loading import import_string
from django.utils.translation import gettext_lazy as _
from django.core.exceptions import ImproperlyConfigured


DEFAULTS = {
    # Token Lifecycle
    "ACCESS_TOKEN_TTL": timedelta(minutes=15),
    "REFRESH_TOKEN_TTL": timedelta(days=7),
    "ROTATION_MAX_LIFETIME": None,
    "LEEWAY": timedelta(seconds=0),
    # Session Policy
    "REFRESH_SESSION_MODEL": "drf_token_authority.RefreshSession",
    "REFRESH_STORE": "drf_token_authority.stores.DatabaseRefreshStore",
    "CLOCK": "drf_token_authority.clock.SystemClock",
    "ENFORCE_SINGLE_SESSION": False,
    "MAX_SESSIONS_PER_PRINCIPAL": None,
    "REVOKE_ALL_ON_REUSE": True,
    # Transport
    "AUTH_HEADER_TYPES": ("Bearer",),
    "AUTH_COOKIE_NAMES": ("token",),
    # JWT Configuration
    "JWT_ALGORITHM": "HS256",
    "JWT_SIGNING_KEY": settings.SECRET_KEY,
    "JWT_VERIFYING_KEY": None,
    "JWT_PREVIOUS_VERIFYING_KEYS": (),
    "JWT_KEY_ID": None,
    "JWT_AUDIENCE": None,
    "JWT_ISSUER": None,
    "JWT_JSON_ENCODER": None,
    "JWT_HEADERS": {},
    # Claims Mapping
    "PRINCIPAL_ID_CLAIM": "sub",
    "SESSION_ID_CLAIM": "sid",
    "TOKEN_TYPE_CLAIM": "token_type",
    "JTI_CLAIM": "jti",
    # Extensibility Hooks (Dotted paths to callables)
    "JWT_PAYLOAD_EXTENDER": None,
    "PRINCIPAL_RESOLVER": None,
    "POST_AUTHENTICATED_HOOK": None,
}

IMPORT_STRINGS = (
    "REFRESH_STORE",
    "CLOCK",
    "JWT_JSON_ENCODER",
    "JWT_PAYLOAD_EXTENDER",
    "PRINCIPAL_RESOLVER",
    "POST_AUTHENTICATED_HOOK",
)

HOOK_STRINGS = (
    "JWT_PAYLOAD_EXTENDER",
    "PRINCIPAL_RESOLVER",
    "POST_AUTHENTICATED_HOOK",
)

REMOVED_SETTINGS = ()

TYPE_VALIDATORS = {
    "ACCESS_TOKEN_TTL": timedelta,
    "REFRESH_TOKEN_TTL": timedelta,
    "ROTATION_MAX_LIFETIME": (timedelta, type(None)),
    "LEEWAY": timedelta,
    "REFRESH_SESSION_MODEL": str,
    "ENFORCE_SINGLE_SESSION": bool,
    "MAX_SESSIONS_PER_PRINCIPAL": (int, type(None)),
    "REVOKE_ALL_ON_REUSE": bool,
    "AUTH_HEADER_TYPES": (list, tuple),
    "AUTH_COOKIE_NAMES": (list, tuple),
    "JWT_ALGORITHM": str,
    "JWT_SIGNING_KEY": (str, bytes),
    "JWT_VERIFYING_KEY": (str, bytes, type(None)),
    "JWT_PREVIOUS_VERIFYING_KEYS": (list, tuple),
    "JWT_KEY_ID": (str, type(None)),
    "JWT_AUDIENCE": (str, type(None)),
    "JWT_ISSUER": (str, type(None)),
    "JWT_HEADERS": dict,
    "PRINCIPAL_ID_CLAIM": str,
    "SESSION_ID_CLAIM": str,
    "TOKEN_TYPE_CLAIM": str,
    "JTI_CLAIM": str,
}


class TokenAuthoritySettings:
    """
    Lazy settings container for the token authority.
    """

    __slots__ = ("_user_settings", "_cache")

    def __init__(self, user_settings=None):
        self._user_settings = user_settings or {}
        self._cache = {}
        self._validate_all()
        self._sync_swapper()

    def _get_setting(self, setting_name: str):
        return self._user_settings.get(setting_name, DEFAULTS[setting_name])

    def __getattr__(self, setting_name: str):
        if setting_name not in DEFAULTS:
            if setting_name in REMOVED_SETTINGS:
                raise AttributeError(_(f"'{setting_name}' has been removed."))
            raise AttributeError(_(f"Invalid setting: '{setting_name}'."))

        if setting_name in self._cache:
            return self._cache[setting_name]

        value = self._get_setting(setting_name)

        if setting_name in IMPORT_STRINGS and isinstance(value, str):
            value = self._import_from_string(setting_name, value)

        self._cache[setting_name] = value
        return value

    def _import_from_string(self, setting_name: str, path: str):
        try:
            value = import_string(path)
        except ImportError as exc:
            raise ImproperlyConfigured(
                _(f"Could not import '{path}' for '{setting_name}'.")
            ) from exc

        if not callable(value):
            raise ImproperlyConfigured(_(f"'{setting_name}' must be a callable."))
        return value

    @property
    def is_symmetric(self) -> bool:
        return self.JWT_ALGORITHM.startswith("HS")

    def _validate_all(self):
        self._validate_removed_settings()
        self._validate_primitive_types()
        self._validate_business_logic()

    def _validate_removed_settings(self):
        for setting_name in REMOVED_SETTINGS:
            if setting_name in self._user_settings:
                raise ImproperlyConfigured(
                    _(f"'{setting_name}' is no longer supported.")
                )

    def _validate_primitive_types(self):
        for setting_name, expected_types in TYPE_VALIDATORS.items():
            value = self._get_setting(setting_name)
            if not isinstance(value, expected_types):
                raise ImproperlyConfigured(_(f"'{setting_name}' has invalid type."))

    def _validate_business_logic(self):
        self._validate_ttl_settings()
        self._validate_session_limits()
        self._validate_jwt_algorithm()
        self._validate_asymmetric_keys()
        self._validate_previous_keys()
        self._validate_hooks()

    def _validate_ttl_settings(self):
        access_ttl = self._get_setting("ACCESS_TOKEN_TTL")
        refresh_ttl = self._get_setting("REFRESH_TOKEN_TTL")
        max_lifetime = self._get_setting("ROTATION_MAX_LIFETIME")

        if access_ttl <= timedelta(0):
            raise ImproperlyConfigured(_("ACCESS_TOKEN_TTL must be positive."))

        if refresh_ttl <= access_ttl:
            raise ImproperlyConfigured(
                _("REFRESH_TOKEN_TTL must exceed ACCESS_TOKEN_TTL.")
            )

        if max_lifetime is not None and max_lifetime <= refresh_ttl:
            raise ImproperlyConfigured(
                _("ROTATION_MAX_LIFETIME must exceed REFRESH_TOKEN_TTL.")
            )

        if self._get_setting("LEEWAY") < timedelta(0):
            raise ImproperlyConfigured(_("LEEWAY cannot be negative."))

    def _validate_session_limits(self):
        max_sessions = self._get_setting("MAX_SESSIONS_PER_PRINCIPAL")
        if max_sessions is not None and max_sessions < 1:
            raise ImproperlyConfigured(
                _("MAX_SESSIONS_PER_PRINCIPAL must be a positive integer.")
            )

    def _validate_jwt_algorithm(self):
        algo = self._get_setting("JWT_ALGORITHM")
        # RSA/EC algorithms only appear in the default set once 'cryptography'
        # is installed; the system check reports that case separately.
        known = set(jwt.algorithms.get_default_algorithms())
        known.update(jwt.algorithms.requires_cryptography)
        if algo not in known or algo == "none":
            raise ImproperlyConfigured(
                _(f"'{algo}' is an unsupported JWT algorithm.")
            )

    def _validate_asymmetric_keys(self):
        algo = self._get_setting("JWT_ALGORITHM")
        if not algo.startswith("HS"):
            if self._get_setting("JWT_VERIFYING_KEY") is None:
                raise ImproperlyConfigured(
                    _(
                        f"JWT_VERIFYING_KEY is required for asymmetric algorithm '{algo}'."
                    )
                )

    def _validate_previous_keys(self):
        for key in self._get_setting("JWT_PREVIOUS_VERIFYING_KEYS"):
            if not isinstance(key, (str, bytes)) or not key:
                raise ImproperlyConfigured(
                    _("JWT_PREVIOUS_VERIFYING_KEYS must contain non-empty keys.")
                )

    def _validate_hooks(self):
        # Class paths (store, clock, encoder) resolve lazily: they may point
        # back into this package, which is still importing at this point.
        for setting_name in HOOK_STRINGS:
            value = self._get_setting(setting_name)
            if isinstance(value, str):
                self._import_from_string(setting_name, value)
            elif value is not None and not callable(value):
                raise ImproperlyConfigured(_(f"'{setting_name}' must be a callable."))

    def _sync_swapper(self):
        model = self._get_setting("REFRESH_SESSION_MODEL")
        setattr(settings, "DRF_TOKEN_AUTHORITY_REFRESHSESSION_MODEL", model)

    def reload(self, new_user_settings=None):
        self._user_settings = new_user_settings or {}
        self._cache.clear()
        self._validate_all()
        self._sync_swapper()


authority_settings = TokenAuthoritySettings(
    getattr(settings, "DRF_TOKEN_AUTHORITY", None)
)


def reload_authority_settings(*args, **kwargs):
    if kwargs.get("setting") == "DRF_TOKEN_AUTHORITY":
        authority_settings.reload(kwargs.get("value"))


setting_changed.connect(reload_authority_settings)

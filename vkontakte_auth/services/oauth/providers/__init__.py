"""OAuth providers module."""
from .profile import parse_profile, profile_fields
from .vkontakte import CallbackShape, VerifyAdapter, VKontakteStrategy, resolve_options

__all__ = [
    "CallbackShape",
    "VKontakteStrategy",
    "VerifyAdapter",
    "parse_profile",
    "profile_fields",
    "resolve_options",
]

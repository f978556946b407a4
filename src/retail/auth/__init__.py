"""Authenticator factory.

Provides get_authenticator() / set_authenticator() to swap implementations.
The default is an empty StaticTokenAuthenticator, which rejects every token
until a deployment or test installs a real one.
"""

from retail.auth.port import Authenticator

_current_authenticator: Authenticator | None = None


def get_authenticator() -> Authenticator:
    """Return the current authenticator."""
    global _current_authenticator
    if _current_authenticator is None:
        from retail.auth.static_adapter import StaticTokenAuthenticator

        _current_authenticator = StaticTokenAuthenticator()
    return _current_authenticator


def set_authenticator(authenticator: Authenticator) -> None:
    """Override the active authenticator (useful for tests)."""
    global _current_authenticator
    _current_authenticator = authenticator


def reset_authenticator() -> None:
    """Reset to the default authenticator."""
    global _current_authenticator
    _current_authenticator = None

"""Token table authenticator for development and testing."""

from retail.auth.port import Authenticator, Principal


class StaticTokenAuthenticator(Authenticator):
    """Looks tokens up in a fixed mapping of token to ``Principal``."""

    def __init__(self, tokens: dict[str, Principal] | None = None) -> None:
        self.tokens: dict[str, Principal] = dict(tokens or {})

    def register(self, token: str, principal: Principal) -> None:
        self.tokens[token] = principal

    def authenticate(self, token: str) -> Principal | None:
        return self.tokens.get(token)

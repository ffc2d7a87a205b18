from __future__ import annotations

import os
from typing import Optional, Protocol


DEFAULT_TOKEN_ENV = "ZONE01_JWT"


class CredentialProvider(Protocol):
    """What the pipeline needs from the auth collaborator (read-only)."""

    def is_authenticated(self) -> bool: ...

    def get_token(self) -> Optional[str]: ...

    def logout(self) -> None: ...


class StaticCredentials:
    def __init__(self, token: Optional[str]) -> None:
        self._token = token.strip() if token else None

    def is_authenticated(self) -> bool:
        return bool(self._token)

    def get_token(self) -> Optional[str]:
        return self._token

    def logout(self) -> None:
        self._token = None


class EnvCredentials:
    """Bearer token taken from an environment variable at call time."""

    def __init__(self, var: str = DEFAULT_TOKEN_ENV) -> None:
        self.var = var
        self._logged_out = False

    def is_authenticated(self) -> bool:
        return self.get_token() is not None

    def get_token(self) -> Optional[str]:
        if self._logged_out:
            return None
        value = os.environ.get(self.var, "").strip()
        return value or None

    def logout(self) -> None:
        self._logged_out = True

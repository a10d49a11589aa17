"""Credentials and authentication modes for server requests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import aiohttp

from .errors import AuthUnavailable


class CredentialStore(Protocol):
    """Read-only lookups into persisted registration state.

    Each lookup returns None or raises LookupError when no registration
    exists yet.
    """

    def get_number(self) -> str | None: ...

    def get_device_id(self) -> int | str | None: ...

    def get_password(self) -> str | None: ...


@dataclass(frozen=True)
class CredentialPair:
    """Basic-auth identity and secret."""

    user: str
    password: str

    def authorization(self) -> str:
        """Return the Authorization header value."""
        return aiohttp.BasicAuth(self.user, self.password).encode()


@dataclass(frozen=True)
class NoAuth:
    """Send the request without credentials."""


@dataclass(frozen=True)
class ExplicitAuth:
    """Send caller-supplied credentials."""

    user: str
    password: str


@dataclass(frozen=True)
class DerivedAuth:
    """Derive credentials from the stored device registration."""


Auth = NoAuth | ExplicitAuth | DerivedAuth


@dataclass
class InMemoryCredentialStore:
    """Credential store backed by plain attributes."""

    number: str | None = None
    device_id: int | str | None = None
    password: str | None = None

    def get_number(self) -> str | None:
        return self.number

    def get_device_id(self) -> int | str | None:
        return self.device_id

    def get_password(self) -> str | None:
        return self.password


def derive_credentials(store: CredentialStore) -> CredentialPair:
    """Build `number.deviceId` / password credentials from the store.

    Raises:
        AuthUnavailable: If any part of the registration is missing.
    """
    try:
        number = store.get_number()
        device_id = store.get_device_id()
        password = store.get_password()
    except LookupError as err:
        raise AuthUnavailable("No stored registration to authenticate with") from err
    if not number or device_id is None or device_id == "" or not password:
        raise AuthUnavailable("No stored registration to authenticate with")
    return CredentialPair(f"{number}.{device_id}", password)


def resolve_auth(auth: Auth, store: CredentialStore | None) -> CredentialPair | None:
    """Resolve an authentication mode into concrete credentials."""
    if isinstance(auth, ExplicitAuth):
        return CredentialPair(auth.user, auth.password)
    if isinstance(auth, DerivedAuth):
        if store is None:
            raise AuthUnavailable("No credential store configured")
        return derive_credentials(store)
    return None

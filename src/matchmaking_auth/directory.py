"""Portal user model and in-memory user directory.

WARNING: InMemoryUserDirectory is for development and testing only; the
portal's data layer implements IUserDirectory in production.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .identifiers import normalize_email
from .ports import IUserDirectory

if TYPE_CHECKING:
    from datetime import datetime

    from .ports import OAuthUser, User


@dataclass
class PortalUser:
    """A matchmaking portal account.

    Attributes:
        id: Local user identifier.
        email: Normalized email address.
        name: Display name.
        blocked: Set by an administrator to lock the account out.
        last_login_at: Timestamp of the last completed authentication.
        provider: OAuth provider the account was last linked with.
        provider_id: Provider-side user id.
        avatar: Avatar URL shared by the provider.
        profile: Profile data synced from the external identity provider.
    """

    email: str
    name: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    blocked: bool = False
    last_login_at: datetime | None = None
    provider: str | None = None
    provider_id: str | None = None
    avatar: str | None = None
    profile: dict[str, Any] = field(default_factory=dict)

    def is_blocked(self) -> bool:
        return self.blocked


class InMemoryUserDirectory(IUserDirectory):
    """In-memory IUserDirectory keyed by normalized email.

    ⚠️ WARNING: For development and testing only.

    Example:
        ```python
        users = InMemoryUserDirectory()
        users.add(PortalUser(email="jane@example.com", name="Jane"))

        user = await users.find_by_email("jane@example.com")
        ```
    """

    def __init__(self, users: list[PortalUser] | None = None) -> None:
        self._users: dict[str, PortalUser] = {}
        for user in users or []:
            self.add(user)

    def add(self, user: PortalUser) -> PortalUser:
        """Register a user, normalizing its email."""
        user.email = normalize_email(user.email)
        self._users[user.email] = user
        return user

    async def find_by_email(self, email: str) -> PortalUser | None:
        return self._users.get(normalize_email(email))

    async def update_last_login(self, user: User, when: datetime) -> None:
        stored = self._users.get(normalize_email(user.email))
        if stored is not None:
            stored.last_login_at = when

    async def sync_profile(self, email: str, profile: dict[str, Any]) -> PortalUser:
        email = normalize_email(email)
        user = self._users.get(email)
        if user is None:
            user = self.add(PortalUser(email=email))
        user.name = profile.get("name") or user.name
        user.profile = dict(profile)
        return user

    async def upsert_oauth_user(
        self, provider_user: OAuthUser, provider: str
    ) -> PortalUser:
        if not provider_user.email:
            raise ValueError("OAuth user has no email")
        email = normalize_email(provider_user.email)
        user = self._users.get(email)
        if user is None:
            user = self.add(PortalUser(email=email))
        user.name = provider_user.name or user.name
        user.avatar = provider_user.avatar or user.avatar
        user.provider = provider
        user.provider_id = provider_user.id
        return user


__all__: list[str] = ["PortalUser", "InMemoryUserDirectory"]

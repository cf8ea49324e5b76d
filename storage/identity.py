"""User identity and storage key namespacing.

The dashboard has no opinion on how a user is authenticated; it only asks
an IdentityProvider for the current user id and uses it to suffix every
storage key so that each user's data is isolated.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

BACKUP_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class NamespaceStrategy(str, Enum):
    """How storage keys are derived from the current identity."""

    NONE = "none"  # shared, un-suffixed keys
    BY_USER_ID = "by_user_id"  # keys suffixed with the user id when one is set


class IdentityProvider:
    """Supplies the id of the user whose data is being accessed."""

    def current_user_id(self) -> Optional[str]:
        raise NotImplementedError


class StaticIdentity(IdentityProvider):
    """Identity fixed at construction, e.g. from a request header."""

    def __init__(self, user_id: Optional[str] = None) -> None:
        self.user_id = user_id or None

    def current_user_id(self) -> Optional[str]:
        return self.user_id


@dataclass(frozen=True)
class StorageKeys:
    """Resolved keys for one user namespace."""

    prefix: str
    user_id: Optional[str] = None

    def _key(self, base: str) -> str:
        if self.user_id:
            return f"{self.prefix}{base}_{self.user_id}"
        return f"{self.prefix}{base}"

    @property
    def daily_data(self) -> str:
        return self._key("daily_data")

    @property
    def manual_entries(self) -> str:
        return self._key("manual_entries")

    @property
    def settings(self) -> str:
        return self._key("settings")

    @property
    def last_backup(self) -> str:
        return self._key("last_backup")

    @property
    def backup_prefix(self) -> str:
        if self.user_id:
            return f"{self.prefix}backup_{self.user_id}_"
        return f"{self.prefix}backup_"

    def backup_key(self, day: str) -> str:
        """Snapshot key for a YYYY-MM-DD date."""
        return f"{self.backup_prefix}{day}"

    def backup_date(self, key: str) -> Optional[str]:
        """Date embedded in a snapshot key of this namespace, else None.

        Keys of other namespaces never match: the remainder after this
        namespace's prefix must be exactly a date.
        """
        if not key.startswith(self.backup_prefix):
            return None
        remainder = key[len(self.backup_prefix):]
        return remainder if BACKUP_DATE_PATTERN.match(remainder) else None

    def data_keys(self) -> List[str]:
        return [self.daily_data, self.manual_entries, self.settings, self.last_backup]


def resolve_storage_keys(
    prefix: str,
    strategy: NamespaceStrategy,
    identity: Optional[IdentityProvider] = None,
) -> StorageKeys:
    """Build the storage keys for the current identity.

    With BY_USER_ID and no active user, the un-suffixed keys are used so
    data written before user accounts existed stays readable.
    """
    user_id = None
    if NamespaceStrategy(strategy) == NamespaceStrategy.BY_USER_ID and identity is not None:
        user_id = identity.current_user_id()
    return StorageKeys(prefix=prefix, user_id=user_id)

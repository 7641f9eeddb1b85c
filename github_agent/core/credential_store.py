"""In-memory GitHub credential store."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

from .types import CredentialRecord

CREDENTIAL_MAX_AGE = timedelta(days=30)


class CredentialStore:
    """Map chat user ids to their GitHub credential.

    Records are never patched: ``put`` replaces a user's record wholesale, so
    the lock only has to serialise structural changes to the mapping.
    """

    def __init__(self) -> None:
        self._records: dict[str, CredentialRecord] = {}
        self._lock = asyncio.Lock()

    async def get(self, user_id: str) -> CredentialRecord | None:
        async with self._lock:
            return self._records.get(user_id)

    async def put(self, user_id: str, record: CredentialRecord) -> None:
        async with self._lock:
            self._records[user_id] = record

    async def delete(self, user_id: str) -> None:
        async with self._lock:
            self._records.pop(user_id, None)

    async def get_valid(self, user_id: str) -> CredentialRecord | None:
        """Return the user's record only while it is still usable."""

        record = await self.get(user_id)
        if record is None or not self.is_valid(record):
            return None
        return record

    @staticmethod
    def is_valid(record: CredentialRecord, now: datetime | None = None) -> bool:
        current = now or datetime.now(tz=timezone.utc)
        return current - record.obtained_at < CREDENTIAL_MAX_AGE

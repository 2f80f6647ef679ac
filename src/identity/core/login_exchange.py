"""One-time login codes bridging OAuth redirects to token retrieval.

The store is process-local and does not survive a restart; codes are
short-lived and a failed exchange simply means logging in again.
"""

import asyncio
import contextlib
from dataclasses import dataclass
from datetime import datetime, timedelta

from src.identity.core.logging import get_logger
from src.identity.core.security.crypto import generate_random_token
from src.identity.models import Account
from src.identity.models.base import utc_now
from src.identity.schemas.auth import TokenPair

logger = get_logger(__name__)

LOGIN_CODE_BYTES = 32


@dataclass(frozen=True)
class LoginExchangeRecord:
    account: Account
    tokens: TokenPair
    expires_at: datetime


class LoginExchangeStore:
    """Concurrency-safe map of login code -> (account, tokens).

    Expired entries are dropped lazily on lookup and by a periodic sweep
    started with ``start()`` and cancelled with ``stop()``.
    """

    def __init__(self, ttl: timedelta, sweep_interval: float = 60.0):
        self.ttl = ttl
        self.sweep_interval = sweep_interval
        self._records: dict[str, LoginExchangeRecord] = {}
        self._lock = asyncio.Lock()
        self._sweep_task: asyncio.Task[None] | None = None

    def __len__(self) -> int:
        return len(self._records)

    async def issue(self, account: Account, tokens: TokenPair, now: datetime | None = None) -> str:
        """Store a record under a fresh random code and return the code."""
        code = generate_random_token(LOGIN_CODE_BYTES)
        await self.set(code, account, tokens, now=now)
        return code

    async def set(
        self, code: str, account: Account, tokens: TokenPair, now: datetime | None = None
    ) -> None:
        expires_at = (now or utc_now()) + self.ttl
        async with self._lock:
            self._records[code] = LoginExchangeRecord(account, tokens, expires_at)

    async def get(self, code: str, now: datetime | None = None) -> LoginExchangeRecord | None:
        """Return the record if present and unexpired, dropping it if expired."""
        now = now or utc_now()
        async with self._lock:
            record = self._records.get(code)
            if record is None:
                return None
            if record.expires_at < now:
                del self._records[code]
                return None
            return record

    async def delete(self, code: str) -> None:
        async with self._lock:
            self._records.pop(code, None)

    async def consume(self, code: str, now: datetime | None = None) -> LoginExchangeRecord | None:
        """Lookup-then-delete in one critical section; a code works once."""
        now = now or utc_now()
        async with self._lock:
            record = self._records.pop(code, None)
        if record is None or record.expires_at < now:
            return None
        return record

    async def sweep(self, now: datetime | None = None) -> int:
        """Remove every expired record. Returns the number removed."""
        now = now or utc_now()
        async with self._lock:
            expired = [code for code, record in self._records.items() if record.expires_at < now]
            for code in expired:
                del self._records[code]
        if expired:
            logger.debug("Swept expired login codes", count=len(expired))
        return len(expired)

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                await self.sweep()
            except Exception as e:
                logger.error("Login code sweep failed", error=str(e))

    def start(self) -> None:
        """Start the periodic sweep task. Idempotent."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        task = self._sweep_task
        self._sweep_task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    @property
    def is_running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

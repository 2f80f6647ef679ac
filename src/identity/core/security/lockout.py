"""Account lockout policy.

Pure functions over an account's lockout state. The stored ``is_locked``
flag is never trusted on its own: an account is locked only while
``locked_until`` lies in the future.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta


@dataclass(frozen=True)
class LockoutState:
    """Failed-login bookkeeping for a single account."""

    is_locked: bool = False
    locked_until: datetime | None = None
    failed_attempt_count: int = 0


def is_locked(state: LockoutState, now: datetime) -> bool:
    """Return True while the lock is both flagged and unexpired."""
    return bool(state.is_locked and state.locked_until and state.locked_until > now)


def record_failed_attempt(
    state: LockoutState,
    max_attempts: int,
    lock_duration: timedelta,
    now: datetime,
) -> LockoutState:
    """Count one more failed attempt, locking once the threshold is reached."""
    attempts = state.failed_attempt_count + 1
    if attempts >= max_attempts:
        return LockoutState(
            is_locked=True,
            locked_until=now + lock_duration,
            failed_attempt_count=attempts,
        )
    return replace(state, is_locked=False, failed_attempt_count=attempts)


def reset_lockout() -> LockoutState:
    """Cleared state used after a successful login or password reset."""
    return LockoutState()

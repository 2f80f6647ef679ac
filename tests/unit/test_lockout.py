"""Property and example tests for the lockout policy."""

from datetime import datetime, timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st

from src.identity.core.security import (
    LockoutState,
    is_locked,
    record_failed_attempt,
    reset_lockout,
)

pytestmark = pytest.mark.unit

NOW = datetime(2026, 1, 1, 12, 0, 0)
LOCK = timedelta(minutes=15)

lockout_states = st.builds(
    LockoutState,
    is_locked=st.booleans(),
    locked_until=st.none()
    | st.datetimes(min_value=datetime(2025, 1, 1), max_value=datetime(2027, 1, 1)),
    failed_attempt_count=st.integers(min_value=0, max_value=50),
)


@given(state=lockout_states, max_attempts=st.integers(min_value=1, max_value=20))
def test_failed_attempt_increments_by_one(state: LockoutState, max_attempts: int):
    new_state = record_failed_attempt(state, max_attempts, LOCK, NOW)
    assert new_state.failed_attempt_count == state.failed_attempt_count + 1


@given(state=lockout_states, max_attempts=st.integers(min_value=1, max_value=20))
def test_locks_exactly_at_threshold(state: LockoutState, max_attempts: int):
    new_state = record_failed_attempt(state, max_attempts, LOCK, NOW)
    if new_state.failed_attempt_count >= max_attempts:
        assert new_state.is_locked
        assert new_state.locked_until == NOW + LOCK
        assert is_locked(new_state, NOW)
    else:
        assert not new_state.is_locked


@given(state=lockout_states)
def test_lock_requires_future_deadline(state: LockoutState):
    expected = state.is_locked and state.locked_until is not None and state.locked_until > NOW
    assert is_locked(state, NOW) == expected


def test_four_failures_stay_unlocked_fifth_locks():
    state = reset_lockout()
    for _ in range(4):
        state = record_failed_attempt(state, 5, LOCK, NOW)
    assert state.failed_attempt_count == 4
    assert not is_locked(state, NOW)

    state = record_failed_attempt(state, 5, LOCK, NOW)
    assert state.failed_attempt_count == 5
    assert is_locked(state, NOW)
    assert state.locked_until == NOW + LOCK


def test_lock_expires_without_reset():
    state = LockoutState(is_locked=True, locked_until=NOW + LOCK, failed_attempt_count=5)
    assert is_locked(state, NOW + LOCK - timedelta(seconds=1))
    assert not is_locked(state, NOW + LOCK)
    assert not is_locked(state, NOW + LOCK + timedelta(seconds=1))


def test_flag_without_deadline_is_not_locked():
    assert not is_locked(LockoutState(is_locked=True, locked_until=None), NOW)


def test_stale_lock_cleared_by_next_failure_below_threshold():
    # Expired lock, counter already reset externally
    state = LockoutState(is_locked=True, locked_until=NOW - LOCK, failed_attempt_count=0)
    new_state = record_failed_attempt(state, 5, LOCK, NOW)
    assert not new_state.is_locked
    assert new_state.failed_attempt_count == 1


def test_reset_clears_everything():
    assert reset_lockout() == LockoutState(
        is_locked=False, locked_until=None, failed_attempt_count=0
    )

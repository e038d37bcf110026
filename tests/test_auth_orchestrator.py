"""
Tests for the login state machine, validation, heartbeat and logout.
"""

from unittest.mock import AsyncMock

import pytest

from conftest import ADMIN_ID, ADMIN_PIN, CASHIER_ID, CASHIER_PIN, INACTIVE_ID
from posauth.modules.auth import (
    AuthErrorKind,
    AuthFailure,
    HeartbeatSuccess,
    LoginSuccess,
    LogoutSuccess,
    ValidateSuccess,
)


# =============================================================================
# Login
# =============================================================================


@pytest.mark.asyncio
async def test_login_success(orchestrator, store, clock):
    result = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG01")

    assert isinstance(result, LoginSuccess)
    assert result.success is True
    assert result.terminal == "REG01"
    assert result.login_time == clock()
    assert result.user.employee_id == CASHIER_ID
    assert result.user.first_name == "Carl"
    assert result.user.role == "cashier"
    assert result.user.terminal is None

    stored = await store.get(CASHIER_ID)
    assert stored.current_session_token == result.token
    assert stored.logged_in_terminal == "REG01"


@pytest.mark.asyncio
async def test_login_unknown_employee(orchestrator):
    result = await orchestrator.login("0000000", "1234", "REG01")

    assert isinstance(result, AuthFailure)
    assert result.kind == AuthErrorKind.EMPLOYEE_NOT_FOUND


@pytest.mark.asyncio
async def test_login_inactive_employee(orchestrator):
    result = await orchestrator.login(INACTIVE_ID, CASHIER_PIN, "REG01")
    assert result.kind == AuthErrorKind.EMPLOYEE_NOT_FOUND


@pytest.mark.asyncio
async def test_login_invalid_pin_counts_failure(orchestrator, store):
    result = await orchestrator.login(CASHIER_ID, "0000", "REG01")

    assert result.kind == AuthErrorKind.INVALID_PIN
    assert result.message == "Invalid PIN"
    assert (await store.get(CASHIER_ID)).failed_attempts == 1


@pytest.mark.asyncio
async def test_successful_login_resets_failed_attempts(orchestrator, store):
    await orchestrator.login(CASHIER_ID, "0000", "REG01")
    await orchestrator.login(CASHIER_ID, "0000", "REG01")

    result = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG01")

    assert isinstance(result, LoginSuccess)
    assert (await store.get(CASHIER_ID)).failed_attempts == 0


@pytest.mark.asyncio
async def test_lockout_after_four_failures(orchestrator, store, clock):
    for _ in range(4):
        result = await orchestrator.login(CASHIER_ID, "0000", "REG01")
        assert result.kind == AuthErrorKind.INVALID_PIN

    # Correct PIN is refused while locked
    result = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG01")
    assert result.kind == AuthErrorKind.ACCOUNT_LOCKED
    assert result.remaining_minutes == 15
    assert result.message == "Account locked for 15 more minutes"

    clock.advance(minutes=15, seconds=1)
    result = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG01")

    assert isinstance(result, LoginSuccess)
    stored = await store.get(CASHIER_ID)
    assert stored.failed_attempts == 0
    assert stored.locked_until is None


@pytest.mark.asyncio
async def test_locked_account_does_not_check_pin(orchestrator, store):
    for _ in range(4):
        await orchestrator.login(CASHIER_ID, "0000", "REG01")

    result = await orchestrator.login(CASHIER_ID, "0000", "REG01")

    assert result.kind == AuthErrorKind.ACCOUNT_LOCKED
    assert (await store.get(CASHIER_ID)).failed_attempts == 4


@pytest.mark.asyncio
async def test_admin_exempt_from_lockout(orchestrator, store):
    for _ in range(12):
        result = await orchestrator.login(ADMIN_ID, "0000", "REG01")
        assert result.kind == AuthErrorKind.INVALID_PIN

    result = await orchestrator.login(ADMIN_ID, ADMIN_PIN, "REG01")

    assert isinstance(result, LoginSuccess)
    assert (await store.get(ADMIN_ID)).locked_until is None


@pytest.mark.asyncio
async def test_same_terminal_relogin(orchestrator, store):
    first = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG01")
    second = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG01")

    assert isinstance(first, LoginSuccess)
    assert isinstance(second, LoginSuccess)
    assert second.token != first.token
    assert (await store.get(CASHIER_ID)).current_session_token == second.token


@pytest.mark.asyncio
async def test_live_session_on_other_terminal_conflicts(orchestrator, clock):
    await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG01")
    clock.advance(minutes=5)

    result = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG02")

    assert result.kind == AuthErrorKind.ALREADY_LOGGED_IN
    assert result.conflicting_terminal == "REG01"
    assert result.message == "Already logged into REG01"


@pytest.mark.asyncio
async def test_stale_session_is_taken_over(orchestrator, store, clock):
    first = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG01")
    clock.advance(minutes=6, seconds=1)

    result = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG02")

    assert isinstance(result, LoginSuccess)
    assert await store.find_by_token(first.token) is None
    assert (await store.get(CASHIER_ID)).logged_in_terminal == "REG02"


@pytest.mark.asyncio
async def test_heartbeat_keeps_session_blocking(orchestrator, clock):
    first = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG01")
    for _ in range(3):
        clock.advance(minutes=5)
        assert isinstance(await orchestrator.heartbeat(first.token), HeartbeatSuccess)

    result = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG02")

    assert result.kind == AuthErrorKind.ALREADY_LOGGED_IN


@pytest.mark.asyncio
async def test_end_to_end_terminal_handover(orchestrator, clock):
    """1234567 at REG01, blocked at REG02, then takes over after 7 idle minutes."""
    t1 = await orchestrator.login(ADMIN_ID, ADMIN_PIN, "REG01")
    assert isinstance(t1, LoginSuccess)

    clock.advance(minutes=3)
    blocked = await orchestrator.login(ADMIN_ID, ADMIN_PIN, "REG02")
    assert blocked.kind == AuthErrorKind.ALREADY_LOGGED_IN
    assert blocked.conflicting_terminal == "REG01"

    clock.advance(minutes=7)
    t2 = await orchestrator.login(ADMIN_ID, ADMIN_PIN, "REG02")
    assert isinstance(t2, LoginSuccess)
    assert t2.token != t1.token

    assert (await orchestrator.validate(t1.token)).kind == AuthErrorKind.SESSION_NOT_FOUND
    valid = await orchestrator.validate(t2.token)
    assert isinstance(valid, ValidateSuccess)
    assert valid.user.terminal == "REG02"


@pytest.mark.asyncio
async def test_store_error_becomes_authentication_error(orchestrator, store, caplog):
    store.get = AsyncMock(side_effect=ConnectionError("store down"))

    result = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG01")

    assert result.kind == AuthErrorKind.AUTHENTICATION_ERROR
    assert result.message == "Login system error"
    assert "store down" not in result.message
    assert "Authentication error" in caplog.text


@pytest.mark.asyncio
async def test_failed_attempt_survives_later_store_error(orchestrator, store):
    store.update_lockout = AsyncMock(side_effect=ConnectionError("store down"))

    await orchestrator.login(CASHIER_ID, "0000", "REG01")
    await orchestrator.login(CASHIER_ID, "0000", "REG01")
    await orchestrator.login(CASHIER_ID, "0000", "REG01")
    result = await orchestrator.login(CASHIER_ID, "0000", "REG01")

    # Fourth failure tries to write the lock and fails after the increment
    assert result.kind == AuthErrorKind.AUTHENTICATION_ERROR
    assert (await store.get(CASHIER_ID)).failed_attempts == 4


@pytest.mark.asyncio
async def test_login_retries_after_session_race(orchestrator, store):
    """A concurrent bind between read and write triggers a re-read."""
    real_cas = store.compare_and_set_session
    calls = {"count": 0}

    async def racing_cas(employee_id, expected_token, token, terminal, last_activity):
        calls["count"] += 1
        if calls["count"] == 1:
            # Another login on the same terminal wins first
            await real_cas(employee_id, expected_token, "intruder", "REG01", last_activity)
        return await real_cas(employee_id, expected_token, token, terminal, last_activity)

    store.compare_and_set_session = racing_cas

    result = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG01")

    assert isinstance(result, LoginSuccess)
    assert calls["count"] == 2
    assert (await store.get(CASHIER_ID)).current_session_token == result.token


@pytest.mark.asyncio
async def test_login_race_loses_to_live_session(orchestrator, store, clock):
    """A live session bound elsewhere during the race blocks the login."""
    real_cas = store.compare_and_set_session

    async def racing_cas(employee_id, expected_token, token, terminal, last_activity):
        if token != "other-terminal-token":
            await real_cas(employee_id, expected_token, "other-terminal-token", "REG04", clock())
        return await real_cas(employee_id, expected_token, token, terminal, last_activity)

    store.compare_and_set_session = racing_cas

    result = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG01")

    assert result.kind == AuthErrorKind.ALREADY_LOGGED_IN
    assert result.conflicting_terminal == "REG04"


# =============================================================================
# Validate
# =============================================================================


@pytest.mark.asyncio
async def test_validate_live_session(orchestrator, store, clock):
    login = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG03")
    later = clock.advance(minutes=4)

    result = await orchestrator.validate(login.token)

    assert isinstance(result, ValidateSuccess)
    assert result.user.employee_id == CASHIER_ID
    assert result.user.terminal == "REG03"
    assert (await store.get(CASHIER_ID)).last_activity == later


@pytest.mark.asyncio
async def test_validate_unknown_token(orchestrator):
    result = await orchestrator.validate("nope")
    assert result.kind == AuthErrorKind.SESSION_NOT_FOUND


@pytest.mark.asyncio
async def test_validate_expired_session_clears_it(orchestrator, store, clock):
    login = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG01")
    clock.advance(minutes=7)

    result = await orchestrator.validate(login.token)

    assert result.kind == AuthErrorKind.SESSION_EXPIRED
    stored = await store.get(CASHIER_ID)
    assert stored.current_session_token is None
    assert stored.logged_in_terminal is None
    assert stored.last_activity is None

    # Account is now free for any terminal
    assert isinstance(await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG02"), LoginSuccess)


@pytest.mark.asyncio
async def test_validate_store_error(orchestrator, store):
    store.find_by_token = AsyncMock(side_effect=ConnectionError("store down"))

    result = await orchestrator.validate("token")

    assert result.kind == AuthErrorKind.AUTHENTICATION_ERROR


# =============================================================================
# Heartbeat
# =============================================================================


@pytest.mark.asyncio
async def test_heartbeat_refreshes_activity(orchestrator, store, clock):
    login = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG01")
    later = clock.advance(minutes=5)

    result = await orchestrator.heartbeat(login.token)

    assert isinstance(result, HeartbeatSuccess)
    assert result.timestamp == later
    assert (await store.get(CASHIER_ID)).last_activity == later


@pytest.mark.asyncio
async def test_heartbeat_unknown_token(orchestrator):
    result = await orchestrator.heartbeat("nope")
    assert result.kind == AuthErrorKind.SESSION_NOT_FOUND


@pytest.mark.asyncio
async def test_heartbeat_store_error_is_reported(orchestrator, store, caplog):
    store.touch = AsyncMock(side_effect=ConnectionError("store down"))

    result = await orchestrator.heartbeat("token")

    assert result.kind == AuthErrorKind.AUTHENTICATION_ERROR
    assert "Heartbeat error" in caplog.text


# =============================================================================
# Logout
# =============================================================================


@pytest.mark.asyncio
async def test_logout_clears_session(orchestrator, store):
    login = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG01")

    result = await orchestrator.logout(login.token)

    assert isinstance(result, LogoutSuccess)
    assert (await store.get(CASHIER_ID)).current_session_token is None
    assert (await orchestrator.validate(login.token)).kind == AuthErrorKind.SESSION_NOT_FOUND


@pytest.mark.asyncio
async def test_logout_is_idempotent(orchestrator, store):
    login = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG01")

    assert isinstance(await orchestrator.logout(login.token), LogoutSuccess)
    before = await store.get(CASHIER_ID)
    assert isinstance(await orchestrator.logout(login.token), LogoutSuccess)
    assert await store.get(CASHIER_ID) == before

    assert isinstance(await orchestrator.logout("never-issued"), LogoutSuccess)


@pytest.mark.asyncio
async def test_logout_frees_account_for_other_terminal(orchestrator):
    login = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG01")
    await orchestrator.logout(login.token)

    result = await orchestrator.login(CASHIER_ID, CASHIER_PIN, "REG02")

    assert isinstance(result, LoginSuccess)


@pytest.mark.asyncio
async def test_logout_store_error(orchestrator, store):
    store.find_by_token = AsyncMock(side_effect=ConnectionError("store down"))

    result = await orchestrator.logout("token")

    assert result.kind == AuthErrorKind.AUTHENTICATION_ERROR

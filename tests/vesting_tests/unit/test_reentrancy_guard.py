import pytest

from vesting_ledger.core.exceptions import ReentrancyError
from vesting_ledger.core.reentrancy import ReentrancyGuard


def test_guard_is_released_after_block():
    guard = ReentrancyGuard()
    with guard.enter("deposit"):
        assert guard.locked
        assert guard.active_operation == "deposit"
    assert not guard.locked
    assert guard.active_operation is None


def test_nested_entry_is_rejected():
    guard = ReentrancyGuard()
    with guard.enter("redeem"):
        with pytest.raises(ReentrancyError) as exc_info:
            with guard.enter("redeem"):
                pass
        assert guard.active_operation == "redeem"

    assert exc_info.value.active == "redeem"
    assert exc_info.value.attempted == "redeem"
    assert exc_info.value.recoverable is True


def test_guard_is_released_when_block_raises():
    guard = ReentrancyGuard()
    with pytest.raises(RuntimeError):
        with guard.enter("create_schedule"):
            raise RuntimeError("boom")
    assert not guard.locked

    with guard.enter("deposit"):
        pass

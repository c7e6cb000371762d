import pytest

from vesting_ledger.core.config import VaultSettings
from vesting_ledger.core.contracts import ERC20Factory, LinearVestingVault

BASE_TIME = 1625097600
INITIAL_SUPPLY = 1_000_000


class ManualClock:
    def __init__(self, start_time: int):
        self.current_time = start_time

    def now(self) -> int:
        return self.current_time

    def set(self, timestamp: int) -> None:
        self.current_time = timestamp

    def advance(self, seconds: int) -> None:
        self.current_time += seconds


@pytest.fixture
def owner():
    return "0x" + "a1" * 20


@pytest.fixture
def alice():
    return "0x" + "b2" * 20


@pytest.fixture
def bob():
    return "0x" + "c3" * 20


@pytest.fixture
def clock():
    return ManualClock(BASE_TIME)


@pytest.fixture
def factory():
    return ERC20Factory()


@pytest.fixture
def token(factory, owner):
    """Test token with the whole supply held by owner."""
    return factory.create_token(owner, "Test Token", "TT", initial_supply=INITIAL_SUPPLY)


@pytest.fixture
def vault(factory, clock):
    return LinearVestingVault(factory, time_provider=clock.now, settings=VaultSettings())


@pytest.fixture
def funded_vault(vault, token, owner):
    """Vault where owner has deposited 1000 TT."""
    token.approve(owner, vault.address, 1000)
    vault.deposit(owner, token.address, 1000)
    return vault

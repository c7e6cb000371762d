"""
Property-based tests for vesting invariants.

- unlocked amount is bounded by the total and non-decreasing in time
- redemptions at increasing checkpoints release exactly the schedule total
- ledger balances and vault custody stay consistent across random
  deposit / create / redeem / time-travel sequences

Uses Hypothesis for property-based testing with random inputs.
"""

from hypothesis import assume, given, settings, strategies as st
from hypothesis.stateful import RuleBasedStateMachine, invariant, precondition, rule

from vesting_ledger.core.contracts import (
    ERC20Factory,
    LinearVestingVault,
    VestingSchedule,
    redeemable_amount,
    unlocked_amount,
)
from vesting_ledger.core.exceptions import InsufficientFundsError

START = 1_700_000_000

amounts = st.integers(min_value=1, max_value=10**30)
durations = st.integers(min_value=1, max_value=10**9)
offsets = st.integers(min_value=-(10**6), max_value=2 * 10**9)


def make_schedule(amount_total, duration, redeemed=0):
    return VestingSchedule(
        schedule_id=0,
        token="0x" + "aa" * 20,
        beneficiary="0x" + "bb" * 20,
        start=START,
        duration=duration,
        amount_total=amount_total,
        redeemed=redeemed,
    )


class TestUnlockProperties:
    @given(amount=amounts, duration=durations, t1=offsets, t2=offsets)
    @settings(max_examples=200)
    def test_unlocked_is_monotonic_and_bounded(self, amount, duration, t1, t2):
        assume(t1 <= t2)
        schedule = make_schedule(amount, duration)

        early = unlocked_amount(schedule, START + t1)
        late = unlocked_amount(schedule, START + t2)

        assert 0 <= early <= late <= amount

    @given(amount=amounts, duration=durations, offset=st.integers(min_value=0, max_value=10**9))
    def test_fully_vested_at_and_after_end(self, amount, duration, offset):
        schedule = make_schedule(amount, duration)
        assert unlocked_amount(schedule, START + duration + offset) == amount

    @given(amount=amounts, duration=durations, elapsed=st.integers(min_value=0, max_value=10**9))
    def test_never_rounds_up(self, amount, duration, elapsed):
        assume(elapsed < duration)
        schedule = make_schedule(amount, duration)
        unlocked = unlocked_amount(schedule, START + elapsed)
        assert unlocked * duration <= amount * elapsed

    @given(
        amount=amounts,
        duration=durations,
        checkpoints=st.lists(st.integers(min_value=0, max_value=2 * 10**9), max_size=20),
    )
    def test_redemptions_across_checkpoints_sum_to_total(self, amount, duration, checkpoints):
        schedule = make_schedule(amount, duration)
        released = 0
        for t in sorted(checkpoints) + [duration]:
            step = redeemable_amount(schedule, START + t)
            assert step >= 0
            released += step
            schedule = make_schedule(amount, duration, redeemed=schedule.redeemed + step)
            assert schedule.redeemed <= amount

        assert released == amount


DEPOSITORS = ["0x" + "10" * 20, "0x" + "11" * 20]
BENEFICIARIES = ["0x" + "20" * 20, "0x" + "21" * 20]


class VaultStateMachine(RuleBasedStateMachine):
    """Random sequences of vault operations keep ledger and custody consistent."""

    def __init__(self):
        super().__init__()
        self.now = START
        self.factory = ERC20Factory()
        self.token = self.factory.create_token(DEPOSITORS[0], "Prop Token", "PT", initial_supply=0)
        for depositor in DEPOSITORS:
            self.token.mint(DEPOSITORS[0], depositor, 10**12)
        self.vault = LinearVestingVault(self.factory, time_provider=lambda: self.now)
        self.deposited = 0
        self.committed = 0
        self.released = 0
        self.last_redeemed: dict[int, int] = {}

    @rule(depositor=st.sampled_from(DEPOSITORS), amount=st.integers(min_value=1, max_value=10**6))
    def deposit(self, depositor, amount):
        before = self.vault.get_available_balance(depositor, self.token.address)
        self.token.approve(depositor, self.vault.address, amount)
        self.vault.deposit(depositor, self.token.address, amount)
        assert self.vault.get_available_balance(depositor, self.token.address) == before + amount
        self.deposited += amount

    @rule(
        depositor=st.sampled_from(DEPOSITORS),
        beneficiary=st.sampled_from(BENEFICIARIES),
        amount=st.integers(min_value=1, max_value=2 * 10**6),
        duration=st.integers(min_value=1, max_value=10**5),
    )
    def create_schedule(self, depositor, beneficiary, amount, duration):
        available = self.vault.get_available_balance(depositor, self.token.address)
        count = self.vault.current_schedule_count()
        try:
            schedule_id = self.vault.create_schedule(depositor, self.token.address, beneficiary, amount, duration)
        except InsufficientFundsError:
            assert amount > available
            assert self.vault.get_available_balance(depositor, self.token.address) == available
            assert self.vault.current_schedule_count() == count
            return
        assert schedule_id == count
        assert self.vault.get_schedule(schedule_id).start == self.now
        self.committed += amount
        self.last_redeemed[schedule_id] = 0

    @rule(seconds=st.integers(min_value=0, max_value=10**5))
    def advance_time(self, seconds):
        self.now += seconds

    @precondition(lambda self: self.vault.current_schedule_count() > 0)
    @rule(data=st.data())
    def redeem(self, data):
        schedule_id = data.draw(st.integers(min_value=0, max_value=self.vault.current_schedule_count() - 1))
        schedule = self.vault.get_schedule(schedule_id)
        expected = self.vault.get_redeemable_amount(schedule_id)
        balance_before = self.token.balance_of(schedule.beneficiary)

        released = self.vault.redeem(schedule.beneficiary, schedule_id)

        assert released == expected
        assert self.token.balance_of(schedule.beneficiary) == balance_before + released
        self.released += released

    @invariant()
    def custody_matches_books(self):
        uncommitted = self.vault.ledger.total_for_token(self.token.address)
        assert uncommitted == self.deposited - self.committed
        assert self.token.balance_of(self.vault.address) == self.deposited - self.released

    @invariant()
    def redeemed_is_bounded_and_monotonic(self):
        for schedule_id, schedule in self.vault.schedules.items():
            assert 0 <= schedule.redeemed <= schedule.amount_total
            assert schedule.redeemed >= self.last_redeemed[schedule_id]
            self.last_redeemed[schedule_id] = schedule.redeemed

    @invariant()
    def vault_is_unlocked_between_calls(self):
        assert not self.vault.locked


TestVaultStateMachine = VaultStateMachine.TestCase
TestVaultStateMachine.settings = settings(max_examples=50, stateful_step_count=30, deadline=None)

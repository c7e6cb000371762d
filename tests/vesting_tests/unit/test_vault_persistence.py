import json

from vesting_ledger.core.contracts import LinearVestingVault


def test_vault_round_trip_through_json(funded_vault, factory, token, owner, alice, clock):
    first = funded_vault.create_schedule(owner, token.address, alice, 100, 1000)
    second = funded_vault.create_schedule(owner, token.address, alice, 300, 3000)
    clock.advance(500)
    funded_vault.redeem(alice, first)

    payload = json.loads(json.dumps(funded_vault.to_dict()))
    restored = LinearVestingVault.from_dict(payload, factory, time_provider=clock.now)

    assert restored.address == funded_vault.address
    assert restored.current_schedule_count() == 2
    assert restored.get_schedule(first) == funded_vault.get_schedule(first)
    assert restored.get_schedule(second) == funded_vault.get_schedule(second)
    assert restored.get_available_balance(owner, token.address) == 600
    assert restored.events == funded_vault.events

    clock.advance(500)
    assert restored.redeem(alice, first) == 50
    assert restored.create_schedule(owner, token.address, alice, 100, 1000) == 2


def test_counter_never_reuses_restored_ids(factory, clock):
    data = {
        "address": "0x" + "de" * 20,
        "next_schedule_id": 0,
        "schedules": [
            {
                "schedule_id": 4,
                "token": "0x" + "aa" * 20,
                "beneficiary": "0x" + "bb" * 20,
                "start": 1,
                "duration": 10,
                "amount_total": 10,
                "redeemed": 0,
                "depositor": "0x" + "cc" * 20,
            }
        ],
    }
    restored = LinearVestingVault.from_dict(data, factory, time_provider=clock.now)
    assert restored.current_schedule_count() == 5

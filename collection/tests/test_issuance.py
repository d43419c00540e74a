from __future__ import annotations

import pytest

from collection.errors import (
    EmptyBatch,
    InvalidAddress,
    InvalidArgument,
    SupplyExhausted,
    Unauthorized,
)
from collection.types import ZERO_ADDRESS, BatchIssued, Issued

from .conftest import ADMIN, ALICE, BOB, CAROL, MALLORY


def test_issue_one_assigns_sequential_ids(registry, events):
    assert registry.issue_one(ADMIN, ALICE) == 1
    assert registry.issue_one(ADMIN, BOB) == 2
    assert registry.issued == 2
    assert registry.owner_of(1) == ALICE
    assert registry.owner_of(2) == BOB
    assert events.events == [Issued(ALICE, 1), Issued(BOB, 2)]


def test_issue_one_normalizes_recipient(registry):
    token_id = registry.issue_one(ADMIN.upper().replace("0X", "0x"), bytes.fromhex(ALICE[2:]))
    assert registry.owner_of(token_id) == ALICE


def test_issue_batch_assigns_in_input_order(registry, events):
    last = registry.issue_batch(ADMIN, [ALICE, BOB, CAROL])

    assert last == 3
    assert [registry.owner_of(i) for i in (1, 2, 3)] == [ALICE, BOB, CAROL]
    assert events.events == [BatchIssued(recipients=(ALICE, BOB, CAROL), start_id=1, count=3)]
    assert events.events[0].to_payload() == {
        "recipients": [ALICE, BOB, CAROL],
        "startId": 1,
        "count": 3,
    }


def test_batch_continues_after_single(registry, events):
    registry.issue_one(ADMIN, ALICE)
    last = registry.issue_batch(ADMIN, [BOB, BOB])
    assert last == 3
    assert events.events[-1] == BatchIssued((BOB, BOB), 2, 2)
    assert registry.balance_of(BOB) == 2


def test_issue_one_at_capacity_fails_without_change(make_registry, events):
    reg = make_registry(max_supply=2)
    reg.issue_batch(ADMIN, [ALICE, BOB])
    events.clear()

    with pytest.raises(SupplyExhausted) as ei:
        reg.issue_one(ADMIN, CAROL)

    assert ei.value.context == {"issued": 2, "requested": 1, "max_supply": 2}
    assert reg.issued == 2
    assert reg.balance_of(CAROL) == 0
    assert len(events) == 0


def test_batch_exceeding_capacity_issues_nothing(make_registry, events):
    reg = make_registry(max_supply=3)
    reg.issue_one(ADMIN, ALICE)
    events.clear()

    with pytest.raises(SupplyExhausted):
        reg.issue_batch(ADMIN, [BOB, CAROL, MALLORY])

    assert reg.issued == 1
    assert reg.balance_of(BOB) == 0
    assert not reg.exists(2)
    assert len(events) == 0


def test_batch_filling_exactly_to_capacity(make_registry):
    reg = make_registry(max_supply=3)
    assert reg.issue_batch(ADMIN, [ALICE, BOB, CAROL]) == 3
    assert reg.remaining_supply() == 0
    with pytest.raises(SupplyExhausted):
        reg.issue_batch(ADMIN, [ALICE])


@pytest.mark.parametrize("issued_first", [0, 10])
def test_empty_batch_rejected_regardless_of_capacity(registry, issued_first):
    if issued_first:
        registry.issue_batch(ADMIN, [ALICE] * issued_first)
    with pytest.raises(EmptyBatch):
        registry.issue_batch(ADMIN, [])
    assert registry.issued == issued_first


def test_batch_with_bad_recipient_is_all_or_nothing(registry, events):
    with pytest.raises(InvalidAddress):
        registry.issue_batch(ADMIN, [ALICE, "not-an-address", BOB])
    with pytest.raises(InvalidAddress):
        registry.issue_batch(ADMIN, [ALICE, ZERO_ADDRESS])
    assert registry.issued == 0
    assert registry.balance_of(ALICE) == 0
    assert len(events) == 0


def test_batch_rejects_bare_string(registry):
    with pytest.raises(InvalidArgument):
        registry.issue_batch(ADMIN, ALICE)


def test_zero_address_recipient_rejected(registry):
    with pytest.raises(InvalidAddress):
        registry.issue_one(ADMIN, ZERO_ADDRESS)
    assert registry.issued == 0


@pytest.mark.parametrize(
    "call",
    [
        lambda reg: reg.issue_one(MALLORY, MALLORY),
        lambda reg: reg.issue_batch(MALLORY, [MALLORY]),
        lambda reg: reg.issue_batch(MALLORY, []),
    ],
)
def test_non_owner_issuance_is_unauthorized(registry, events, call):
    with pytest.raises(Unauthorized):
        call(registry)
    assert registry.issued == 0
    assert len(events) == 0


def test_exists_bounds(registry):
    assert not registry.exists(0)
    assert not registry.exists(1)
    registry.issue_batch(ADMIN, [ALICE, BOB])
    assert not registry.exists(0)
    assert registry.exists(1)
    assert registry.exists(2)
    assert not registry.exists(3)
    assert not registry.exists(-1)
    assert not registry.exists("1")
    assert not registry.exists(True)


def test_exists_is_stable_without_mutation(registry):
    registry.issue_one(ADMIN, ALICE)
    first = [registry.exists(i) for i in range(0, 5)]
    assert all([registry.exists(i) for i in range(0, 5)] == first for _ in range(3))


def test_rejections_are_counted(registry, prom_registry):
    with pytest.raises(Unauthorized):
        registry.issue_one(MALLORY, ALICE)
    with pytest.raises(EmptyBatch):
        registry.issue_batch(ADMIN, [])
    registry.issue_batch(ADMIN, [ALICE, BOB])

    def sample(name, **labels):
        return prom_registry.get_sample_value(f"animica_collection_{name}", labels)

    assert sample("rejections_total", reason="unauthorized") == 1.0
    assert sample("rejections_total", reason="empty_batch") == 1.0
    assert sample("issued_tokens_total") == 2.0
    assert sample("issuance_calls_total", kind="batch") == 1.0
    assert sample("issued_supply") == 2.0
    assert sample("max_supply") == 10.0


def test_record_issue_rejects_unknown_kind(metrics, prom_registry):
    with pytest.raises(ValueError):
        metrics.record_issue("bulk", 3)
    assert prom_registry.get_sample_value("animica_collection_issued_tokens_total") == 0.0

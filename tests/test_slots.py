from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from core.ads import slots
from core.errors import InvalidPosition

T0 = datetime(2024, 1, 8, 9, 0, tzinfo=timezone.utc)


def _bid(bid_id, amount, minutes=0, **extra):
    row = {
        "id": bid_id,
        "listing_id": 100 + bid_id,
        "user_id": 10 + bid_id,
        "weekly_bid_amount": Decimal(str(amount)),
        "created_at": T0 + timedelta(minutes=minutes),
        "listing_title": f"Shop {bid_id}",
    }
    row.update(extra)
    return row


def test_rank_bids_orders_by_amount_then_age_then_id():
    bids = [
        _bid(1, 10, minutes=5),
        _bid(2, 20, minutes=9),
        _bid(3, 10, minutes=1),
        _bid(5, 10, minutes=5),
        _bid(4, 10, minutes=5),
    ]
    ranked = slots.rank_bids(bids)
    assert [b["id"] for b in ranked] == [2, 3, 1, 4, 5]
    assert [b["current_position"] for b in ranked] == [1, 2, 3, 4, 5]


def test_rank_bids_does_not_mutate_input():
    bids = [_bid(1, 10)]
    slots.rank_bids(bids)
    assert "current_position" not in bids[0]


def test_rank_bids_empty():
    assert slots.rank_bids([]) == []


def test_build_slots_prices_bumps_and_vacancies():
    ranked = slots.rank_bids([_bid(1, 10), _bid(2, 5, minutes=1)])
    built = slots.build_slots(ranked)

    assert len(built) == 5
    first, second, third = built[0], built[1], built[2]
    assert not first["is_available"]
    assert first["bump_price"] == Decimal("15.00")
    assert first["current_occupant"]["listing_id"] == 101
    assert first["current_occupant"]["weekly_price"] == Decimal("10.00")
    assert second["bump_price"] == Decimal("10.00")
    # Vacant slots cost base + increment per occupied slot.
    assert third["is_available"]
    assert third["current_occupant"] is None
    assert third["bump_price"] == Decimal("15.00")
    assert [s["position_name"] for s in built] == ["Row 1", "Row 2", "Row 3", "Row 4", "Row 5"]


def test_build_slots_empty_market_is_base_rate():
    built = slots.build_slots([])
    assert all(s["is_available"] for s in built)
    assert {s["bump_price"] for s in built} == {Decimal("5.00")}


def test_build_slots_ignores_ranks_past_last_slot():
    ranked = slots.rank_bids([_bid(i, 5 + i) for i in range(1, 8)])
    built = slots.build_slots(ranked)
    assert [s["current_occupant"]["bid_id"] for s in built] == [7, 6, 5, 4, 3]


def test_slot_summary_partial_market():
    built = slots.build_slots(slots.rank_bids([_bid(1, 10), _bid(2, 5, minutes=1)]))
    summary = slots.slot_summary(built)
    assert summary["total_slots"] == 5
    assert summary["available_slots"] == 3
    assert summary["occupied_slots"] == 2
    assert summary["lowest_available_position"] == 3
    assert summary["highest_bump_position"] == 1
    assert summary["current_market_rate"] == Decimal("15.00")


def test_slot_summary_full_market_uses_cheapest_bump():
    built = slots.build_slots(slots.rank_bids([_bid(i, 5 * i) for i in range(1, 6)]))
    summary = slots.slot_summary(built)
    assert summary["available_slots"] == 0
    assert summary["lowest_available_position"] is None
    assert summary["current_market_rate"] == Decimal("10.00")


def test_quote_slot():
    built = slots.build_slots(slots.rank_bids([_bid(1, 10)]))
    top = slots.quote_slot(built, 1)
    assert top == {"position": 1, "is_bump": True, "weekly_price": Decimal("15.00"), "currency": "usd"}
    vacant = slots.quote_slot(built, "3")
    assert vacant["is_bump"] is False
    assert vacant["weekly_price"] == Decimal("10.00")


@pytest.mark.parametrize("position", [0, 6, -1, None, "top"])
def test_quote_slot_rejects_positions_outside_row(position):
    with pytest.raises(InvalidPosition):
        slots.quote_slot(slots.build_slots([]), position)

from datetime import datetime, timezone
from decimal import Decimal
from random import Random

from domain.transactions import TransactionKind
from tests.helpers.time_utils import TimeGenerator, make_transaction


def test_time_generator_increases_with_seed() -> None:
    rng = Random(42)
    gen = TimeGenerator(_rng=rng)

    ts1 = gen()
    ts2 = gen()
    ts3 = gen()

    assert ts1 < ts2 < ts3
    gaps = [(ts2 - ts1).total_seconds(), (ts3 - ts2).total_seconds()]
    for gap in gaps:
        assert 5 <= gap <= 60

    # Deterministic given the same seed
    gen_again = TimeGenerator(_rng=Random(42))
    ts1_b, ts2_b, ts3_b = gen_again(), gen_again(), gen_again()
    gaps_b = [(ts2_b - ts1_b).total_seconds(), (ts3_b - ts2_b).total_seconds()]
    assert gaps == gaps_b


def test_make_transaction_uses_generator_when_timestamp_missing() -> None:
    gen = TimeGenerator(_rng=Random(1))

    tx1 = make_transaction(kind=TransactionKind.SPOT_BUY, ts_gen=gen)
    tx2 = make_transaction(kind=TransactionKind.SPOT_BUY, ts_gen=gen)

    assert tx1.timestamp < tx2.timestamp
    assert tx1.timestamp.tzinfo == timezone.utc
    assert tx1.id != tx2.id


def test_make_transaction_respects_provided_timestamp() -> None:
    explicit_ts = datetime(2024, 2, 1, tzinfo=timezone.utc)

    tx = make_transaction(kind=TransactionKind.SPOT_BUY, timestamp=explicit_ts)

    assert tx.timestamp == explicit_ts


def test_make_transaction_defaults_total_to_quantity_times_price() -> None:
    tx = make_transaction(kind=TransactionKind.SPOT_SELL, quantity="0.5", price="30000")

    assert tx.total_fiat == Decimal("15000")


def test_default_generator_is_reset_between_tests() -> None:
    # After the autouse reset, we should start from the same baseline.
    first = make_transaction(kind=TransactionKind.SPOT_BUY)
    second = make_transaction(kind=TransactionKind.SPOT_BUY)

    assert first.timestamp < second.timestamp
    assert first.timestamp < datetime(2024, 1, 1, 0, 2, tzinfo=timezone.utc)

"""Integration tests for ingestion: deduplication, throttling and size limits."""

from datetime import timedelta

import pytest

from cliphistory.core.storage import StorageContainer, StorageError, StorageQuery, TextValue
from cliphistory.core.storage.container import calculate_hash, should_append_recent
from cliphistory.core.storage.database import ContentRecordDB, RecencyEntryDB


def count_rows(store: StorageContainer, model) -> int:
    with store.get_session() as session:
        return session.query(model).count()


def test_identical_text_is_stored_once(store, config) -> None:
    """
    INVARIANT: One content record per distinct payload
    BREAKS: Repeated copies grow the database without bound
    """
    store.add_text("copy me", None, config)
    size_after_one = store.compute_total_size()

    for _ in range(5):
        store.add_text("copy me", None, config)

    assert count_rows(store, ContentRecordDB) == 1
    assert store.compute_total_size() == size_after_one == len(b"copy me")


def test_reingesting_resolves_to_same_record(store, config, add_texts) -> None:
    """Byte-identical payloads always map onto the same content id."""
    store.add_text("stable", None, config)
    first_id = store.query(StorageQuery.recent(1))[0].data_id

    add_texts("other", 3)
    store.add_text("stable", None, config)

    with store.get_session() as session:
        record_id = session.query(ContentRecordDB.id).filter_by(hash=calculate_hash(b"stable")).scalar()

    assert record_id == first_id


def test_repeat_copy_within_an_hour_adds_no_recent_entry(store, config, clock) -> None:
    """A quick re-copy is absorbed by the existing recent entry."""
    store.add_text("loop", None, config)
    clock.advance_minutes(5)
    store.add_text("loop", None, config)

    assert count_rows(store, RecencyEntryDB) == 1


def test_repeat_copy_after_hour_and_activity_adds_one_entry(store, config, clock, add_texts) -> None:
    """
    INVARIANT: Aged-out content re-copied after enough activity returns to the top
    BREAKS: Revisited items stay buried in the recent list
    """
    store.add_text("revisited", None, config)
    add_texts("filler", 30)
    clock.advance_minutes(61)

    store.add_text("revisited", None, config)

    assert count_rows(store, RecencyEntryDB) == 32
    newest = store.query(StorageQuery.recent(1))[0]
    assert newest.value == TextValue("revisited")


@pytest.mark.parametrize(
    "elapsed, expected_rows",
    [
        (timedelta(minutes=60), 31),
        (timedelta(minutes=60, seconds=30), 31),
        (timedelta(minutes=60, seconds=59, milliseconds=999), 31),
        (timedelta(minutes=61), 32),
    ],
)
def test_elapsed_time_counts_whole_minutes(store, config, clock, add_texts, elapsed, expected_rows) -> None:
    """
    INVARIANT: Only a re-copy 61 or more whole minutes later is bumped
    BREAKS: Items copied just past the hour jump to the top of the list
    """
    first_seen = clock.now
    store.add_text("edge", None, config)
    add_texts("filler", 30)

    clock.now = first_seen + int(elapsed.total_seconds() * 1000)
    store.add_text("edge", None, config)

    assert count_rows(store, RecencyEntryDB) == expected_rows


def test_old_copy_without_enough_activity_is_absorbed(store, config, clock, add_texts) -> None:
    """More than an hour alone is not enough; 30 other copies are required."""
    store.add_text("quiet", None, config)
    add_texts("filler", 29)
    clock.advance_minutes(120)

    store.add_text("quiet", None, config)

    assert count_rows(store, RecencyEntryDB) == 30


def test_busy_copy_within_hour_is_absorbed(store, config, add_texts) -> None:
    """Lots of activity is not enough while the entry is younger than an hour."""
    store.add_text("busy", None, config)
    add_texts("filler", 40)

    store.add_text("busy", None, config)

    assert count_rows(store, RecencyEntryDB) == 41


def test_oversized_text_is_dropped_silently(store, config) -> None:
    """
    INVARIANT: Payloads above the limit are never stored, and it is not an error
    BREAKS: Huge clipboard contents bloat the database
    """
    config.set("stores.text.max_size", 1)
    store.add_text("small", None, config)
    before = store.compute_total_size()

    store.add_text("x" * 2_000_000, None, config)

    assert store.compute_total_size() == before
    assert count_rows(store, ContentRecordDB) == 1


def test_size_limit_counts_utf8_bytes(store, config) -> None:
    """The limit is inclusive and measured in encoded bytes."""
    config.set("stores.text.max_size", 1)

    store.add_text("a" * 1_000_000, None, config)
    store.add_text("é" * 500_001, None, config)

    assert count_rows(store, ContentRecordDB) == 1


def test_oversized_image_is_dropped(store, config) -> None:
    """Images follow their own limit."""
    config.set("stores.image.max_size", 1)

    store.add_image(b"\x00" * 1_000_001, None, config)

    assert count_rows(store, ContentRecordDB) == 0


def test_text_fields_recorded(store, config) -> None:
    """Sizes are byte lengths; html is optional."""
    store.add_text("héllo", "<b>héllo</b>", config)
    store.add_text("plain", None, config)

    with store.get_session() as session:
        rich = session.query(ContentRecordDB).filter_by(text_data="héllo").one()
        plain = session.query(ContentRecordDB).filter_by(text_data="plain").one()

        assert (rich.type_of, rich.text_size, rich.html_size) == (0, 6, 13)
        assert rich.html_data == "<b>héllo</b>"
        assert rich.is_starred is False
        assert rich.image_data is None
        assert plain.html_size is None and plain.html_data is None

    assert store.compute_total_size() == 11


def test_image_fields_recorded(store, config) -> None:
    """Images store raw bytes and the optional thumbnail independently."""
    store.add_image(b"full-image-bytes", b"thumb", config)

    with store.get_session() as session:
        record = session.query(ContentRecordDB).one()

        assert record.type_of == 1
        assert (record.image_size, record.image_thumb_size) == (16, 5)
        assert record.text_data is None and record.text_size is None

    assert store.compute_total_size() == 0


def test_recent_order_follows_timestamps(store, config, add_texts) -> None:
    """Ledger ids and observation times increase together."""
    add_texts("ordered", 10)

    with store.get_session() as session:
        rows = session.query(RecencyEntryDB).order_by(RecencyEntryDB.id).all()
        dates = [row.date for row in rows]

    assert dates == sorted(dates)
    assert len(set(dates)) == 10


def test_collapse_rule_floors_to_whole_minutes() -> None:
    """Elapsed time is truncated to minutes before the comparison."""
    assert not should_append_recent(61 * 60_000 - 1, 30)
    assert should_append_recent(61 * 60_000, 30)
    assert not should_append_recent(61 * 60_000, 29)


def test_text_with_lone_surrogate_raises_storage_error(store, config) -> None:
    """Text that cannot be encoded is rejected as a storage error, nothing is kept."""
    with pytest.raises(StorageError):
        store.add_text("broken \ud800 text", None, config)

    with pytest.raises(StorageError):
        store.add_text("fine", "<b>\udfff</b>", config)

    assert count_rows(store, ContentRecordDB) == 0

"""
Tests for the occurrence generator and next-occurrence resolver
"""
import pytest
from datetime import date, timedelta

from herdbook.domain.cattle_event import (
    NonRecurringEvent, RecurringEvent, KIND_INJECTION, KIND_NOTE,
)
from herdbook.domain.recurrence import (
    DEFAULT_HORIZON, InvalidOccurrenceDate, OccurrenceKey,
    generate_occurrences, occurrence_date_at, occurrence_index,
    next_actionable, next_scheduled, completed_count, realign_watermark,
)


def _single(d=date(2024, 1, 1), kind=KIND_INJECTION, **kw):
    return NonRecurringEvent(id="e1", parent_id="c1", date=d, kind=kind, note="Deworming", **kw)


def _repeating(d=date(2024, 1, 1), every=7, kind=KIND_INJECTION, **kw):
    return RecurringEvent(
        id="e2", parent_id="c1", date=d, kind=kind, note="FMD vaccine", repeat_duration=every, **kw,
    )


# --- generate_occurrences ---

def test_single_event_has_exactly_one_occurrence():
    occs = generate_occurrences(_single(), horizon_count=10)
    assert len(occs) == 1
    assert occs[0].occurrence_date == date(2024, 1, 1)
    assert occs[0].occurrence_index == 0
    assert occs[0].is_repeated_instance is False


def test_single_event_ignores_legacy_repeat_duration():
    """A leftover repeat_duration on a single event never produces repeats."""
    occs = generate_occurrences(_single(repeat_duration=3), horizon_count=10)
    assert [o.occurrence_date for o in occs] == [date(2024, 1, 1)]


def test_weekly_scenario():
    """Anchored 2024-01-01, every 7 days, horizon 3."""
    occs = generate_occurrences(_repeating(), horizon_count=3)
    assert [o.occurrence_date for o in occs] == [
        date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15), date(2024, 1, 22),
    ]
    assert [o.is_repeated_instance for o in occs] == [False, True, True, True]


@pytest.mark.parametrize("every,horizon", [(1, 0), (1, 5), (3, 52), (30, 12), (365, 2)])
def test_repeating_count_and_spacing(every, horizon):
    occs = generate_occurrences(_repeating(every=every), horizon_count=horizon)
    assert len(occs) == horizon + 1
    gaps = {(b.occurrence_date - a.occurrence_date).days for a, b in zip(occs, occs[1:])}
    assert gaps <= {every}
    assert [o.occurrence_index for o in occs] == list(range(horizon + 1))


def test_default_horizon_covers_a_year_of_weekly_shots():
    occs = generate_occurrences(_repeating())
    assert len(occs) == DEFAULT_HORIZON + 1
    assert occs[-1].occurrence_date == date(2024, 1, 1) + timedelta(days=7 * 52)


def test_generation_is_restartable():
    event = _repeating()
    assert generate_occurrences(event, 5) == generate_occurrences(event, 5)


def test_negative_horizon_rejected():
    with pytest.raises(ValueError):
        generate_occurrences(_repeating(), horizon_count=-1)


def test_occurrence_key_is_event_id_and_index():
    occ = generate_occurrences(_repeating(), 2)[2]
    assert occ.key == OccurrenceKey("e2", 2)
    assert str(occ.key) == "e2:2"


# --- occurrence indexing ---

def test_occurrence_index_on_grid():
    event = _repeating()
    assert occurrence_index(event, date(2024, 1, 1)) == 0
    assert occurrence_index(event, date(2024, 1, 22)) == 3
    assert occurrence_date_at(event, 3) == date(2024, 1, 22)


def test_occurrence_index_before_anchor_fails():
    with pytest.raises(InvalidOccurrenceDate, match="before event start"):
        occurrence_index(_repeating(), date(2023, 12, 25))


def test_occurrence_index_off_grid_fails():
    with pytest.raises(InvalidOccurrenceDate, match="7-day grid"):
        occurrence_index(_repeating(), date(2024, 1, 9))


def test_single_event_only_has_index_zero():
    event = _single()
    assert occurrence_index(event, date(2024, 1, 1)) == 0
    with pytest.raises(InvalidOccurrenceDate):
        occurrence_index(event, date(2024, 1, 2))
    with pytest.raises(InvalidOccurrenceDate):
        occurrence_date_at(event, 1)


# --- next_actionable ---

def test_next_actionable_after_completion_scenario():
    """Watermark 2024-01-16, today 2024-01-16 -> 2024-01-22."""
    event = _repeating(completed_through=date(2024, 1, 16))
    assert next_actionable(event, date(2024, 1, 16)) == date(2024, 1, 22)


def test_next_actionable_nothing_completed_future_series():
    assert next_actionable(_repeating(d=date(2024, 3, 1)), date(2024, 1, 1)) == date(2024, 3, 1)


def test_next_actionable_today_is_an_occurrence():
    assert next_actionable(_repeating(), date(2024, 1, 15)) == date(2024, 1, 15)


def test_next_actionable_overdue_occurrences_are_skipped():
    """Past, uncompleted occurrences are not actionable any more."""
    assert next_actionable(_repeating(), date(2024, 1, 10)) == date(2024, 1, 15)


def test_next_actionable_watermark_ahead_of_today():
    event = _repeating(completed_through=date(2024, 2, 6))
    assert next_actionable(event, date(2024, 1, 3)) == date(2024, 2, 12)


def test_next_actionable_far_beyond_old_walk_bound():
    """No step limit: 500 weeks out still resolves."""
    today = date(2024, 1, 1) + timedelta(days=7 * 500 + 1)
    assert next_actionable(_repeating(), today) == date(2024, 1, 1) + timedelta(days=7 * 501)


def test_next_actionable_matches_linear_walk():
    event = _repeating(every=5, completed_through=date(2024, 1, 12))
    for offset in range(0, 40):
        today = date(2024, 1, 1) + timedelta(days=offset)
        d = event.date
        while not (d > event.completed_through and d >= today):
            d += timedelta(days=5)
        assert next_actionable(event, today) == d


def test_next_actionable_only_for_repeating_injections():
    assert next_actionable(_single(), date(2023, 12, 1)) is None
    assert next_actionable(_repeating(kind=KIND_NOTE), date(2024, 1, 1)) is None


# --- next_scheduled ---

def test_next_scheduled_starts_after_anchor():
    assert next_scheduled(_repeating(), date(2023, 12, 1)) == date(2024, 1, 8)


def test_next_scheduled_rolls_forward_past_today():
    assert next_scheduled(_repeating(), date(2024, 1, 16)) == date(2024, 1, 22)
    assert next_scheduled(_repeating(), date(2024, 1, 22)) == date(2024, 1, 22)


def test_next_scheduled_none_for_single_event():
    assert next_scheduled(_single(), date(2024, 1, 1)) is None


# --- watermark realignment ---

def test_completed_count():
    assert completed_count(_repeating()) == 0
    assert completed_count(_repeating(completed_through=date(2024, 1, 16))) == 3
    assert completed_count(_repeating(completed_through=date(2024, 1, 8))) == 2


def test_realign_keeps_number_of_completed_occurrences():
    old = _repeating(completed_through=date(2024, 1, 16))  # 3 done
    watermark = realign_watermark(old, date(2024, 2, 1), 10)
    assert watermark == date(2024, 2, 21)
    moved = _repeating(d=date(2024, 2, 1), every=10, completed_through=watermark)
    assert completed_count(moved) == 3


def test_realign_with_daily_interval_is_exact():
    old = _repeating(completed_through=date(2024, 1, 9))  # 2 done
    moved = _repeating(every=1, completed_through=realign_watermark(old, date(2024, 1, 1), 1))
    assert completed_count(moved) == 2


def test_realign_nothing_completed():
    assert realign_watermark(_repeating(), date(2024, 5, 1), 3) is None

"""
Tests for cattle use cases - registry, headcount, next injection summary
"""
import pytest
from datetime import date

from herdbook.application.cattle import (
    CattleNotFoundError, CattleValidationError,
    CreateCattleUseCase, UpdateCattleUseCase, DeleteCattleUseCase,
    compute_next_injection, count_cattle, get_next_injections,
)
from herdbook.domain.cattle_event import KIND_INJECTION, KIND_NOTE
from herdbook.infrastructure.store import CattleStore, EventStore

IMAGE = "data:image/jpeg;base64,AAAA"


def _event(**overrides):
    record = {
        "id": "e1", "parent_id": "c1", "date": date(2024, 1, 1), "kind": KIND_INJECTION,
        "note": "FMD vaccine", "is_repeated": True, "repeat_duration": 7, "completed_through": None,
    }
    record.update(overrides)
    return record


class TestRegistry:
    def test_create(self, db_session):
        cattle_id = CreateCattleUseCase(db_session).execute(name=" Gauri ", cattle_type="Gir", image=IMAGE)
        cattle = CattleStore(db_session).get(cattle_id)
        assert cattle["name"] == "Gauri"
        assert cattle["image"] == IMAGE
        assert cattle["next_injection"] is None

    @pytest.mark.parametrize("field", ["name", "cattle_type", "image"])
    def test_required_fields(self, db_session, field):
        kwargs = {"name": "Gauri", "cattle_type": "Gir", "image": IMAGE, field: ""}
        with pytest.raises(CattleValidationError, match="required"):
            CreateCattleUseCase(db_session).execute(**kwargs)

    def test_update(self, db_session, sample_cattle_id):
        UpdateCattleUseCase(db_session).execute(sample_cattle_id, name="Gauri II")
        cattle = CattleStore(db_session).get(sample_cattle_id)
        assert cattle["name"] == "Gauri II"
        assert cattle["type"] == "Gir"

    def test_delete(self, db_session, sample_cattle_id):
        DeleteCattleUseCase(db_session).execute(sample_cattle_id)
        assert CattleStore(db_session).get(sample_cattle_id) is None
        with pytest.raises(CattleNotFoundError):
            DeleteCattleUseCase(db_session).execute(sample_cattle_id)


def test_headcount(db_session):
    use_case = CreateCattleUseCase(db_session)
    use_case.execute(name="Gauri", cattle_type="Gir", image=IMAGE)
    use_case.execute(name="Lakshmi", cattle_type="Gir", image=IMAGE)
    use_case.execute(name="Moti", cattle_type="Murrah", image=IMAGE)

    counts = count_cattle(db_session)
    assert counts.total == 3
    assert counts.by_type == {"Gir": 2, "Murrah": 1}


class TestNextInjection:
    def test_earliest_over_repeating_injections(self):
        records = [
            _event(id="e1", completed_through=date(2024, 1, 16)),
            _event(id="e2", date=date(2024, 1, 3), repeat_duration=14),
            _event(id="e3", kind=KIND_NOTE),
            _event(id="e4", is_repeated=False, repeat_duration=None),
        ]
        assert compute_next_injection(records, date(2024, 1, 16)) == date(2024, 1, 17)

    def test_none_without_repeating_injection(self):
        assert compute_next_injection([_event(kind=KIND_NOTE)], date(2024, 1, 1)) is None
        assert compute_next_injection([], date(2024, 1, 1)) is None

    def test_malformed_records_are_skipped(self):
        records = [_event(id="bad", repeat_duration=None), _event(id="ok")]
        assert compute_next_injection(records, date(2024, 1, 2)) == date(2024, 1, 8)

    def test_summary_per_cattle(self, db_session, sample_cattle_id):
        other = CreateCattleUseCase(db_session).execute(name="Moti", cattle_type="Murrah", image=IMAGE)
        EventStore(db_session).create(sample_cattle_id, {
            "date": date(2024, 1, 1), "kind": KIND_INJECTION, "note": "FMD vaccine",
            "is_repeated": True, "repeat_duration": 7,
        })
        summary = get_next_injections(db_session, date(2024, 1, 16))
        assert summary == {sample_cattle_id: date(2024, 1, 22), other: None}

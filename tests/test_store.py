from pathlib import Path

import pytest
from pydantic import ValidationError

from motolog.core.models import MaintenanceRecord, Ride, UserPreferences
from motolog.store import LocalStore


def _ride(km: float = 1.0) -> Ride:
    return Ride(start_time=0, end_time=60_000, duration_ms=60_000, distance_km=km, avg_speed_kmh=km * 60)


def test_in_memory_insert_at_head():
    store = LocalStore(None)
    a, b = _ride(1), _ride(2)
    store.insert_ride(a)
    store.insert_ride(b)
    assert [r.id for r in store.rides()] == [b.id, a.id]
    assert store.get_ride(a.id) == a
    assert store.get_ride("missing") is None


def test_delete_by_id():
    store = LocalStore(None)
    a, b = _ride(), _ride()
    store.insert_ride(a)
    store.insert_ride(b)
    assert store.delete_ride(a.id) is True
    assert store.delete_ride(a.id) is False
    assert [r.id for r in store.rides()] == [b.id]


def test_persists_and_reloads(tmp_path: Path):
    path = tmp_path / "data" / "motolog.json"
    store = LocalStore(path)
    ride = _ride(3.5)
    record = MaintenanceRecord(category="Brakes", cost=40.0, description="pads")
    store.insert_ride(ride)
    store.insert_maintenance(record)
    store.save_preferences(UserPreferences(currency_code="IDR", fuel_price=10000, vehicle_class="Scooter"))

    reloaded = LocalStore(path)
    assert reloaded.rides() == [ride]
    assert reloaded.maintenance() == [record]
    assert reloaded.preferences().currency_code == "IDR"
    assert reloaded.preferences().vehicle_class == "Scooter"


def test_defaults_when_no_preferences():
    defaults = UserPreferences(currency_code="EUR", fuel_price=1.9)
    assert LocalStore(None, defaults=defaults).preferences() == defaults


def test_maintenance_most_recent_first_and_delete():
    store = LocalStore(None)
    old = MaintenanceRecord(category="Oil Change", cost=10)
    new = MaintenanceRecord(category="Tires", cost=80)
    store.insert_maintenance(old)
    store.insert_maintenance(new)
    assert [m.id for m in store.maintenance()] == [new.id, old.id]
    assert store.delete_maintenance(old.id) is True
    assert store.delete_maintenance("nope") is False


def test_clear_keeps_preferences(tmp_path: Path):
    path = tmp_path / "motolog.json"
    store = LocalStore(path)
    store.insert_ride(_ride())
    store.insert_maintenance(MaintenanceRecord(cost=5))
    store.save_preferences(UserPreferences(currency_code="GBP"))
    store.clear()

    reloaded = LocalStore(path)
    assert reloaded.rides() == []
    assert reloaded.maintenance() == []
    assert reloaded.preferences().currency_code == "GBP"


def test_corrupt_file_backed_up(tmp_path: Path):
    path = tmp_path / "motolog.json"
    path.write_text("{not json", encoding="utf-8")
    store = LocalStore(path)
    assert store.rides() == []
    assert (tmp_path / "motolog.json.broken").read_text(encoding="utf-8") == "{not json"


def test_failed_write_changes_nothing(tmp_path: Path, monkeypatch):
    path = tmp_path / "motolog.json"
    store = LocalStore(path)
    kept = _ride(1)
    store.insert_ride(kept)

    def broken_flush(doc):
        raise OSError("disk full")

    monkeypatch.setattr(store, "_flush", broken_flush)
    with pytest.raises(OSError):
        store.insert_ride(_ride(2))
    with pytest.raises(OSError):
        store.clear()
    assert [r.id for r in store.rides()] == [kept.id]
    assert [r.id for r in LocalStore(path).rides()] == [kept.id]


def test_same_ride_stored_once():
    store = LocalStore(None)
    ride = _ride()
    store.insert_ride(ride)
    with pytest.raises(ValueError):
        store.insert_ride(ride)
    assert len(store.rides()) == 1


def test_invalid_preferences_never_written(tmp_path: Path):
    path = tmp_path / "motolog.json"
    store = LocalStore(path)
    store.insert_maintenance(MaintenanceRecord(cost=5))
    bad = store.preferences().model_copy(update={"fuel_price": -5.0})
    with pytest.raises(ValidationError):
        store.save_preferences(bad)

    reloaded = LocalStore(path)
    assert len(reloaded.maintenance()) == 1
    assert reloaded.preferences().fuel_price == 1.30
    assert not (tmp_path / "motolog.json.broken").exists()

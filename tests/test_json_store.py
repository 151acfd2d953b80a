import json

from snakelink.domain.models import AppConfig, GeneralLimits, SensorConfigDocument, TimeBasedLimits
from snakelink.storage.json_store import DataStorage, JsonStore

from conftest import make_reading, make_spec


def test_load_missing_file_persists_default(tmp_path):
    storage = DataStorage(tmp_path / "nested" / "data")
    store = storage.app_config_store()

    cfg = store.load()

    assert cfg == AppConfig()
    assert store.path.exists()
    on_disk = json.loads(store.path.read_text(encoding="utf-8"))
    assert on_disk["sensorSystem"]["pollingIntervalMs"] == 10_000
    assert on_disk["general"]["dayStartHour"] == 8


def test_load_empty_file_materializes_default(storage):
    store = storage.log_store()
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text("   \n", encoding="utf-8")

    assert store.load() == []
    assert json.loads(store.path.read_text(encoding="utf-8")) == []


def test_load_malformed_json_falls_back_without_overwriting(storage):
    store = storage.live_store()
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text("{not json", encoding="utf-8")

    assert store.load() == {}
    assert store.path.read_text(encoding="utf-8") == "{not json"


def test_load_invalid_utf8_falls_back_without_overwriting(storage):
    store = storage.live_store()
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_bytes(b'{"a": \xff\xfe}')

    assert store.load() == {}
    assert store.path.read_bytes() == b'{"a": \xff\xfe}'


def test_load_schema_mismatch_uses_supplied_default(storage):
    store = storage.sensor_config_store()
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text('{"sensors": "nope"}', encoding="utf-8")

    fallback = SensorConfigDocument(sensors=[make_spec("x")])
    assert store.load(fallback) is fallback


def test_load_twice_is_idempotent(storage):
    store = storage.sensor_config_store()
    store.save(SensorConfigDocument(sensors=[make_spec("a"), make_spec("b", active=False)]))
    raw_before = store.path.read_bytes()

    first = store.load()
    second = store.load()

    assert first.model_dump() == second.model_dump()
    assert store.path.read_bytes() == raw_before


def test_save_is_full_overwrite(storage):
    store = storage.live_store()
    a, b = make_spec("a"), make_spec("b")
    store.save({"a": make_reading(a, 21.0), "b": make_reading(b, 22.0)})
    store.save({"b": make_reading(b, 23.5)})

    live = store.load()
    assert list(live) == ["b"]
    assert live["b"].value == 23.5


def test_sensor_specs_round_trip_with_camel_case_aliases(storage):
    spec = make_spec(
        "bme",
        hardware={"i2cAddress": 0x76, "i2cBusNo": 3},
        limits={"kind": "timeBased", "day": {"min": 25}, "night": {"max": 22}},
    )
    store = storage.sensor_config_store()
    store.save(SensorConfigDocument(sensors=[spec]))

    raw = json.loads(store.path.read_text(encoding="utf-8"))
    assert raw["sensors"][0]["hardware"]["i2cAddress"] == 0x76
    loaded = store.load().sensors[0]
    assert loaded.hardware.i2c_bus_no == 3
    assert isinstance(loaded.limits, TimeBasedLimits)
    assert loaded.limits.night.max == 22


def test_legacy_limit_shapes_are_accepted(tmp_path):
    path = tmp_path / "sensor.configs.json"
    path.write_text(json.dumps({"sensors": [
        {"id": "a", "name": "A", "type": "humidity", "unit": "%",
         "limitsType": "timeBased",
         "readingLimits": {"day": {"min": 40, "max": 60}, "night": {"min": 50, "max": 80}}},
        {"id": "b", "name": "B", "type": "temperature", "unit": "°C", "min": 20, "max": 28},
        {"id": "c", "name": "C", "type": "pressure", "unit": "hPa"},
    ]}), encoding="utf-8")

    store = JsonStore(path, SensorConfigDocument, SensorConfigDocument)
    a, b, c = store.load().sensors

    assert isinstance(a.limits, TimeBasedLimits) and a.limits.day.min == 40
    assert isinstance(b.limits, GeneralLimits) and (b.limits.min, b.limits.max) == (20, 28)
    assert isinstance(c.limits, GeneralLimits) and c.limits.min is None and c.limits.max is None


def test_time_based_limits_require_both_ranges(tmp_path):
    path = tmp_path / "sensor.configs.json"
    path.write_text(json.dumps({"sensors": [
        {"id": "a", "name": "A", "type": "humidity", "unit": "%",
         "limits": {"kind": "timeBased", "day": {"min": 40}}},
    ]}), encoding="utf-8")

    store = JsonStore(path, SensorConfigDocument, SensorConfigDocument)
    assert store.load().sensors == []

import asyncio

from snakelink.services.sensor_logging import SensorLoggingService

from conftest import make_reading, make_spec, write_app_config


def make_service(storage):
    return SensorLoggingService(storage.live_store(), storage.log_store(), storage.app_config_store())


def test_log_once_appends_current_snapshot(storage):
    spec = make_spec("a")
    storage.live_store().save({"a": make_reading(spec, 24.0)})
    service = make_service(storage)

    entry = service.log_once()

    logs = storage.log_store().load()
    assert len(logs) == 1
    assert logs[0].timestamp == entry.timestamp
    assert logs[0].readings["a"].value == 24.0


def test_history_is_bounded_and_evicts_oldest(storage):
    spec = make_spec("a")
    service = make_service(storage)
    service.max_entries = 3

    for value in range(5):
        storage.live_store().save({"a": make_reading(spec, float(value))})
        service.log_once()

    values = [e.readings["a"].value for e in storage.log_store().load()]
    assert values == [2.0, 3.0, 4.0]


def test_start_reads_cadence_and_limit_from_config(storage):
    write_app_config(storage, autoLogIntervalMs=20, logFileLimit=2)
    storage.live_store().save({"a": make_reading(make_spec("a"), 1.0)})
    service = make_service(storage)

    async def scenario():
        await service.start()
        assert service.running
        assert (service.interval_s, service.max_entries) == (0.02, 2)
        await asyncio.sleep(0.15)
        await service.stop()
        await service.stop()

    asyncio.run(scenario())

    assert not service.running
    assert len(storage.log_store().load()) == 2


def test_restart_applies_new_limit(storage):
    write_app_config(storage, autoLogIntervalMs=60_000, logFileLimit=10)
    service = make_service(storage)

    async def scenario():
        await service.start()
        write_app_config(storage, autoLogIntervalMs=60_000, logFileLimit=4)
        assert service.max_entries == 10
        await service.restart()
        assert service.running and service.max_entries == 4
        await service.stop()

    asyncio.run(scenario())


def test_no_entry_before_first_interval(storage):
    write_app_config(storage, autoLogIntervalMs=60_000)
    service = make_service(storage)

    async def scenario():
        await service.start()
        await asyncio.sleep(0.05)
        await service.stop()

    asyncio.run(scenario())
    assert storage.log_store().load() == []

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from stationwatch.shared.database import DBConfig, RecordStorage


@pytest.fixture
def connection():
    conn = MagicMock()
    with patch("stationwatch.shared.database.pymysql.connect", return_value=conn):
        yield conn


@pytest.fixture
def cursor(connection):
    return connection.cursor.return_value.__enter__.return_value


@pytest.fixture
def storage(connection):
    return RecordStorage(DBConfig(host="localhost", user="test", password="secret", database="weather"))


def test_db_config_from_env(monkeypatch):
    monkeypatch.setenv("DB_HOST", "db.local")
    monkeypatch.setenv("DB_USER", "station")
    monkeypatch.setenv("DB_PASSWORD", "pw")
    monkeypatch.delenv("DB_DATABASE", raising=False)

    config = DBConfig.from_env()
    assert config.host == "db.local"
    assert config.user == "station"
    assert config.database == "weather"


def test_latest_records_are_returned_newest_first(storage, cursor):
    cursor.fetchall.return_value = [
        {"id": 5, "document": '{"device_id": "a", "temperature": 20}'},
        {"id": 4, "document": {"device_id": "b"}},
    ]
    records = storage.get_latest_records(10)

    assert records == [
        {"id": "5", "device_id": "a", "temperature": 20},
        {"id": "4", "device_id": "b"},
    ]
    query, params = cursor.execute.call_args[0]
    assert "ORDER BY received_at DESC" in query
    assert "LIMIT %s" in query
    assert params == [10]


def test_invalid_documents_are_skipped(storage, cursor):
    cursor.fetchall.return_value = [
        {"id": 1, "document": "{not json"},
        {"id": 2, "document": '["a list"]'},
        {"id": 3, "document": '{"device_id": "c"}'},
    ]
    assert storage.get_latest_records() == [{"id": "3", "device_id": "c"}]


def test_read_errors_return_empty_list(storage, cursor):
    cursor.execute.side_effect = Exception("lost connection")
    assert storage.get_records_since(datetime(2024, 5, 1, tzinfo=timezone.utc)) == []


def test_historical_records_query(storage, cursor):
    cursor.fetchall.return_value = []
    start = datetime(2024, 5, 1, tzinfo=timezone(timedelta(hours=2)))
    end = datetime(2024, 5, 2, tzinfo=timezone.utc)

    storage.get_historical_records(start, end, device_id="eui-0001")

    query, params = cursor.execute.call_args[0]
    assert "ORDER BY received_at ASC" in query
    assert "LIMIT" not in query
    assert "device_id = %s" in query
    assert params == [datetime(2024, 4, 30, 22, 0), datetime(2024, 5, 2, 0, 0), "eui-0001"]


def test_store_record(storage, connection, cursor, make_uplink):
    cursor.lastrowid = 7
    received_at = datetime(2024, 5, 1, 11, 50, tzinfo=timezone.utc)

    record_id = storage.store_record(make_uplink(record_id="old"), received_at=received_at)

    assert record_id == "7"
    sql, params = cursor.execute.call_args[0]
    assert sql.startswith("INSERT INTO station_records")
    assert params[0] == "eui-a84041000181c0a1"
    assert params[1] == datetime(2024, 5, 1, 11, 50)
    assert '"id"' not in params[2]
    connection.commit.assert_called_once()


def test_store_failure_rolls_back(storage, connection, cursor):
    cursor.execute.side_effect = Exception("duplicate")
    assert storage.store_record({"device_id": "a"}) is None
    connection.rollback.assert_called_once()


def test_update_and_delete_report_affected_rows(storage, cursor):
    cursor.rowcount = 1
    assert storage.update_record("3", {"device_id": "a"}) is True
    assert storage.delete_record("3") is True

    cursor.rowcount = 0
    assert storage.delete_record("99") is False


def test_find_latest_record_id(storage, cursor):
    cursor.fetchall.return_value = [{"id": 12, "document": '{"device_id": "a"}'}]
    assert storage.find_latest_record_id("a") == "12"

    cursor.fetchall.return_value = []
    assert storage.find_latest_record_id("missing") is None


def test_close(storage, connection):
    storage.get_latest_records()
    storage.close()
    connection.close.assert_called_once()


def test_ensure_schema(storage, connection, cursor):
    assert storage.ensure_schema() is True
    assert "CREATE TABLE IF NOT EXISTS station_records" in cursor.execute.call_args[0][0]
    connection.commit.assert_called_once()

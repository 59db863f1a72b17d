from datetime import date
from zoneinfo import ZoneInfo

import pytest

from stationwatch.display.config import load_config as load_display_config
from stationwatch.shared.config import get_config_path, get_log_level, get_section, load_yaml_config
from stationwatch.telemetry.windows import CustomRange, InvalidRangeError, Window
from stationwatch.uplink_logger.config import DEFAULT_SUBSCRIPTION
from stationwatch.uplink_logger.config import load_config as load_logger_config


@pytest.fixture(autouse=True)
def db_env(monkeypatch):
    monkeypatch.setenv("DB_HOST", "db.local")
    monkeypatch.setenv("DB_USER", "station")
    monkeypatch.setenv("DB_PASSWORD", "secret")
    monkeypatch.setenv("DB_DATABASE", "weather_test")


def write_config(tmp_path, text):
    path = tmp_path / "config-test.yaml"
    path.write_text(text)
    return str(path)


def test_config_path_follows_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("STATIONWATCH_ENV", "test")
    assert get_config_path(config_dir=tmp_path) == tmp_path / "config-test.yaml"


def test_log_level():
    assert get_log_level({"log_level": "debug"}) == "DEBUG"
    assert get_log_level({}) == "INFO"


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_display_config(str(tmp_path / "missing.yaml"))


def test_display_config(tmp_path):
    path = write_config(tmp_path, """
log_level: debug
dashboard:
  online_threshold_minutes: 45
  refresh_interval: 30
  preferences_dir: /tmp/prefs
history:
  window: week
  device_id: eui-0001
user:
  uid: u1
  firstName: Ada
""")
    config = load_display_config(path)

    assert config.window == Window.WEEK
    assert config.device_id == "eui-0001"
    assert config.online_threshold_minutes == 45
    assert config.refresh_interval == 30
    assert str(config.preferences_dir) == "/tmp/prefs"
    assert config.export_dir is None
    assert config.user.user_id == "u1"
    assert config.log_level == "DEBUG"
    assert config.db_config.host == "db.local"
    assert config.db_config.database == "weather_test"


def test_display_config_defaults(tmp_path):
    config = load_display_config(write_config(tmp_path, "{}\n"))

    assert config.window == Window.DAY
    assert config.device_id == "all"
    assert config.online_threshold_minutes is None
    assert config.user is None
    assert config.preferences_dir.name == "preferences"
    assert config.log_file.name == "dashboard.log"
    assert config.tz is None


def test_display_timezone(tmp_path):
    path = write_config(tmp_path, """
dashboard:
  timezone: Europe/Berlin
history:
  window: custom
  start: 2024-03-30
  end: 2024-03-31
""")
    config = load_display_config(path)

    assert config.tz == ZoneInfo("Europe/Berlin")
    assert config.window == CustomRange(date(2024, 3, 30), date(2024, 3, 31))


def test_custom_history_window(tmp_path):
    config = load_display_config(write_config(tmp_path, """
history:
  window: custom
  start: 2024-04-01
  end: 2024-04-30
"""))
    assert config.window == CustomRange(start=date(2024, 4, 1), end=date(2024, 4, 30))


def test_reversed_custom_window(tmp_path):
    path = write_config(tmp_path, """
history:
  window: custom
  start: 2024-04-30
  end: 2024-04-01
""")
    with pytest.raises(InvalidRangeError):
        load_display_config(path)


def test_unknown_window(tmp_path):
    with pytest.raises(ValueError):
        load_display_config(write_config(tmp_path, "history:\n  window: fortnight\n"))


def test_uplink_logger_config(tmp_path):
    path = write_config(tmp_path, """
mqtt:
  broker: eu1.cloud.thethings.network
  port: 8883
  username: weather-stations@ttn
  password: NNSXS.KEY
  tls: true
uplink_logger:
  subscriptions:
    - v3/weather-stations@ttn/devices/+/up
  ensure_schema: false
""")
    config = load_logger_config(path)

    assert config.mqtt.broker == "eu1.cloud.thethings.network"
    assert config.mqtt.port == 8883
    assert config.mqtt.tls is True
    assert config.mqtt.username == "weather-stations@ttn"
    assert config.subscriptions == ["v3/weather-stations@ttn/devices/+/up"]
    assert config.ensure_schema is False
    assert config.db.user == "station"


def test_uplink_logger_default_subscription(tmp_path):
    config = load_logger_config(write_config(tmp_path, "mqtt:\n  broker: localhost\n"))
    assert config.subscriptions == [DEFAULT_SUBSCRIPTION]
    assert config.mqtt.port == 1883


def test_config_file_must_be_a_mapping(tmp_path):
    with pytest.raises(ValueError):
        load_yaml_config(write_config(tmp_path, "- just\n- a list\n"))


def test_get_section():
    assert get_section({"mqtt": {"port": 1883}}, "mqtt") == {"port": 1883}
    assert get_section({"mqtt": None}, "mqtt") == {}
    assert get_section({}, "dashboard") == {}
    with pytest.raises(ValueError):
        get_section({"dashboard": "fast"}, "dashboard")

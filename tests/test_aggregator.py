from datetime import date, datetime, timedelta, timezone

import pytest

from stationwatch.shared.models import Granularity
from stationwatch.telemetry.aggregator import aggregate, bucket_granularity, bucket_key
from stationwatch.telemetry.windows import CustomRange, Window, select_window


def at(hour, minute=0):
    return datetime(2024, 5, 1, hour, minute, tzinfo=timezone.utc)


def test_rain_is_summed_and_temperature_averaged(make_reading):
    readings = [
        make_reading(received_at=at(10, 5), temperature_c=18.0, rain_accumulation_mm=2.0),
        make_reading(received_at=at(10, 45), temperature_c=22.0, rain_accumulation_mm=4.0),
    ]
    buckets = aggregate(readings, Window.DAY, tz=timezone.utc)

    assert len(buckets) == 1
    bucket = buckets[0]
    assert bucket.bucket_key == "2024-05-01 10:00"
    assert bucket.representative_time == at(10)
    assert bucket.sample_count == 2
    assert bucket.metrics.rain_accumulation_mm == pytest.approx(6.0)
    assert bucket.metrics.temperature_c == pytest.approx(20.0)


def test_average_counts_only_readings_with_the_metric(make_reading):
    readings = [
        make_reading(received_at=at(10, 5), temperature_c=20.0),
        make_reading(received_at=at(10, 35), humidity_pct=50.0),
    ]
    bucket = aggregate(readings, Window.DAY, tz=timezone.utc)[0]

    assert bucket.sample_count == 2
    assert bucket.metrics.temperature_c == pytest.approx(20.0)
    assert bucket.metrics.humidity_pct == pytest.approx(50.0)
    assert bucket.metrics.pressure_hpa is None


def test_only_non_empty_buckets_are_returned(make_reading):
    readings = [
        make_reading(received_at=at(5, 10), temperature_c=12.0),
        make_reading(received_at=at(1, 10), temperature_c=10.0),
    ]
    buckets = aggregate(readings, Window.DAY, tz=timezone.utc)

    assert [b.bucket_key for b in buckets] == ["2024-05-01 01:00", "2024-05-01 05:00"]
    assert all(b.sample_count > 0 for b in buckets)


def test_empty_input_gives_no_buckets():
    assert aggregate([], Window.DAY, tz=timezone.utc) == []


def test_aggregation_is_repeatable(hourly_readings):
    first = aggregate(hourly_readings, Window.WEEK, tz=timezone.utc)
    second = aggregate(hourly_readings, Window.WEEK, tz=timezone.utc)
    assert first == second


def test_week_window_uses_daily_buckets(hourly_readings):
    buckets = aggregate(hourly_readings, Window.WEEK, tz=timezone.utc)

    assert [b.bucket_key for b in buckets] == ["2024-05-01", "2024-05-02"]
    assert [b.sample_count for b in buckets] == [24, 24]
    assert buckets[0].granularity == Granularity.DAY
    # 0.5 * (1 + ... + 24) and 0.5 * (25 + ... + 48)
    assert [b.metrics.rain_accumulation_mm for b in buckets] == [pytest.approx(150.0), pytest.approx(438.0)]
    assert all(b.metrics.temperature_c == pytest.approx(15.0) for b in buckets)


def test_last_day_of_hourly_readings_gives_24_buckets(hourly_readings):
    now = datetime(2024, 5, 1, tzinfo=timezone.utc) + timedelta(hours=47, minutes=30)
    selected = select_window(hourly_readings, Window.DAY, now)
    buckets = aggregate(selected, Window.DAY, tz=timezone.utc)

    assert len(buckets) == 24
    assert all(b.sample_count == 1 for b in buckets)
    times = [b.representative_time for b in buckets]
    assert times == sorted(times)
    assert buckets[0].bucket_key == "2024-05-02 00:00"
    assert buckets[-1].bucket_key == "2024-05-02 23:00"
    for k, bucket in enumerate(buckets):
        assert bucket.metrics.rain_accumulation_mm == pytest.approx(0.5 * (25 + k))
        assert bucket.metrics.temperature_c == pytest.approx(15.0)


def test_bucket_granularity():
    assert bucket_granularity(Window.DAY) == Granularity.HOUR
    assert bucket_granularity(Window.WEEK) == Granularity.DAY
    assert bucket_granularity(Window.MONTH) == Granularity.DAY
    assert bucket_granularity(CustomRange(date(2024, 5, 1), date(2024, 5, 8))) == Granularity.HOUR
    assert bucket_granularity(CustomRange(date(2024, 5, 1), date(2024, 5, 9))) == Granularity.DAY


def test_bucket_keys_in_local_zone():
    zone = timezone(timedelta(hours=2))
    start = at(23).astimezone(zone).replace(minute=0)
    assert bucket_key(start, Granularity.HOUR) == "2024-05-02 01:00"
    assert bucket_key(start, Granularity.DAY) == "2024-05-02"


def test_daily_buckets_follow_system_zone_across_dst(make_reading, cet_system_zone):
    winter = datetime(2024, 1, 15, 22, 30, tzinfo=timezone.utc)
    summer = datetime(2024, 7, 15, 22, 30, tzinfo=timezone.utc)
    buckets = aggregate([make_reading(received_at=winter), make_reading(received_at=summer)], Window.MONTH)

    # 23:30 CET and 00:30 CEST
    assert [b.bucket_key for b in buckets] == ["2024-01-15", "2024-07-16"]


def test_hourly_buckets_follow_system_zone_across_dst(make_reading, cet_system_zone):
    winter = datetime(2024, 1, 15, 22, 30, tzinfo=timezone.utc)
    summer = datetime(2024, 7, 15, 22, 30, tzinfo=timezone.utc)
    buckets = aggregate([make_reading(received_at=winter), make_reading(received_at=summer)], Window.DAY)

    assert [b.bucket_key for b in buckets] == ["2024-01-15 23:00", "2024-07-16 00:00"]


def test_day_bucket_starts_at_local_midnight_on_dst_day(make_reading, cet_system_zone):
    # 2024-03-31 is the CET to CEST changeover, midnight is still +01:00
    reading = make_reading(received_at=datetime(2024, 3, 31, 12, 0, tzinfo=timezone.utc))
    bucket = aggregate([reading], Window.WEEK)[0]

    assert bucket.bucket_key == "2024-03-31"
    assert bucket.representative_time == datetime(2024, 3, 30, 23, 0, tzinfo=timezone.utc)

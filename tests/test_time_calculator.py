from datetime import timedelta

import pytest

from appliance_jobs.domain.scheduling import (
    JobType,
    clamp_drive_time,
    clamp_people,
    compute_timeline,
    estimated_duration_minutes,
    format_duration,
    normalize_job_type,
    prep_time_minutes,
)


def test_prep_time_per_job_type():
    assert prep_time_minutes(JobType.DELIVERY) == 60
    assert prep_time_minutes(JobType.INSTALLATION) == 30
    assert prep_time_minutes(JobType.PICKUP) == 45


def test_delivery_duration_one_person():
    minutes = estimated_duration_minutes(JobType.DELIVERY, 30, 1)
    assert minutes == 90
    assert format_duration(minutes) == "1h 30m"


def test_delivery_with_installation_adds_half_hour():
    minutes = estimated_duration_minutes(JobType.DELIVERY, 30, 1, includes_installation=True)
    assert minutes == 120
    assert format_duration(minutes) == "2h"


def test_pickup_handling_split_across_crew():
    minutes = estimated_duration_minutes(JobType.PICKUP, 20, 3)
    assert minutes == 50
    assert format_duration(minutes) == "50m"


def test_handling_uses_integer_division():
    # 30 // 4 == 7
    assert estimated_duration_minutes(JobType.DELIVERY, 10, 4) == 27


def test_installation_flag_ignored_for_pickup():
    assert estimated_duration_minutes(JobType.PICKUP, 20, 1, includes_installation=True) == 70


def test_legacy_installation_timeline(scheduled):
    timeline = compute_timeline(JobType.INSTALLATION, scheduled, 45, 2)

    assert timeline.duration_minutes == 120
    assert timeline.departure == scheduled - timedelta(minutes=45)
    assert timeline.prep_start == scheduled - timedelta(minutes=75)
    assert timeline.estimated_return == scheduled + timedelta(minutes=75)
    assert timeline.arrival == scheduled


@pytest.mark.parametrize("job_type", list(JobType))
@pytest.mark.parametrize("drive", [0, 5, 47, 180])
@pytest.mark.parametrize("people", [1, 2, 5])
def test_timeline_ordering(scheduled, job_type, drive, people):
    timeline = compute_timeline(job_type, scheduled, drive, people, includes_installation=True)

    assert timeline.prep_start <= timeline.departure <= timeline.arrival
    assert timeline.departure < timeline.estimated_return
    assert timeline.arrival <= timeline.estimated_return
    assert timeline.departure - timeline.prep_start == timedelta(minutes=prep_time_minutes(job_type))


def test_duration_grows_with_drive_time():
    durations = [estimated_duration_minutes(JobType.DELIVERY, d, 2) for d in range(0, 120, 7)]
    assert durations == sorted(durations)


def test_more_people_never_slower():
    durations = [estimated_duration_minutes(JobType.PICKUP, 30, p) for p in range(1, 8)]
    assert durations == sorted(durations, reverse=True)


@pytest.mark.parametrize(
    "minutes,expected",
    [(0, "0m"), (45, "45m"), (60, "1h"), (90, "1h 30m"), (125, "2h 5m"), (180, "3h")],
)
def test_format_duration(minutes, expected):
    assert format_duration(minutes) == expected


def test_clamps():
    assert clamp_people(0) == 1
    assert clamp_people(-3) == 1
    assert clamp_people(4) == 4
    assert clamp_drive_time(1) == 5
    assert clamp_drive_time(250) == 180
    assert clamp_drive_time(42) == 42


def test_normalize_job_type():
    assert normalize_job_type(JobType.INSTALLATION, False) == (JobType.DELIVERY, True)
    assert normalize_job_type(JobType.PICKUP, True) == (JobType.PICKUP, False)
    assert normalize_job_type(JobType.DELIVERY, True) == (JobType.DELIVERY, True)
    assert normalize_job_type("Delivery", False) == (JobType.DELIVERY, False)

from datetime import datetime, timedelta

from appliance_jobs.domain.jobs.repository import JobRepository
from appliance_jobs.domain.scheduling import JobStatus, JobType
from appliance_jobs.models import Job


def _job(scheduled, **kwargs):
    data = {"job_type": "Delivery", "title": "Washer", "scheduled_date": scheduled}
    data.update(kwargs)
    return Job(**data)


def test_defaults(scheduled):
    job = _job(scheduled)
    assert job.address == ""
    assert job.number_of_people == 1
    assert job.checked_items == []
    assert job.completed is False
    assert job.id


def test_people_clamped_and_address_trimmed(scheduled):
    job = _job(scheduled, number_of_people=0, address="  12 Main St  ")
    assert job.number_of_people == 1
    assert job.address == "12 Main St"


def test_derived_times(scheduled):
    job = _job(scheduled, drive_time_minutes=30, includes_installation=True)
    assert job.prep_time_minutes == 60
    assert job.estimated_duration_minutes == 120
    assert job.formatted_duration == "2h"
    assert job.formatted_drive_time == "30m"
    assert job.departure_time == scheduled - timedelta(minutes=30)
    assert job.prep_start_time == scheduled - timedelta(minutes=90)
    assert job.estimated_return_time == scheduled + timedelta(minutes=90)


def test_unknown_stored_type_reads_as_delivery(scheduled, db):
    job = JobRepository.create_job(db, job_type="Pickup", title="Dryer", scheduled_date=scheduled)
    db.execute(Job.__table__.update().values(job_type="Mystery"))
    db.commit()
    db.refresh(job)
    assert job.type == JobType.DELIVERY


def test_status_and_manual_completion(scheduled):
    job = _job(scheduled, drive_time_minutes=30)
    before = scheduled - timedelta(hours=1)
    assert job.get_status(before) == JobStatus.UPCOMING

    job.mark_completed(before)
    assert job.get_status(before) == JobStatus.COMPLETED
    assert job.completed_date == before
    assert job.get_warranty_expiration_date(before) == before + timedelta(days=30)
    assert job.get_warranty_days_remaining(before) == 30
    assert not job.is_warranty_expired(before)


def test_completing_twice_rebases_warranty(scheduled, db):
    job = JobRepository.create_job(db, job_type="Delivery", title="Fridge", scheduled_date=scheduled)
    job_id = job.id
    first = scheduled + timedelta(hours=2)
    second = scheduled + timedelta(days=3)

    job.mark_completed(first)
    JobRepository.save(db, job)
    job.mark_completed(second)
    JobRepository.save(db, job)

    reloaded = JobRepository.get_job_by_id(db, job_id)
    assert reloaded.completed
    assert reloaded.completed_date == second
    assert reloaded.get_warranty_expiration_date(second) == second + timedelta(days=30)
    assert reloaded.get_warranty_days_remaining(second) == 30
    assert db.query(Job).count() == 1


def test_toggle_item_twice_restores(scheduled):
    job = _job(scheduled)
    job.toggle_item("Ramp")
    assert job.is_item_checked("Ramp")
    assert job.checklist_progress() == 0.1
    job.toggle_item("Ramp")
    assert job.checked_items == []


def test_checked_items_persist(scheduled, db):
    job = JobRepository.create_job(db, job_type="Delivery", title="Fridge", scheduled_date=scheduled)
    job.toggle_item("Dolly")
    JobRepository.save(db, job)

    reloaded = JobRepository.get_job_by_id(db, job.id)
    assert reloaded.checked_items == ["Dolly"]


def test_backfill_completion_flags(scheduled, db):
    job = JobRepository.create_job(db, job_type="Delivery", title="Range", scheduled_date=scheduled)
    # Simulate a row written before the column existed
    db.execute(Job.__table__.update().values(is_completed=None))
    db.commit()

    assert JobRepository.backfill_completion_flags(db) == 1
    db.refresh(job)
    assert job.is_completed is False
    assert JobRepository.backfill_completion_flags(db) == 0


def test_jobs_listed_by_appointment(db):
    later = datetime(2030, 6, 2, 9, 0)
    earlier = datetime(2030, 6, 1, 9, 0)
    JobRepository.create_job(db, job_type="Pickup", title="Later", scheduled_date=later)
    JobRepository.create_job(db, job_type="Pickup", title="Earlier", scheduled_date=earlier)

    assert [j.title for j in JobRepository.get_jobs(db)] == ["Earlier", "Later"]

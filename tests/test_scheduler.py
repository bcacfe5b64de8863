"""Tests for the APScheduler wrapper."""

import threading
from unittest.mock import MagicMock

import pytest

from concoro.config.models import ScheduleConfig
from concoro.scheduler import JOB_ID, SchedulerService


@pytest.fixture
def batch():
    return MagicMock(return_value="result")


@pytest.fixture
def scheduler(batch):
    service = SchedulerService(batch)
    yield service
    if service.is_running():
        service.shutdown()


def field_value(trigger, name):
    return str(next(f for f in trigger.fields if f.name == name))


class TestTrigger:
    def test_default_is_nine_in_rome(self, scheduler):
        trigger = scheduler.build_trigger()

        assert field_value(trigger, "hour") == "9"
        assert field_value(trigger, "minute") == "0"
        assert str(trigger.timezone) == "Europe/Rome"

    def test_custom_schedule(self, batch):
        service = SchedulerService(batch, ScheduleConfig(hour=6, minute=30, timezone="UTC"))

        trigger = service.build_trigger()

        assert field_value(trigger, "hour") == "6"
        assert field_value(trigger, "minute") == "30"
        assert str(trigger.timezone) == "UTC"


class TestLifecycle:
    def test_start_registers_daily_job_without_running_it(self, scheduler, batch):
        scheduler.start()

        assert scheduler.is_running() is True
        job = scheduler.scheduler.get_job(JOB_ID)
        assert job is not None
        next_run = scheduler.get_next_run_time()
        assert (next_run.hour, next_run.minute) == (9, 0)
        batch.assert_not_called()

    def test_job_defaults_prevent_overlap(self, scheduler):
        scheduler.start()
        job = scheduler.scheduler.get_job(JOB_ID)

        assert job.max_instances == 1
        assert job.coalesce is True
        assert job.misfire_grace_time == 3600

    def test_shutdown_sets_event(self, batch):
        event = threading.Event()
        service = SchedulerService(batch, shutdown_event=event)
        service.start()

        service.shutdown()

        assert service.is_running() is False
        assert event.is_set()

    def test_shutdown_before_start_is_safe(self, batch):
        event = threading.Event()
        SchedulerService(batch, shutdown_event=event).shutdown()
        assert event.is_set()

    def test_no_next_run_before_start(self, scheduler):
        assert scheduler.get_next_run_time() is None

    def test_trigger_now_runs_synchronously(self, scheduler, batch):
        assert scheduler.trigger_now() == "result"
        batch.assert_called_once_with()

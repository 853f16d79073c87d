"""Tests for the reminder sweep."""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

import crud
import database
from background_worker import ReminderSweep, build_sweep, worker_loop
from config import Settings
from notifier import Notifier


def _add(db, address, age_days):
    record = crud.create_tracked_email(db, address)
    record.created_at = datetime.now(timezone.utc) - timedelta(days=age_days)
    db.commit()
    return record.id


def _fake_notifier(result=True):
    notifier = MagicMock()
    notifier.send_reminder = AsyncMock(return_value=result)
    return notifier


def _sweep(notifier, recipients):
    return ReminderSweep(database.SessionLocal, notifier, recipients, threshold=timedelta(days=31))


@pytest.mark.asyncio
async def test_one_stale_record_two_recipients(db):
    stale_id = _add(db, "stale@example.com", 32)
    _add(db, "fresh@example.com", 10)
    notifier = _fake_notifier()

    issued = await _sweep(notifier, ["a@example.com", "b@example.com"]).run_once()

    assert issued == 2
    calls = [c.args for c in notifier.send_reminder.await_args_list]
    assert sorted(calls) == [("a@example.com", stale_id), ("b@example.com", stale_id)]


@pytest.mark.asyncio
async def test_every_record_reaches_every_recipient(db):
    ids = {_add(db, "one@example.com", 40), _add(db, "two@example.com", 50)}
    notifier = _fake_notifier()

    issued = await _sweep(notifier, ["a@example.com", "b@example.com", "c@example.com"]).run_once()

    assert issued == 6
    pairs = {c.args for c in notifier.send_reminder.await_args_list}
    assert pairs == {(r, i) for r in ["a@example.com", "b@example.com", "c@example.com"] for i in ids}


@pytest.mark.asyncio
async def test_acknowledged_records_are_skipped(db):
    record_id = _add(db, "seen@example.com", 60)
    crud.acknowledge_tracked_email(db, record_id)
    notifier = _fake_notifier()

    assert await _sweep(notifier, ["a@example.com"]).run_once() == 0
    notifier.send_reminder.assert_not_awaited()


@pytest.mark.asyncio
async def test_no_recipients_is_a_noop(db):
    _add(db, "stale@example.com", 32)
    notifier = _fake_notifier()

    assert await _sweep(notifier, []).run_once() == 0
    notifier.send_reminder.assert_not_awaited()


@pytest.mark.asyncio
async def test_failed_send_does_not_stop_fan_out(db):
    stale_id = _add(db, "stale@example.com", 32)
    transport = AsyncMock(side_effect=[OSError("connection reset"), None])
    notifier = Notifier("bot@example.com", "http://localhost:8000", send=transport)

    issued = await _sweep(notifier, ["a@example.com", "b@example.com"]).run_once()

    assert issued == 2
    assert transport.await_count == 2
    assert [c.args[0]["To"] for c in transport.await_args_list] == ["a@example.com", "b@example.com"]
    assert all(stale_id in c.args[0].get_body(("plain",)).get_content() for c in transport.await_args_list)


@pytest.mark.asyncio
async def test_store_error_is_logged_not_raised():
    notifier = _fake_notifier()
    sweep = ReminderSweep(MagicMock(side_effect=RuntimeError("db down")), notifier, ["a@example.com"])

    assert await sweep.run_once() == 0
    notifier.send_reminder.assert_not_awaited()


@pytest.mark.asyncio
async def test_overlapping_sweep_is_skipped(db):
    _add(db, "stale@example.com", 32)
    started = asyncio.Event()
    release = asyncio.Event()

    async def slow_send(recipient, record_id):
        started.set()
        await release.wait()
        return True

    notifier = MagicMock()
    notifier.send_reminder = AsyncMock(side_effect=slow_send)
    sweep = _sweep(notifier, ["a@example.com"])

    first = asyncio.create_task(sweep.run_once())
    await asyncio.wait_for(started.wait(), timeout=5)

    assert sweep.running
    assert await sweep.run_once() is None

    release.set()
    assert await first == 1
    assert not sweep.running
    assert notifier.send_reminder.await_count == 1


@pytest.mark.asyncio
async def test_worker_loop_fires_until_stopped():
    sweep = MagicMock()
    sweep.run_once = AsyncMock(return_value=0)
    stop_event = asyncio.Event()

    loop_task = asyncio.create_task(worker_loop(sweep, 0.01, stop_event))
    await asyncio.sleep(0.1)
    stop_event.set()
    await asyncio.wait_for(loop_task, timeout=5)

    assert sweep.run_once.await_count >= 2


def test_build_sweep_from_settings():
    settings = Settings(
        _env_file=None,
        MEMBER_1="a@example.com",
        MEMBER_2="",
        MEMBER_3="c@example.com",
        REMINDER_THRESHOLD_DAYS=45,
    )

    sweep = build_sweep(settings)

    assert sweep.recipients == ["a@example.com", "c@example.com"]
    assert sweep.threshold == timedelta(days=45)
    assert sweep.session_factory is database.SessionLocal


@pytest.mark.asyncio
async def test_worker_loop_waits_one_interval_before_first_sweep():
    sweep = MagicMock()
    sweep.run_once = AsyncMock(return_value=0)
    stop_event = asyncio.Event()

    loop_task = asyncio.create_task(worker_loop(sweep, 30, stop_event))
    await asyncio.sleep(0.05)
    stop_event.set()
    await asyncio.wait_for(loop_task, timeout=5)

    sweep.run_once.assert_not_awaited()


@pytest.mark.asyncio
async def test_worker_loop_can_fire_immediately():
    sweep = MagicMock()
    sweep.run_once = AsyncMock(return_value=0)
    stop_event = asyncio.Event()

    loop_task = asyncio.create_task(worker_loop(sweep, 30, stop_event, wait_first=False))
    await asyncio.sleep(0.05)
    stop_event.set()
    await asyncio.wait_for(loop_task, timeout=5)

    sweep.run_once.assert_awaited_once()

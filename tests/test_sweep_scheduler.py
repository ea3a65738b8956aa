import asyncio
import threading
from datetime import timedelta

from budget_hotel.models import BookingStatus
from budget_hotel.services import SweepScheduler, run_sweep


def test_run_sweep_reports_everything(db, encryption, clock, make_booking, make_promotion, today):
    checked_in = make_booking(status=BookingStatus.CHECKED_IN, check_in=today - timedelta(days=4))
    missed = make_booking(status=BookingStatus.CONFIRMED, check_in=today - timedelta(days=2))
    make_promotion(code="OLD", start_date=clock() - timedelta(days=9), end_date=clock() - timedelta(days=2))

    report = run_sweep(db, encryption, clock)

    assert report.checked_out == [checked_in.id]
    assert report.no_show == [missed.id]
    assert report.bookings_updated == 2
    assert report.promotions_deactivated == 1


def test_run_once_uses_its_own_session(session_factory, encryption, clock, make_booking, today, db):
    booking = make_booking(status=BookingStatus.CONFIRMED, check_in=today - timedelta(days=2))
    scheduler = SweepScheduler(session_factory, encryption, clock=clock)

    report = scheduler.run_once()

    assert report.no_show == [booking.id]
    db.expire_all()
    assert booking.status == BookingStatus.NO_SHOW


def test_start_runs_a_pass_and_stop_cancels(session_factory, encryption, clock, make_booking, today, db):
    booking = make_booking(status=BookingStatus.CONFIRMED, check_in=today - timedelta(days=2))
    scheduler = SweepScheduler(session_factory, encryption, interval_seconds=3600, clock=clock)
    passes = []
    run_once = scheduler.run_once
    scheduler.run_once = lambda: passes.append(run_once())

    async def lifecycle():
        await scheduler.start()
        assert scheduler.is_running
        # The first pass runs in a worker thread straight away
        for _ in range(250):
            if passes:
                break
            await asyncio.sleep(0.02)
        await scheduler.stop()

    asyncio.run(lifecycle())

    assert not scheduler.is_running
    assert passes[0].no_show == [booking.id]
    db.expire_all()
    assert booking.status == BookingStatus.NO_SHOW


def test_failed_pass_keeps_the_scheduler_alive(session_factory, encryption):
    scheduler = SweepScheduler(session_factory, encryption, interval_seconds=3600)
    calls = []

    def broken():
        calls.append(1)
        raise RuntimeError("database unavailable")

    scheduler.run_once = broken

    async def lifecycle():
        await scheduler.start()
        for _ in range(250):
            if calls:
                break
            await asyncio.sleep(0.02)
        await asyncio.sleep(0.02)
        assert scheduler.is_running
        await scheduler.stop()

    asyncio.run(lifecycle())
    assert calls == [1]


def test_stop_waits_for_a_pass_in_progress(session_factory, encryption):
    scheduler = SweepScheduler(session_factory, encryption, interval_seconds=3600)
    started, release = threading.Event(), threading.Event()
    finished = []

    def slow_pass():
        started.set()
        release.wait(5)
        finished.append(True)

    scheduler.run_once = slow_pass

    async def lifecycle():
        await scheduler.start()
        assert await asyncio.to_thread(started.wait, 5)

        stopping = asyncio.create_task(scheduler.stop())
        await asyncio.sleep(0.05)
        assert not stopping.done()

        release.set()
        await stopping
        assert finished == [True]

    asyncio.run(lifecycle())
    assert not scheduler.is_running

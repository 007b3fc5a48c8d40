"""Tests for the expiry countdown, the sweep and the scheduler driving them."""
import asyncio

from sqlalchemy import text

from app.models.group import ChatGroup
from app.schemas.group import GroupSettingsUpdate
from app.services import expiry_service, group_service, message_service
from app.services.expiry_scheduler import ExpiryScheduler
from tests.conftest import add_test_messages


def _countdown(db, name):
    db.expire_all()
    return db.query(ChatGroup).filter(ChatGroup.group_name == name).one().expires_in


class TestCountdownTick:

    def test_tick_decrements_live_groups(self, db):
        group_service.create_group(db, "a", "alice", 5)
        group_service.create_group(db, "b", "bob", 2)

        assert expiry_service.tick_countdowns(db) == []
        assert _countdown(db, "a") == 4
        assert _countdown(db, "b") == 1

    def test_tick_flags_group_at_zero(self, db):
        group_service.create_group(db, "g", "alice", 2)
        expiry_service.tick_countdowns(db)
        assert expiry_service.tick_countdowns(db) == ["g"]
        assert group_service.get_expiry(db, "g") == (0, True)

    def test_counter_never_goes_negative(self, db):
        group_service.create_group(db, "g", "alice", 2)
        for _ in range(6):
            expiry_service.tick_countdowns(db)
        assert group_service.get_expiry(db, "g") == (0, True)

    def test_corrupted_countdown_is_skipped(self, db):
        group_service.create_group(db, "bad", "alice", 5)
        group_service.create_group(db, "good", "alice", 5)
        db.execute(text("UPDATE chat_groups SET expires_in = 'x' WHERE group_name = 'bad'"))
        db.commit()

        assert expiry_service.tick_countdowns(db) == []
        assert _countdown(db, "good") == 4
        assert _countdown(db, "bad") == "x"


class TestSweep:

    def test_sweep_deletes_flagged_groups_only(self, db):
        group_service.create_group(db, "short", "alice", 1)
        group_service.create_group(db, "long", "alice", 10)
        expiry_service.tick_countdowns(db)

        assert expiry_service.sweep_expired_groups(db) == ["short"]
        assert not group_service.group_exists(db, "short")
        assert group_service.group_exists(db, "long")

    def test_group_deleted_exactly_once(self, db):
        group_service.create_group(db, "g", "alice", 2)
        for _ in range(5):
            expiry_service.tick_countdowns(db)

        assert expiry_service.sweep_expired_groups(db) == ["g"]
        assert expiry_service.sweep_expired_groups(db) == []
        assert expiry_service.tick_countdowns(db) == []

    def test_rescheduled_group_survives_sweep(self, db):
        group_service.create_group(db, "g", "alice", 1)
        expiry_service.tick_countdowns(db)
        group_service.update_group_settings(db, "g", GroupSettingsUpdate(new_expiry_minutes=30), "alice")

        assert expiry_service.sweep_expired_groups(db) == []
        assert group_service.get_expiry(db, "g") == (30, False)

    def test_sweep_keeps_messages(self, db):
        group_service.create_group(db, "g", "alice", 1)
        add_test_messages(db, "g", "still here")
        expiry_service.tick_countdowns(db)
        expiry_service.sweep_expired_groups(db)
        assert [m.content for m in message_service.list_for_group(db, "g")] == ["still here"]


class TestExpiryScheduler:

    def test_jobs_run_synchronously(self, db, session_factory):
        group_service.create_group(db, "g", "alice", 2)
        scheduler = ExpiryScheduler(session_factory)

        assert scheduler.run_tick_job() == []
        assert scheduler.run_tick_job() == ["g"]
        assert scheduler.run_sweep_job() == ["g"]
        assert not group_service.group_exists(db, "g")

    def test_background_loops_expire_and_sweep(self, db, session_factory):
        """Both loops run on their own cadence; a failing job does not stop its loop."""
        group_service.create_group(db, "g", "alice", 3)

        class RecordingScheduler(ExpiryScheduler):
            def __init__(self, *args, **kwargs):
                super().__init__(*args, **kwargs)
                self.tick_calls = 0
                self.swept = []

            def run_tick_job(self):
                self.tick_calls += 1
                if self.tick_calls == 1:
                    raise RuntimeError("database briefly unavailable")
                return super().run_tick_job()

            def run_sweep_job(self):
                deleted = super().run_sweep_job()
                self.swept.extend(deleted)
                return deleted

        async def fast_sleep(_seconds):
            await asyncio.sleep(0.001)

        async def scenario():
            scheduler = RecordingScheduler(session_factory, sleep=fast_sleep)
            scheduler.start()
            assert scheduler.running

            async def until_swept():
                while "g" not in scheduler.swept:
                    await asyncio.sleep(0.01)

            await asyncio.wait_for(until_swept(), timeout=10)
            await scheduler.stop()
            assert not scheduler.running
            return scheduler

        scheduler = asyncio.run(scenario())
        assert scheduler.swept == ["g"]
        assert scheduler.tick_calls >= 4
        assert not group_service.group_exists(db, "g")

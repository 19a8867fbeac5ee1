"""Unit tests for RunStore."""

from datetime import timedelta

import pytest

from blogpilot.run_store import RunNotFoundError, RunStatus, RunStore


@pytest.fixture
def store():
    """Create an in-memory RunStore."""
    s = RunStore(":memory:")
    yield s
    s.close()


@pytest.mark.unit
class TestCreateRun:
    """Tests for RunStore.create_run."""

    def test_new_run_is_running(self, store: RunStore) -> None:
        """A new run starts in RUNNING status with a start time."""
        run = store.create_run()

        assert run.id
        assert run.run_status == RunStatus.RUNNING
        assert run.started_at is not None
        assert run.completed_at is None

    def test_ids_are_unique(self, store: RunStore) -> None:
        """Each run gets its own id."""
        assert store.create_run().id != store.create_run().id


@pytest.mark.unit
class TestRunLifecycle:
    """Tests for updating, completing and failing runs."""

    def test_update_only_given_fields(self, store: RunStore) -> None:
        """update_run leaves unspecified fields alone."""
        run = store.create_run()

        store.update_run(run.id, topic="Monsoon Skincare")
        updated = store.update_run(run.id, title="Glow")

        assert updated.topic == "Monsoon Skincare"
        assert updated.title == "Glow"

    def test_complete_run(self, store: RunStore) -> None:
        """complete_run records the outcome and end time."""
        run = store.create_run()

        done = store.complete_run(run.id, title="Glow", article_id=42)

        assert done.run_status == RunStatus.SUCCEEDED
        assert done.title == "Glow"
        assert done.article_id == 42
        assert done.completed_at is not None

    def test_fail_run(self, store: RunStore) -> None:
        """fail_run records the error."""
        run = store.create_run()

        failed = store.fail_run(run.id, "No trending topics found")

        assert failed.run_status == RunStatus.FAILED
        assert failed.error == "No trending topics found"

    def test_unknown_run_raises(self, store: RunStore) -> None:
        """Operations on a missing run raise RunNotFoundError."""
        with pytest.raises(RunNotFoundError):
            store.update_run("missing", topic="x")
        with pytest.raises(RunNotFoundError):
            store.complete_run("missing")
        with pytest.raises(RunNotFoundError):
            store.fail_run("missing", "x")
        with pytest.raises(RunNotFoundError):
            store.get_run("missing")


@pytest.mark.unit
class TestCheckpoints:
    """Tests for stage checkpoints."""

    def test_checkpoints_in_write_order(self, store: RunStore) -> None:
        """Checkpoints come back in the order they were saved."""
        run = store.create_run()
        store.checkpoint(run.id, "searching_topics", {"topic": "Monsoon Skincare"})
        store.checkpoint(run.id, "generating_title", {"title": "Glow"})

        checkpoints = store.list_checkpoints(run.id)

        assert [c.stage for c in checkpoints] == ["searching_topics", "generating_title"]
        assert checkpoints[0].payload == {"topic": "Monsoon Skincare"}

    def test_get_run_loads_checkpoints(self, store: RunStore) -> None:
        """get_run returns the run with its checkpoints."""
        run = store.create_run()
        store.checkpoint(run.id, "generating_title", {"title": "Glow"})

        loaded = store.get_run(run.id)

        assert len(loaded.checkpoints) == 1
        assert loaded.checkpoints[0].stage == "generating_title"

    def test_checkpoint_missing_run(self, store: RunStore) -> None:
        """Checkpointing an unknown run raises RunNotFoundError."""
        with pytest.raises(RunNotFoundError):
            store.checkpoint("missing", "x", {})


@pytest.mark.unit
class TestListRuns:
    """Tests for RunStore.list_runs."""

    def test_filter_by_status(self, store: RunStore) -> None:
        """Only runs with the requested status are returned."""
        ok = store.create_run()
        bad = store.create_run()
        store.complete_run(ok.id, article_id=1)
        store.fail_run(bad.id, "boom")

        assert [r.id for r in store.list_runs(status=RunStatus.FAILED)] == [bad.id]
        assert {r.id for r in store.list_runs()} == {ok.id, bad.id}

    def test_limit(self, store: RunStore) -> None:
        """At most limit runs are returned."""
        for _ in range(3):
            store.create_run()

        assert len(store.list_runs(limit=2)) == 2


@pytest.mark.unit
class TestRunStats:
    """Tests for RunStore.get_run_stats."""

    def test_empty(self, store: RunStore) -> None:
        """An empty store reports zeros."""
        stats = store.get_run_stats()

        assert stats.total_runs == 0
        assert stats.succeeded == 0
        assert stats.failed == 0
        assert stats.avg_duration_seconds == 0.0

    def test_counts_and_duration(self, store: RunStore) -> None:
        """Counts by status; average duration is over completed runs."""
        ok = store.create_run()
        bad = store.create_run()
        store.create_run()
        store.complete_run(ok.id, article_id=1)
        store.fail_run(bad.id, "boom")

        stats = store.get_run_stats()

        assert stats.total_runs == 3
        assert stats.succeeded == 1
        assert stats.failed == 1
        assert 0.0 <= stats.avg_duration_seconds < timedelta(minutes=1).total_seconds()

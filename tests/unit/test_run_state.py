"""Unit tests for run state and the run store."""

from datetime import datetime, timedelta

import pytest

from issueops.core.exceptions import InvalidTransitionError
from issueops.core.session import RunStore
from issueops.models.deployment import DeploymentRecord
from issueops.models.run import LifecycleState, RunState


class TestRunState:
    """Tests for lifecycle transitions on RunState."""

    def test_defaults(self):
        run = RunState()

        assert run.state == LifecycleState.IDLE
        assert run.bypass is False
        assert run.deployment_id is None
        assert len(run.run_id) == 32

    def test_happy_path(self):
        run = RunState()
        for state in (
            LifecycleState.CLASSIFIED,
            LifecycleState.ENVIRONMENT_RESOLVED,
            LifecycleState.PRECHECKED,
            LifecycleState.DEPLOY_CREATED,
            LifecycleState.IN_PROGRESS,
            LifecycleState.SUCCESS,
        ):
            run.transition(state)

        assert run.is_terminal
        assert [step.state for step in run.history][-1] == LifecycleState.SUCCESS
        assert len(run.history) == 6

    def test_skipping_a_step_is_rejected(self):
        run = RunState()

        with pytest.raises(InvalidTransitionError):
            run.transition(LifecycleState.IN_PROGRESS)

    def test_terminal_states_have_no_exits(self):
        run = RunState()
        run.transition(LifecycleState.SAFE_EXIT)

        with pytest.raises(InvalidTransitionError):
            run.transition(LifecycleState.CLASSIFIED)

    def test_triggered_once_classified(self):
        run = RunState()
        assert run.triggered is False

        run.transition(LifecycleState.CLASSIFIED)
        run.transition(LifecycleState.SAFE_EXIT)

        assert run.triggered is True

    def test_fail_from_any_state(self):
        run = RunState()
        run.transition(LifecycleState.SAFE_EXIT)

        run.fail("boom")

        assert run.state == LifecycleState.ERROR
        assert run.error == "boom"
        assert run.bypass is True

    def test_set_output(self):
        run = RunState()
        run.set_output("deployment_id", 123)
        run.set_output("environment_url", None)

        assert run.outputs == {"deployment_id": "123", "environment_url": "null"}

    def test_deployment_id(self):
        run = RunState(
            deployment=DeploymentRecord(id=7, ref="cool-feature", environment="production")
        )
        assert run.deployment_id == 7


class TestRunStore:
    """Tests for RunStore."""

    @pytest.mark.asyncio
    async def test_save_and_get(self, store: RunStore):
        run = await store.save(RunState(actor="monalisa"))

        loaded = await store.get(run.run_id)

        assert loaded is not None
        assert loaded.actor == "monalisa"

    @pytest.mark.asyncio
    async def test_get_unknown(self, store: RunStore):
        assert await store.get("missing") is None

    @pytest.mark.asyncio
    async def test_delete(self, store: RunStore):
        run = await store.save(RunState())

        assert await store.delete(run.run_id) is True
        assert await store.get(run.run_id) is None

    @pytest.mark.asyncio
    async def test_expired_run_is_dropped(self):
        store = RunStore(ttl_hours=1)
        run = RunState(created_at=datetime.utcnow() - timedelta(hours=2))
        await store.save(run)

        assert await store.get(run.run_id) is None

    @pytest.mark.asyncio
    async def test_cleanup_expired(self):
        store = RunStore(ttl_hours=1)
        stale = await store.save(RunState())
        await store.save(RunState())
        stale.created_at = datetime.utcnow() - timedelta(hours=2)

        assert await store.cleanup_expired() == 1
        runs, total = await store.list_runs()
        assert total == 1

    @pytest.mark.asyncio
    async def test_save_purges_expired_runs(self):
        store = RunStore(ttl_hours=1)
        await store.save(RunState(created_at=datetime.utcnow() - timedelta(hours=2)))

        await store.save(RunState())

        runs, total = await store.list_runs()
        assert total == 1

    @pytest.mark.asyncio
    async def test_list_runs_by_state(self, store: RunStore):
        idle = RunState()
        exited = RunState()
        exited.transition(LifecycleState.SAFE_EXIT)
        await store.save(idle)
        await store.save(exited)

        runs, total = await store.list_runs(state=LifecycleState.SAFE_EXIT)

        assert total == 1
        assert runs[0].run_id == exited.run_id

    @pytest.mark.asyncio
    async def test_json_mirror_survives_restart(self, tmp_path):
        run = RunState(actor="monalisa", ref="cool-feature")
        await RunStore(state_dir=tmp_path).save(run)

        assert (tmp_path / f"{run.run_id}.json").exists()

        restarted = RunStore(state_dir=tmp_path)
        loaded = await restarted.get(run.run_id)

        assert loaded is not None
        assert loaded.ref == "cool-feature"

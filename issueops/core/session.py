"""Run state storage between the begin and completion phases."""

from datetime import datetime, timedelta
from functools import lru_cache
from pathlib import Path

from issueops.config import settings
from issueops.models.run import LifecycleState, RunState
from issueops.utils.logging import get_logger

logger = get_logger(__name__)


class RunStore:
    """Keeps run state in memory, optionally mirrored to JSON files.

    The JSON mirror lets the completion phase find a run after the service
    restarts.
    """

    def __init__(self, state_dir: str | Path | None = None, ttl_hours: int = 24):
        self._runs: dict[str, RunState] = {}
        self._ttl = timedelta(hours=ttl_hours)
        self._state_dir = Path(state_dir) if state_dir else None
        if self._state_dir:
            self._state_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, run_id: str) -> Path | None:
        if self._state_dir is None:
            return None
        return self._state_dir / f"{run_id}.json"

    async def save(self, run: RunState) -> RunState:
        """Create or update a run."""
        await self.cleanup_expired()
        run.updated_at = datetime.utcnow()
        self._runs[run.run_id] = run

        path = self._path(run.run_id)
        if path:
            path.write_text(run.model_dump_json(indent=2), encoding="utf-8")
        return run

    async def get(self, run_id: str) -> RunState | None:
        """Get a run by ID."""
        run = self._runs.get(run_id)
        if run is None:
            path = self._path(run_id)
            if path and path.exists():
                run = RunState.model_validate_json(path.read_text(encoding="utf-8"))
                self._runs[run_id] = run
                logger.debug("run_store.loaded", run_id=run_id, path=str(path))

        if run and datetime.utcnow() - run.created_at > self._ttl:
            await self.delete(run_id)
            return None
        return run

    async def delete(self, run_id: str) -> bool:
        """Delete a run."""
        found = self._runs.pop(run_id, None) is not None
        path = self._path(run_id)
        if path and path.exists():
            path.unlink()
            found = True
        return found

    async def list_runs(
        self,
        state: LifecycleState | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[RunState], int]:
        """List runs held in memory, newest first."""
        runs = list(self._runs.values())

        if state:
            runs = [r for r in runs if r.state == state]

        runs.sort(key=lambda r: r.created_at, reverse=True)

        total = len(runs)
        return runs[offset : offset + limit], total

    async def cleanup_expired(self) -> int:
        """Remove expired runs. Returns count of removed runs."""
        now = datetime.utcnow()
        expired = [
            run_id
            for run_id, run in self._runs.items()
            if now - run.created_at > self._ttl
        ]
        for run_id in expired:
            await self.delete(run_id)
        return len(expired)


@lru_cache
def get_run_store() -> RunStore:
    """Get the run store singleton."""
    return RunStore(state_dir=settings.state_directory)

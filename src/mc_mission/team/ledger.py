"""JSON-file task ledger shared by independent agent processes.

Every operation reloads the whole file, mutates it and writes it back. Writes
carry a version stamp: before replacing the file the stamp is re-read and, if
another process wrote in between, the operation is replayed on a fresh load.
This narrows the race window but does not close it; after the last retry the
write goes through regardless.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, TypeVar
from uuid import uuid4

from mc_mission.models import Intent, LedgerTask, TaskStatus, utc_now_iso

logger = logging.getLogger("mc_mission.team.ledger")

T = TypeVar("T")


@dataclass(slots=True)
class LedgerState:
    version: int = 0
    tasks: list[LedgerTask] = field(default_factory=list)

    def find(self, task_id: str) -> LedgerTask | None:
        return next((task for task in self.tasks if task.id == task_id), None)

    def to_record(self) -> dict[str, Any]:
        return {"version": self.version, "tasks": [task.to_record() for task in self.tasks]}


class SharedTaskLedger:
    """Claims and tracks tasks so agents avoid duplicating each other's work."""

    def __init__(
        self,
        path: str | Path,
        *,
        agent_name: str = "unknown_agent",
        summary_max_chars: int = 120,
        write_retries: int = 3,
    ) -> None:
        self._path = Path(path)
        self._agent_name = agent_name
        self._summary_max_chars = summary_max_chars
        self._write_retries = max(1, write_retries)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        if not self._path.exists():
            self._write(LedgerState())

    @property
    def path(self) -> Path:
        return self._path

    def claim_task(
        self,
        agent: str | None = None,
        intent: Intent | Mapping[str, Any] | None = None,
        summary: str | None = None,
        status: TaskStatus = TaskStatus.planning,
    ) -> LedgerTask:
        owner = agent or self._agent_name
        intent_record = intent.as_dict() if isinstance(intent, Intent) else dict(intent or {})
        text = summary or intent_record.get("input") or intent_record.get("type") or ""
        task_summary = str(text)[: self._summary_max_chars]

        def mutate(state: LedgerState) -> tuple[LedgerTask, bool]:
            for task in state.tasks:
                if task.agent == owner and task.summary == task_summary and task.active:
                    return task, False
            now = utc_now_iso()
            task = LedgerTask(
                id=f"task_{uuid4().hex}",
                agent=owner,
                summary=task_summary,
                status=TaskStatus(status),
                created_at=now,
                updated_at=now,
                intent=intent_record,
            )
            state.tasks.append(task)
            return task, True

        task = self._transact(mutate)
        logger.info("ledger_task_claimed", extra={"task_id": task.id, "agent": owner, "status": task.status.value})
        return task

    def update_status(
        self,
        task_id: str,
        status: TaskStatus,
        extra: Mapping[str, Any] | None = None,
    ) -> LedgerTask | None:
        def mutate(state: LedgerState) -> tuple[LedgerTask | None, bool]:
            task = state.find(task_id)
            if task is None:
                return None, False
            task.status = TaskStatus(status)
            task.updated_at = utc_now_iso()
            for key, value in (extra or {}).items():
                if key == "result":
                    task.result = value
                else:
                    task.extra[key] = value
            return task, True

        task = self._transact(mutate)
        if task is None:
            logger.debug("ledger_task_missing", extra={"task_id": task_id})
        else:
            logger.info("ledger_task_updated", extra={"task_id": task_id, "status": task.status.value})
        return task

    def complete_task(self, task_id: str, result: Any = None) -> LedgerTask | None:
        return self.update_status(task_id, TaskStatus.done, {"result": result})

    def fail_task(self, task_id: str, error: str | None = None) -> LedgerTask | None:
        return self.update_status(task_id, TaskStatus.failed, {"result": error})

    def list_active(self, exclude_agent: str | None = None) -> list[LedgerTask]:
        return [
            task
            for task in self._load().tasks
            if task.active and (exclude_agent is None or task.agent != exclude_agent)
        ]

    def get_task(self, task_id: str) -> LedgerTask | None:
        return self._load().find(task_id)

    def describe_active(self, exclude_agent: str | None = None) -> str:
        """One line per active task of other agents, for the model prompt."""
        lines = [f"- {task.agent}: {task.summary} ({task.status.value})" for task in self.list_active(exclude_agent)]
        return "\n".join(lines)

    def _transact(self, mutate: Callable[[LedgerState], tuple[T, bool]]) -> T:
        attempt = 0
        while True:
            attempt += 1
            state = self._load()
            result, changed = mutate(state)
            if not changed:
                return result

            current = self._read_version()
            if current != state.version:
                if attempt < self._write_retries:
                    logger.debug("ledger_write_conflict", extra={"attempt": attempt, "path": str(self._path)})
                    continue
                logger.warning("ledger_conflict_unresolved", extra={"attempts": attempt, "path": str(self._path)})

            state.version = max(current, state.version) + 1
            self._write(state)
            return result

    def _load(self) -> LedgerState:
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
            tasks = [LedgerTask.from_record(record) for record in payload.get("tasks") or []]
            return LedgerState(version=int(payload.get("version", 0)), tasks=tasks)
        except FileNotFoundError:
            return LedgerState()
        except (OSError, ValueError, TypeError, KeyError, AttributeError) as exc:
            logger.warning("ledger_load_failed", extra={"path": str(self._path), "error": str(exc)})
            return LedgerState()

    def _read_version(self) -> int:
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
            return int(payload.get("version", 0))
        except (OSError, ValueError, TypeError, AttributeError):
            return 0

    def _write(self, state: LedgerState) -> None:
        fd, tmp_name = tempfile.mkstemp(prefix=".team_state.", suffix=".tmp", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(state.to_record(), handle, indent=2)
            os.replace(tmp_name, self._path)
        finally:
            Path(tmp_name).unlink(missing_ok=True)

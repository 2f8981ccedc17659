from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class IntentType(str, Enum):
    BUILD = "BUILD"
    CRAFT = "CRAFT"
    COOK = "COOK"
    COLLECT = "COLLECT"
    COMBAT = "COMBAT"
    EXPLORE = "EXPLORE"
    INTERACT = "INTERACT"
    GENERAL = "GENERAL"


class TaskStatus(str, Enum):
    planning = "planning"
    in_progress = "in_progress"
    done = "done"
    failed = "failed"


ACTIVE_TASK_STATUSES = frozenset({TaskStatus.planning, TaskStatus.in_progress})


@dataclass(slots=True)
class ConversationTurn:
    role: str
    content: str


@dataclass(frozen=True, slots=True)
class Intent:
    """Classified purpose of the most recent user utterance."""

    id: str
    source: str
    input: str
    type: IntentType
    subtype: str = "unknown"

    def as_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "source": self.source,
            "input": self.input,
            "type": self.type.value,
            "subtype": self.subtype,
        }


@dataclass(frozen=True, slots=True)
class PlanStep:
    index: int
    goal: str
    preconditions: tuple[str, ...] = ()
    action_cmd: tuple[str, ...] = ()
    verify_cmd: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class PlanSkeleton:
    name: str
    steps: tuple[PlanStep, ...]
    slug: str | None = None
    rationale: str | None = None
    source_file: str | None = None


@dataclass(frozen=True, slots=True)
class Override:
    """Corrective replacement for a proposed command."""

    goal: str
    command: str
    advice: str
    rule: str = ""


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(slots=True)
class LedgerTask:
    id: str
    agent: str
    summary: str
    status: TaskStatus
    created_at: str
    updated_at: str
    intent: dict[str, Any] = field(default_factory=dict)
    result: Any = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def active(self) -> bool:
        return self.status in ACTIVE_TASK_STATUSES

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = dict(self.extra)
        record.update(
            {
                "id": self.id,
                "agent": self.agent,
                "intent": self.intent,
                "summary": self.summary,
                "status": self.status.value,
                "createdAt": self.created_at,
                "updatedAt": self.updated_at,
            }
        )
        if self.result is not None:
            record["result"] = self.result
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> LedgerTask:
        known = {"id", "agent", "intent", "summary", "status", "createdAt", "updatedAt", "result"}
        return cls(
            id=str(record["id"]),
            agent=str(record.get("agent", "")),
            summary=str(record.get("summary", "")),
            status=TaskStatus(record.get("status", TaskStatus.planning.value)),
            created_at=str(record.get("createdAt", "")),
            updated_at=str(record.get("updatedAt", "")),
            intent=dict(record.get("intent") or {}),
            result=record.get("result"),
            extra={key: value for key, value in record.items() if key not in known},
        )

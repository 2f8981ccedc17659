"""Per-agent mission tracking as an explicit Idle/Active state machine.

Transitions are pure functions returning a new state; ``MissionStateMachine``
only holds the current value for one agent and logs what changed.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Iterable, Union

from mc_mission.models import Intent, IntentType, PlanSkeleton, PlanStep

logger = logging.getLogger("mc_mission.planning.mission")

MISSION_INTENTS = frozenset({IntentType.BUILD, IntentType.CRAFT})
FAILURE_KEYWORDS: tuple[str, ...] = ("error", "fail", "cannot", "can't", "unable")

_CRAFT_TARGET_RE = re.compile(r"""!craftRecipe\s*\(\s*["']?([A-Za-z0-9_]+)""")


@dataclass(frozen=True, slots=True)
class IdleMission:
    is_active: bool = False


@dataclass(frozen=True, slots=True)
class ActiveMission:
    plan_name: str
    steps: tuple[PlanStep, ...]
    current_step: int = 0
    failures: int = 0
    is_active: bool = True

    def __post_init__(self) -> None:
        if not self.steps:
            raise ValueError("An active mission needs at least one step")
        if not 0 <= self.current_step < len(self.steps):
            raise ValueError(f"current_step {self.current_step} outside 0..{len(self.steps) - 1}")

    @property
    def step(self) -> PlanStep:
        return self.steps[min(self.current_step, len(self.steps) - 1)]

    def stalled(self, threshold: int) -> bool:
        return threshold > 0 and self.failures >= threshold


MissionState = Union[IdleMission, ActiveMission]

IDLE = IdleMission()


def activate(state: MissionState, intent: Intent | None, examples: Iterable[PlanSkeleton]) -> MissionState:
    """Start a mission from the first example carrying steps, when the intent calls for one."""
    if isinstance(state, ActiveMission) or intent is None or intent.type not in MISSION_INTENTS:
        return state
    for example in examples:
        if example.steps:
            return ActiveMission(
                plan_name=example.name,
                steps=tuple(replace(step) for step in example.steps),
            )
    return state


def output_failed(output: str) -> bool:
    lowered = output.lower()
    return any(keyword in lowered for keyword in FAILURE_KEYWORDS)


def step_succeeded(step: PlanStep, output: str, expected: str | None = None) -> bool:
    """Success needs no failure keyword and, when a command was expected, its literal text.

    ``expected`` replaces the step's own command when another one was surfaced
    for the turn, such as an override.
    """
    if output_failed(output):
        return False
    if expected is None:
        expected = step.action_cmd[0] if step.action_cmd else None
    return expected is None or expected in output


def evaluate(state: MissionState, last_output: str | None, expected: str | None = None) -> MissionState:
    """Advance or hold the active step based on the model's previous output."""
    if not isinstance(state, ActiveMission) or not last_output:
        return state

    if not step_succeeded(state.step, last_output, expected):
        return replace(state, failures=state.failures + 1)

    next_step = state.current_step + 1
    if next_step >= len(state.steps):
        return IDLE
    return replace(state, current_step=next_step, failures=0)


def mandatory_command(state: MissionState) -> str | None:
    if not isinstance(state, ActiveMission):
        return None
    step = state.step
    return step.action_cmd[0] if step.action_cmd else None


def goal_item(state: MissionState) -> str | None:
    """Item crafted by the last ``!craftRecipe`` command of the plan, if any."""
    if not isinstance(state, ActiveMission):
        return None
    for step in reversed(state.steps):
        for command in step.action_cmd:
            match = _CRAFT_TARGET_RE.search(command)
            if match:
                return match.group(1)
    return None


class MissionStateMachine:
    """Holds one agent's mission state and applies the pure transitions."""

    def __init__(self, agent: str, *, failure_escalation_threshold: int = 3) -> None:
        self._agent = agent
        self._threshold = failure_escalation_threshold
        self._state: MissionState = IDLE

    @property
    def state(self) -> MissionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state.is_active

    @property
    def stalled(self) -> bool:
        return isinstance(self._state, ActiveMission) and self._state.stalled(self._threshold)

    def start(self, intent: Intent | None, examples: Iterable[PlanSkeleton]) -> bool:
        previous = self._state
        self._state = activate(previous, intent, examples)
        started = self._state is not previous
        if started and isinstance(self._state, ActiveMission):
            logger.info(
                "mission_started",
                extra={"agent": self._agent, "plan": self._state.plan_name, "steps": len(self._state.steps)},
            )
        return started

    def observe(self, last_output: str | None, expected: str | None = None) -> bool:
        """Evaluate the previous output; returns True when the mission just completed."""
        previous = self._state
        self._state = evaluate(previous, last_output, expected)
        if not isinstance(previous, ActiveMission) or self._state is previous:
            return False

        if isinstance(self._state, IdleMission):
            logger.info("mission_completed", extra={"agent": self._agent, "plan": previous.plan_name})
            return True

        if self._state.current_step > previous.current_step:
            logger.info(
                "mission_step_advanced",
                extra={"agent": self._agent, "plan": previous.plan_name, "step": self._state.current_step},
            )
        elif self._state.stalled(self._threshold):
            logger.warning(
                "mission_step_stalled",
                extra={"agent": self._agent, "step": self._state.current_step, "failures": self._state.failures},
            )
        return False

    def mandatory_command(self) -> str | None:
        return mandatory_command(self._state)

    def goal_item(self) -> str | None:
        return goal_item(self._state)

    def reset(self) -> None:
        self._state = IDLE

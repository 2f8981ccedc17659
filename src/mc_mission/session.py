"""Per-turn orchestration of one agent's mission, overrides and ledger bookkeeping."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from mc_mission.adapters.language_model import LanguageModel
from mc_mission.adapters.world_query import WorldQuery
from mc_mission.commands import CommandNormalizer
from mc_mission.config import Settings
from mc_mission.models import ConversationTurn, Intent, Override, TaskStatus
from mc_mission.planning import IntentClassifier, KeywordExtractor, MissionStateMachine, TrainingExampleStore
from mc_mission.planning.mission import ActiveMission, MissionState
from mc_mission.team import SharedTaskLedger
from mc_mission.telemetry import LoggingTelemetry, Telemetry
from mc_mission.world import MissingPrecondition, PreconditionEngine

logger = logging.getLogger("mc_mission.session")

GUIDANCE_RULES: tuple[str, ...] = (
    "Always verify the current state before acting (e.g., use !inventory(), !stats()).",
    "If resources are missing, plan how to obtain them (mine, smelt, craft).",
    "Coordinate with other bots by sharing and requesting resources.",
    "Once a decision is clear, execute the command immediately.",
)

RESULT_EXCERPT_CHARS = 200


@dataclass(slots=True)
class TurnResult:
    response: str
    raw_response: str
    prompt: str
    intent: Intent | None = None
    mission: MissionState | None = None
    mandatory_command: str | None = None
    override: Override | None = None
    missing: list[MissingPrecondition] = field(default_factory=list)
    task_id: str | None = None
    mission_completed: bool = False


class AgentSession:
    """Runs one conversation turn at a time for a single agent."""

    def __init__(
        self,
        *,
        agent_name: str,
        model: LanguageModel,
        ledger: SharedTaskLedger,
        examples: TrainingExampleStore,
        classifier: IntentClassifier | None = None,
        preconditions: PreconditionEngine | None = None,
        normalizer: CommandNormalizer | None = None,
        keywords: KeywordExtractor | None = None,
        telemetry: Telemetry | None = None,
        history_window: int = 3,
        failure_escalation_threshold: int = 3,
        stop_sequence: str = "***",
    ) -> None:
        self._agent_name = agent_name
        self._model = model
        self._ledger = ledger
        self._examples = examples
        self._classifier = classifier or IntentClassifier(model, stop_sequence=stop_sequence)
        self._preconditions = preconditions or PreconditionEngine()
        self._normalizer = normalizer or CommandNormalizer()
        self._keywords = keywords or KeywordExtractor()
        self._telemetry = telemetry or LoggingTelemetry()
        self._history_window = history_window
        self._stop_sequence = stop_sequence
        self._mission = MissionStateMachine(agent_name, failure_escalation_threshold=failure_escalation_threshold)
        self._last_output: str | None = None
        self._last_expected: str | None = None
        self._task_id: str | None = None
        self._requested_item: str | None = None

    @classmethod
    def from_settings(cls, model: LanguageModel, config: Settings) -> AgentSession:
        return cls(
            agent_name=config.agent_name,
            model=model,
            ledger=SharedTaskLedger(
                config.ledger_path,
                agent_name=config.agent_name,
                summary_max_chars=config.summary_max_chars,
                write_retries=config.ledger_write_retries,
            ),
            examples=TrainingExampleStore(config.training_dir),
            preconditions=PreconditionEngine(
                furnace_threshold=config.furnace_cobblestone_threshold,
                search_radius=config.block_search_radius,
            ),
            normalizer=CommandNormalizer(start_conversation_command=config.start_conversation_command),
            history_window=config.history_window,
            failure_escalation_threshold=config.failure_escalation_threshold,
            stop_sequence=config.stop_sequence,
        )

    @property
    def mission(self) -> MissionStateMachine:
        return self._mission

    @property
    def task_id(self) -> str | None:
        return self._task_id

    async def run_turn(
        self,
        turns: Sequence[ConversationTurn],
        system_prompt: str,
        world: WorldQuery,
    ) -> TurnResult:
        completed = self._mission.observe(self._last_output, self._last_expected)
        if completed:
            self._finish_task()

        intent: Intent | None = None
        if not self._mission.is_active:
            intent = await self._classifier.classify(turns, system_prompt)
            self._maybe_start(intent)

        mandatory = self._mission.mandatory_command()
        goal = self._mission.goal_item() or self._requested_item
        override = self._preconditions.evaluate(mandatory, world, goal) if mandatory else None
        missing: list[MissingPrecondition] = []
        state = self._mission.state
        if isinstance(state, ActiveMission):
            missing = self._preconditions.check_step(state.step, world)

        prompt = self._build_prompt(system_prompt, intent, mandatory, override, missing)
        raw = await self._respond(turns, prompt)
        response = self._normalizer.normalize(raw)
        self._last_output = response or None
        self._last_expected = override.command if override else mandatory

        if self._task_id and self._mission.is_active and response:
            self._ledger.update_status(
                self._task_id,
                TaskStatus.in_progress,
                {"lastResponse": response[:RESULT_EXCERPT_CHARS]},
            )

        self._telemetry.emit(
            "turn_completed",
            {
                "agent": self._agent_name,
                "active": self._mission.is_active,
                "mandatory_command": mandatory,
                "override_rule": override.rule if override else None,
            },
        )
        return TurnResult(
            response=response,
            raw_response=raw,
            prompt=prompt,
            intent=intent,
            mission=self._mission.state,
            mandatory_command=mandatory,
            override=override,
            missing=missing,
            task_id=self._task_id,
            mission_completed=completed,
        )

    def _maybe_start(self, intent: Intent | None) -> None:
        if intent is None:
            return
        if not self._mission.start(intent, self._examples.examples_for(intent)):
            return
        self._requested_item = self._keywords.extract(intent.input).item
        task = self._ledger.claim_task(self._agent_name, intent)
        self._task_id = task.id

    def _finish_task(self) -> None:
        if self._task_id is None:
            return
        excerpt = (self._last_output or "")[:RESULT_EXCERPT_CHARS]
        self._ledger.complete_task(self._task_id, excerpt)
        self._task_id = None
        self._requested_item = None

    async def _respond(self, turns: Sequence[ConversationTurn], prompt: str) -> str:
        window = list(turns)[-self._history_window :] if self._history_window > 0 else list(turns)
        try:
            return await self._model.send_request(window, prompt, self._stop_sequence) or ""
        except Exception:  # noqa: BLE001 - a failed model call yields an empty turn.
            logger.warning("model_request_failed", extra={"agent": self._agent_name}, exc_info=True)
            return ""

    def _build_prompt(
        self,
        system_prompt: str,
        intent: Intent | None,
        mandatory: str | None,
        override: Override | None,
        missing: Sequence[MissingPrecondition],
    ) -> str:
        sections = [system_prompt.rstrip()] if system_prompt.strip() else []
        if intent is not None:
            sections.append(f'The current intent is: "{intent.type.value}".')
        sections.append(
            "Behavior Guidelines:\n" + "\n".join(f"{i}. {rule}" for i, rule in enumerate(GUIDANCE_RULES, start=1))
        )

        state = self._mission.state
        if isinstance(state, ActiveMission):
            step = state.step
            sections.append(
                f"MISSION {state.plan_name}: step {state.current_step + 1}/{len(state.steps)} - {step.goal}"
            )
            if override is not None:
                sections.append(f"OVERRIDE: {override.advice}\nMANDATORY COMMAND: {override.command}")
            elif mandatory:
                sections.append(f"MANDATORY COMMAND: {mandatory}")
            if missing:
                sections.append("Unmet preconditions: " + ", ".join(item.describe() for item in missing))
            if self._mission.stalled:
                sections.append(
                    f"This step has failed {state.failures} times in a row. "
                    "Check your inventory and surroundings, then try a different approach or ask a player for help."
                )

        team = self._ledger.describe_active(exclude_agent=self._agent_name)
        if team:
            sections.append("Other agents are already working on:\n" + team)
        return "\n\n".join(sections)

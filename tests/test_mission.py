from __future__ import annotations

import logging

import pytest

from mc_mission.models import Intent, IntentType, PlanSkeleton, PlanStep
from mc_mission.planning import (
    IDLE,
    ActiveMission,
    IdleMission,
    MissionStateMachine,
    activate,
    evaluate,
    goal_item,
    mandatory_command,
)


def _intent(kind: IntentType) -> Intent:
    return Intent(id="intent_1", source="user", input="make me an iron axe", type=kind)


def _skeleton(*commands: str) -> PlanSkeleton:
    steps = tuple(
        PlanStep(index=position, goal=f"step {position}", action_cmd=(command,))
        for position, command in enumerate(commands, start=1)
    )
    return PlanSkeleton(name="iron axe", steps=steps)


PLAN = _skeleton('!collectBlocks("oak_log", 3)', '!craftRecipe("stick", 1)', '!craftRecipe("iron_axe", 1)')


def test_activation_requires_build_or_craft_intent() -> None:
    assert activate(IDLE, _intent(IntentType.COLLECT), [PLAN]) is IDLE
    assert activate(IDLE, None, [PLAN]) is IDLE

    state = activate(IDLE, _intent(IntentType.CRAFT), [PLAN])
    assert isinstance(state, ActiveMission)
    assert state.current_step == 0
    assert state.failures == 0
    assert state.steps == PLAN.steps


def test_activation_uses_first_example_with_steps() -> None:
    empty = PlanSkeleton(name="empty", steps=())

    state = activate(IDLE, _intent(IntentType.BUILD), [empty, PLAN])
    assert isinstance(state, ActiveMission)
    assert state.plan_name == "iron axe"

    assert activate(IDLE, _intent(IntentType.BUILD), [empty]) is IDLE


def test_activation_leaves_active_mission_untouched() -> None:
    active = ActiveMission(plan_name="other", steps=PLAN.steps, current_step=1)

    assert activate(active, _intent(IntentType.CRAFT), [PLAN]) is active


def test_success_advances_and_resets_failures() -> None:
    state = ActiveMission(plan_name="p", steps=PLAN.steps, current_step=0, failures=2)

    state = evaluate(state, 'Done: !collectBlocks("oak_log", 3)')

    assert isinstance(state, ActiveMission)
    assert state.current_step == 1
    assert state.failures == 0


@pytest.mark.parametrize(
    "output",
    [
        '!collectBlocks("oak_log", 3) failed',
        "I cannot reach the tree",
        "Error: path blocked",
        "I can't see any logs",
        "UNABLE TO MOVE",
        '!collectBlocks("oak_log", 2)',
    ],
)
def test_failure_keeps_step_and_counts(output: str) -> None:
    state = ActiveMission(plan_name="p", steps=PLAN.steps, current_step=0, failures=0)

    state = evaluate(state, output)

    assert isinstance(state, ActiveMission)
    assert state.current_step == 0
    assert state.failures == 1


def test_empty_output_changes_nothing() -> None:
    state = ActiveMission(plan_name="p", steps=PLAN.steps)

    assert evaluate(state, None) is state
    assert evaluate(state, "") is state
    assert evaluate(IDLE, "anything") is IDLE


def test_surfaced_command_replaces_plan_command_as_expected() -> None:
    state = ActiveMission(plan_name="p", steps=PLAN.steps, current_step=0)

    held = evaluate(state, '!collectBlocks("cobblestone", 3)')
    advanced = evaluate(state, '!collectBlocks("cobblestone", 3)', expected='!collectBlocks("cobblestone", 3)')

    assert isinstance(held, ActiveMission) and held.failures == 1
    assert isinstance(advanced, ActiveMission)
    assert advanced.current_step == 1
    assert advanced.failures == 0


def test_step_without_expected_command_succeeds_on_clean_output() -> None:
    steps = (PlanStep(index=1, goal="look around"), PlanStep(index=2, goal="report"))
    state = ActiveMission(plan_name="p", steps=steps)

    state = evaluate(state, "All clear.")

    assert isinstance(state, ActiveMission)
    assert state.current_step == 1


def test_final_step_success_returns_to_idle() -> None:
    state = ActiveMission(plan_name="p", steps=PLAN.steps, current_step=2)

    assert isinstance(evaluate(state, '!craftRecipe("iron_axe", 1)'), IdleMission)


def test_mandatory_command_and_goal_item() -> None:
    state = ActiveMission(plan_name="p", steps=PLAN.steps, current_step=1)

    assert mandatory_command(state) == '!craftRecipe("stick", 1)'
    assert goal_item(state) == "iron_axe"
    assert mandatory_command(IDLE) is None
    assert goal_item(IDLE) is None


def test_active_mission_rejects_out_of_range_step() -> None:
    with pytest.raises(ValueError):
        ActiveMission(plan_name="p", steps=PLAN.steps, current_step=3)
    with pytest.raises(ValueError):
        ActiveMission(plan_name="p", steps=())


def test_stalled_after_threshold() -> None:
    state = ActiveMission(plan_name="p", steps=PLAN.steps, failures=2)

    assert not state.stalled(3)
    assert evaluate(state, "error").stalled(3)


def test_state_machine_runs_plan_to_completion() -> None:
    machine = MissionStateMachine("bot_a")

    assert machine.start(_intent(IntentType.CRAFT), [PLAN]) is True
    assert machine.start(_intent(IntentType.CRAFT), [PLAN]) is False

    completed = []
    for command in PLAN.steps:
        completed.append(machine.observe(command.action_cmd[0]))

    assert completed == [False, False, True]
    assert not machine.is_active


def test_state_machine_warns_when_stalled(caplog: pytest.LogCaptureFixture) -> None:
    machine = MissionStateMachine("bot_a", failure_escalation_threshold=2)
    machine.start(_intent(IntentType.BUILD), [PLAN])

    with caplog.at_level(logging.WARNING, logger="mc_mission.planning.mission"):
        machine.observe("cannot do it")
        assert not machine.stalled
        machine.observe("cannot do it")

    assert machine.stalled
    assert machine.is_active
    assert any(record.getMessage() == "mission_step_stalled" for record in caplog.records)

"""CLI startup entrypoint for mc-mission."""

from __future__ import annotations

import asyncio

import typer
from rich import print

from mc_mission.adapters import EchoLanguageModel, StaticWorldQuery
from mc_mission.commands import CommandNormalizer
from mc_mission.config import settings
from mc_mission.models import ConversationTurn, Intent, IntentType, TaskStatus
from mc_mission.planning import TrainingExampleStore
from mc_mission.session import AgentSession
from mc_mission.team import SharedTaskLedger
from mc_mission.telemetry import configure_logging
from mc_mission.world import PreconditionEngine

app = typer.Typer(help="mc-mission agent tooling")


@app.callback()
def main(log_level: str = typer.Option(None, help="Override MC_MISSION_LOG_LEVEL")) -> None:
    configure_logging(log_level or settings.log_level)


def _build_ledger() -> SharedTaskLedger:
    return SharedTaskLedger(
        settings.ledger_path,
        agent_name=settings.agent_name,
        summary_max_chars=settings.summary_max_chars,
        write_retries=settings.ledger_write_retries,
    )


def _parse_items(values: list[str] | None) -> dict[str, int]:
    items: dict[str, int] = {}
    for value in values or []:
        name, sep, count = value.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"Expected name=count, got {value!r}")
        try:
            items[name.strip()] = int(count)
        except ValueError as exc:
            raise typer.BadParameter(f"Count for {name!r} must be an integer") from exc
    return items


def _build_world(items: list[str] | None, nearby: list[str] | None) -> StaticWorldQuery:
    return StaticWorldQuery(items=_parse_items(items), nearby=set(nearby or []))


def _parse_status(value: str) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError as exc:
        choices = ", ".join(status.value for status in TaskStatus)
        raise typer.BadParameter(f"Unknown status {value!r}; expected one of: {choices}") from exc


def _require(task, task_id: str):
    if task is None:
        print({"error": f"Unknown task: {task_id}"})
        raise typer.Exit(code=1)
    return task


@app.command()
def start() -> None:
    """Show runtime configuration."""
    print(
        {
            "app_name": settings.app_name,
            "agent_name": settings.agent_name,
            "ledger_path": str(settings.ledger_path),
            "training_dir": str(settings.training_dir),
            "furnace_cobblestone_threshold": settings.furnace_cobblestone_threshold,
            "failure_escalation_threshold": settings.failure_escalation_threshold,
        }
    )


@app.command("ledger-list")
def ledger_list(exclude_agent: str = typer.Option(None, help="Hide tasks owned by this agent")) -> None:
    tasks = _build_ledger().list_active(exclude_agent=exclude_agent)
    print({"active_tasks": [task.to_record() for task in tasks]})


@app.command("ledger-claim")
def ledger_claim(
    agent: str,
    summary: str,
    status: str = typer.Option(TaskStatus.planning.value, help="Initial status"),
) -> None:
    task = _build_ledger().claim_task(agent, summary=summary, status=_parse_status(status))
    print(task.to_record())


@app.command("ledger-update")
def ledger_update(task_id: str, status: str) -> None:
    task = _require(_build_ledger().update_status(task_id, _parse_status(status)), task_id)
    print(task.to_record())


@app.command("ledger-complete")
def ledger_complete(task_id: str, result: str = typer.Option(None, help="Result text to record")) -> None:
    task = _require(_build_ledger().complete_task(task_id, result), task_id)
    print(task.to_record())


@app.command("ledger-fail")
def ledger_fail(task_id: str, error: str = typer.Option(None, help="Failure reason to record")) -> None:
    task = _require(_build_ledger().fail_task(task_id, error), task_id)
    print(task.to_record())


@app.command()
def normalize(text: str) -> None:
    """Repair command syntax in model output."""
    normalizer = CommandNormalizer(start_conversation_command=settings.start_conversation_command)
    print({"normalized": normalizer.normalize(text)})


@app.command()
def examples(
    intent_type: str = typer.Argument(..., metavar="TYPE", help="Intent type, e.g. CRAFT"),
    subtype: str = typer.Option("unknown", help="Intent subtype, e.g. resource_gathering"),
) -> None:
    """Show the plan skeletons retrieved for an intent."""
    try:
        kind = IntentType(intent_type.upper())
    except ValueError as exc:
        raise typer.BadParameter(f"Unknown intent type: {intent_type}") from exc

    store = TrainingExampleStore(settings.training_dir)
    intent = Intent(id="intent_cli", source="cli", input="", type=kind, subtype=subtype)
    print(
        {
            "files": [path.name for path in store.files_for(intent)],
            "examples": [
                {"name": example.name, "source": example.source_file, "steps": [step.goal for step in example.steps]}
                for example in store.examples_for(intent)
            ],
        }
    )


@app.command()
def override(
    command: str,
    item: list[str] = typer.Option(None, help="Inventory entry as name=count; repeatable"),
    nearby: list[str] = typer.Option(None, help="Block visible near the agent; repeatable"),
    goal: str = typer.Option(None, help="Item the current mission is building towards"),
) -> None:
    """Check a proposed command against an offline world description."""
    engine = PreconditionEngine(
        furnace_threshold=settings.furnace_cobblestone_threshold,
        search_radius=settings.block_search_radius,
    )
    result = engine.evaluate(command, _build_world(item, nearby), goal)
    if result is None:
        print({"override": None, "command": command})
        return
    print({"override": result.rule, "command": result.command, "goal": result.goal, "advice": result.advice})


@app.command()
def turn(
    message: str,
    response: str = typer.Option(None, help="Canned model reply; defaults to echoing the message"),
    item: list[str] = typer.Option(None, help="Inventory entry as name=count; repeatable"),
    nearby: list[str] = typer.Option(None, help="Block visible near the agent; repeatable"),
) -> None:
    """Run one offline turn through the full session pipeline."""
    session = AgentSession.from_settings(EchoLanguageModel(response), settings)
    result = asyncio.run(
        session.run_turn(
            [ConversationTurn(role="user", content=message)],
            "",
            _build_world(item, nearby),
        )
    )
    print(
        {
            "intent": result.intent.as_dict() if result.intent else None,
            "mission_active": session.mission.is_active,
            "mandatory_command": result.mandatory_command,
            "override": result.override.command if result.override else None,
            "response": result.response,
            "task_id": result.task_id,
        }
    )


if __name__ == "__main__":
    app()

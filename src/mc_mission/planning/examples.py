"""Loads plan skeletons for an intent from the per-category example files."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from mc_mission.models import Intent, IntentType, PlanSkeleton, PlanStep

logger = logging.getLogger("mc_mission.planning.examples")

BUILD_FILE = "build_examples.json"
CRAFTING_FILE = "crafting_examples.json"
COOKING_FILE = "cooking_examples.json"
COLLECTION_FILE = "collecting_examples.json"
COMBAT_FILE = "combat_examples.json"

INTENT_TO_FILE: dict[IntentType, str] = {
    IntentType.BUILD: BUILD_FILE,
    IntentType.CRAFT: CRAFTING_FILE,
    IntentType.COOK: COOKING_FILE,
    IntentType.COLLECT: COLLECTION_FILE,
    IntentType.COMBAT: COMBAT_FILE,
}

# Companion files: builds need crafted materials, crafting/cooking need raw resources.
COMPANION_FILES: dict[IntentType, tuple[str, ...]] = {
    IntentType.BUILD: (CRAFTING_FILE,),
    IntentType.CRAFT: (COLLECTION_FILE,),
    IntentType.COOK: (COLLECTION_FILE,),
}

RESOURCE_GATHERING = "resource gathering"


def _normalize_subtype(subtype: str) -> str:
    return " ".join(subtype.replace("_", " ").replace("-", " ").lower().split())


def _as_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(item) for item in value)


def parse_step(raw: dict[str, Any], position: int) -> PlanStep:
    verify = raw.get("verify_cmd")
    return PlanStep(
        index=int(raw.get("step", position)),
        goal=str(raw.get("goal", "")),
        preconditions=_as_tuple(raw.get("preconditions")),
        action_cmd=_as_tuple(raw.get("action_cmd")),
        verify_cmd=_as_tuple(verify) if verify is not None else None,
    )


def parse_example(raw: dict[str, Any], source_file: str | None = None) -> PlanSkeleton:
    steps = tuple(parse_step(step, position) for position, step in enumerate(raw.get("plan") or [], start=1))
    return PlanSkeleton(
        name=str(raw.get("name", "")),
        steps=steps,
        slug=raw.get("slug"),
        rationale=raw.get("rationale"),
        source_file=source_file,
    )


class TrainingExampleStore:
    """Maps intents to example files and returns one plan-bearing skeleton per file."""

    def __init__(self, training_dir: str | Path) -> None:
        self._training_dir = Path(training_dir)

    @property
    def training_dir(self) -> Path:
        return self._training_dir

    def file_names_for(self, intent: Intent) -> list[str]:
        names = [INTENT_TO_FILE.get(intent.type, BUILD_FILE)]
        if _normalize_subtype(intent.subtype) == RESOURCE_GATHERING:
            names.append(COLLECTION_FILE)
        names.extend(COMPANION_FILES.get(intent.type, ()))
        return list(dict.fromkeys(names))

    def files_for(self, intent: Intent) -> list[Path]:
        return [self._training_dir / name for name in self.file_names_for(intent)]

    def examples_for(self, intent: Intent | None) -> list[PlanSkeleton]:
        if intent is None:
            return []

        examples: list[PlanSkeleton] = []
        for path in self.files_for(intent):
            skeleton = self._first_plan(path)
            if skeleton is not None:
                examples.append(skeleton)
        logger.debug(
            "examples_loaded",
            extra={"intent_type": intent.type.value, "count": len(examples)},
        )
        return examples

    def _first_plan(self, path: Path) -> PlanSkeleton | None:
        if not path.exists():
            logger.debug("examples_file_missing", extra={"path": str(path)})
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            for raw in payload if isinstance(payload, list) else []:
                if isinstance(raw, dict) and raw.get("plan"):
                    return parse_example(raw, source_file=path.name)
        except (OSError, ValueError, TypeError, AttributeError) as exc:
            logger.warning("examples_file_unreadable", extra={"path": str(path), "error": str(exc)})
        return None

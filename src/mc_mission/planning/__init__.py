"""Intent classification, plan skeletons and mission tracking."""

from .classifier import IntentClassifier
from .examples import TrainingExampleStore
from .keywords import KeywordExtractor, Keywords
from .mission import (
    IDLE,
    ActiveMission,
    IdleMission,
    MissionState,
    MissionStateMachine,
    activate,
    evaluate,
    goal_item,
    mandatory_command,
)

__all__ = [
    "IDLE",
    "ActiveMission",
    "IdleMission",
    "IntentClassifier",
    "KeywordExtractor",
    "Keywords",
    "MissionState",
    "MissionStateMachine",
    "TrainingExampleStore",
    "activate",
    "evaluate",
    "goal_item",
    "mandatory_command",
]

"""Value types shared by the conversation engines and planners."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EmotionType(Enum):
    """Emotion attached to a reply, used to pick the avatar's expression."""

    HAPPY = "happy"
    NEUTRAL = "neutral"
    SAD = "sad"
    ANGRY = "angry"
    SLEEPY = "sleepy"
    DOUBT = "doubt"
    UNDEFINED = "undefined"


_EMOTIONS_BY_LABEL = {emotion.value: emotion for emotion in EmotionType}


def emotion_from_label(label: str) -> EmotionType:
    """Map a model-supplied label such as ``"happy"`` to an :class:`EmotionType`.

    Matching is exact; anything unrecognised becomes ``UNDEFINED``.
    """
    if not isinstance(label, str):
        return EmotionType.UNDEFINED
    return _EMOTIONS_BY_LABEL.get(label, EmotionType.UNDEFINED)


@dataclass(frozen=True)
class LLMResponse:
    """A reply to be spoken, together with the emotion it carries."""

    message: str = ""
    emotion: EmotionType = EmotionType.NEUTRAL


@dataclass(frozen=True)
class Message:
    """A single chat turn: ``role`` is system, user or assistant."""

    role: str = ""
    content: str = ""


class IntentType(Enum):
    """What kind of conversation a planned topic starts."""

    CHAT = "chat"
    TASK = "task"
    UNKNOWN = "unknown"


@dataclass
class PlannedTopic:
    """Something a planner wants the robot to say on its own."""

    text: str = ""
    intent: IntentType = IntentType.UNKNOWN


class InteractionState(Enum):
    """Where the robot is in a conversation turn."""

    IDLE = "idle"
    LISTENING = "listening"
    SPEAKING = "speaking"
    THINKING = "thinking"
"""Lets planners speak when the robot is free."""

from __future__ import annotations

from abc import ABC, abstractmethod

from robochat.engine_manager import EngineManager
from robochat.models import InteractionState
from robochat.planners import Planner


class SpeechOutput(ABC):
    """Where text to be spoken goes."""

    @abstractmethod
    def is_speaking(self) -> bool:
        """Whether speech is currently playing."""

    @abstractmethod
    def enqueue_text(self, text: str) -> None:
        """Queue ``text`` to be spoken."""


class PlannerScheduler:
    """Ticks planners in order and speaks the first topic one of them has ready."""

    def __init__(self, engine_manager: EngineManager, speech: SpeechOutput) -> None:
        self._engine_manager = engine_manager
        self._speech = speech
        self._planners: list[Planner] = []

    def add_planner(self, planner: Planner) -> None:
        self._planners.append(planner)

    def tick(self) -> None:
        """Do nothing while the robot is busy; otherwise speak the first ready topic."""
        if not self._engine_manager.can_talk() or self._speech.is_speaking():
            return

        for planner in self._planners:
            planner.tick()
            if planner.has_topic():
                topic = planner.get_topic()
                self._speech.enqueue_text(topic.text)
                self._engine_manager.state = InteractionState.SPEAKING
                planner.reset_timing()
                break
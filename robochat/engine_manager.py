"""Routes each utterance to the engine registered for its intent."""

from __future__ import annotations

import logging

from robochat.chat_engine import Engine
from robochat.models import EmotionType, InteractionState, LLMResponse

log = logging.getLogger(__name__)

FALLBACK_REPLY = "ごめんね、よくわからなかったよ。"


class EngineManager:
    """Classifies the user's intent and lets the matching engine answer."""

    def __init__(self, classifier) -> None:
        self._classifier = classifier
        self._engines: dict[str, Engine] = {}
        self.state = InteractionState.IDLE

    def register_engine(self, intent_name: str, engine: Engine) -> None:
        self._engines[intent_name] = engine

    def handle(self, user_input: str) -> LLMResponse:
        """Answer ``user_input`` with the engine for its intent, or a fallback apology."""
        self.state = InteractionState.LISTENING
        intent = self._classifier.classify(user_input, sorted(self._engines))
        log.info("Intent classified as: %s", intent)

        engine = self._engines.get(intent)
        if engine is not None:
            response = engine.generate_reply(user_input)
        else:
            response = LLMResponse(FALLBACK_REPLY, EmotionType.HAPPY)

        self.state = InteractionState.SPEAKING
        return response

    def can_talk(self) -> bool:
        """Whether the robot is free to start speaking on its own."""
        return self.state is InteractionState.IDLE
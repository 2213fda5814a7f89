"""Engines that produce a reply to what the user said."""

from __future__ import annotations

from abc import ABC, abstractmethod

from robochat.llm_engine import LLMEngine, LLMError
from robochat.models import LLMResponse

DEFAULT_TOPIC = "chat"


class Engine(ABC):
    """Anything that can answer a user's utterance."""

    @abstractmethod
    def generate_reply(self, user_input: str) -> LLMResponse:
        """Return the reply to ``user_input``."""


class ChatEngine(Engine):
    """Free conversation, kept per topic and saved after every successful reply."""

    def __init__(self, llm: LLMEngine) -> None:
        self._llm = llm
        llm.switch_topic(DEFAULT_TOPIC)

    @property
    def llm(self) -> LLMEngine:
        return self._llm

    @property
    def current_topic(self) -> str:
        return self._llm.current_topic

    def generate_reply(self, user_input: str) -> LLMResponse:
        self._llm.add_user_message(user_input)
        try:
            response = self._llm.send_and_receive()
        except LLMError as err:
            return err.response
        self._llm.save_history(self._llm.history_file)
        return response

    def switch_topic(self, topic: str) -> None:
        self._llm.switch_topic(topic)
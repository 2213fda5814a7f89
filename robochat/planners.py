"""Planners that decide what the robot says on its own initiative."""

from __future__ import annotations

import dataclasses
import logging
import random
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from enum import Enum, auto
from typing import Callable

from robochat.models import IntentType, LLMResponse, PlannedTopic

log = logging.getLogger(__name__)

TASK_PROMPT = "そろそろこのタスクやりましょうか？"
THOUGHT_INTERVAL = 600.0

_MUSING_PROMPT = (
    "スタックチャンが、意味があるようでないような、ちょっと不思議なことを自然に言ってください。"
)
_PROMPT_SUFFIX = (
    "\n前後の説明は不要で、スタックチャンが自然に独り言を言うようにしてください。"
    "ポエムっぽいものはいらないです。どちらかというと豆知識的な。"
    "1度に話すのは１つのトピックでいいですよ。"
)

_TOPIC_KEYWORDS = (
    ("天気", ("晴", "雨")),
    ("学校", ("宿題", "学校")),
    ("遊び", ("ゲーム", "遊")),
)
_OTHER_TOPIC = "その他"


def classify_topic(content: str) -> str:
    """Sort an utterance into a rough topic by keyword."""
    for topic, keywords in _TOPIC_KEYWORDS:
        if any(keyword in content for keyword in keywords):
            return topic
    return _OTHER_TOPIC


class Planner(ABC):
    """Something that, when ticked, may come up with a topic to talk about."""

    @abstractmethod
    def tick(self) -> None:
        """Advance the planner."""

    @abstractmethod
    def has_topic(self) -> bool:
        """Whether a topic is ready."""

    @abstractmethod
    def get_topic(self) -> PlannedTopic:
        """Take the ready topic."""

    @abstractmethod
    def reset_timing(self) -> None:
        """Restart the planner's timing after it has spoken."""


class TaskPlanner(Planner):
    """Reminds the user once about a task that is due."""

    def __init__(self) -> None:
        self._task_due_soon = True
        self._already_asked = False
        self._next_topic = PlannedTopic()

    def tick(self) -> None:
        if self._task_due_soon and not self._already_asked:
            self._next_topic.text = TASK_PROMPT
            self._next_topic.intent = IntentType.TASK
            self._already_asked = True

    def has_topic(self) -> bool:
        return bool(self._next_topic.text)

    def get_topic(self) -> PlannedTopic:
        topic = dataclasses.replace(self._next_topic)
        self._next_topic.text = ""
        return topic

    def reset_timing(self) -> None:
        """The reminder is not timed."""


class _State(Enum):
    IDLE = auto()
    PROMPTING = auto()
    WAITING = auto()
    READY = auto()


class ThoughtPlanner(Planner):
    """Periodically requests an unprompted remark from the LLM engine."""

    def __init__(
        self,
        llm,
        interval: float = THOUGHT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        rng: random.Random | None = None,
    ) -> None:
        self._llm = llm
        self._interval = interval
        self._clock = clock
        self._rng = rng if rng is not None else random.Random()
        self._state = _State.IDLE
        self._current_topic = PlannedTopic()
        self._last_trigger = clock()

    def tick(self) -> None:
        if self._state is _State.IDLE:
            now = self._clock()
            if now - self._last_trigger > self._interval:
                log.info("Triggering LLM request")
                self._last_trigger = now
                self._state = _State.WAITING
                self._request()
        else:
            log.debug("Tick in state %s", self._state.name)

    def has_topic(self) -> bool:
        return self._state is _State.READY

    def get_topic(self) -> PlannedTopic:
        log.info("Returning topic: %s", self._current_topic.text)
        self._state = _State.IDLE
        return dataclasses.replace(self._current_topic)

    def reset_timing(self) -> None:
        self._last_trigger = self._clock()

    def _request(self) -> None:
        prompt = self.build_prompt()
        log.debug("Sending prompt to LLM: %s", prompt)
        self._llm.generate(prompt, self._on_response)

    def _on_response(self, response: LLMResponse) -> None:
        log.info("Received response from LLM: %s", response.message)
        self._current_topic = PlannedTopic(response.message, IntentType.CHAT)
        self._state = _State.READY

    def build_prompt(self) -> str:
        """The prompt asking for a remark."""
        return _MUSING_PROMPT + _PROMPT_SUFFIX

    def recent_phrases(self) -> str:
        """Up to two quoted phrases from one randomly chosen topic of the conversation."""
        by_topic: dict[str, list[str]] = defaultdict(list)
        for message in self._llm.history:
            if message.role in ("user", "assistant"):
                by_topic[classify_topic(message.content)].append(message.content)
        if not by_topic:
            return ""

        topics = sorted(by_topic)
        selected = topics[self._rng.randrange(len(topics))]
        phrases = by_topic[selected]
        result = "".join(
            f"「{phrases[self._rng.randrange(len(phrases))]}」" for _ in range(min(2, len(phrases)))
        )
        log.debug("Selected topic %s, sampled phrases %s", selected, result)
        return result
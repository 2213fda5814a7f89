"""Conversation engine that keeps a bounded history and talks to a chat-completion API."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Callable

import requests

from robochat.models import EmotionType, LLMResponse, Message, emotion_from_label

log = logging.getLogger(__name__)

API_URL = "https://api.openai.com/v1/chat/completions"
MODEL = "gpt-4o-mini"
MAX_MESSAGES = 10
REQUEST_TIMEOUT = 60.0

DEFAULT_SYSTEM_PROMPT = (
    "あなたはスーパーかわいいAIアシスタントロボット、スタックチャンです。"
    "かわいいく話、元気づけてください。返信はPlanなJSON形式で、messageと emotion で返却してください。"
    "emotionは happy, sad, angry, sleepy, doubt, neutral のいずれかを返してください。"
)

CONFUSED_REPLY = "考えてたけどよくわかんなくなっちゃった。"


class LLMError(Exception):
    """A request failed; ``response`` holds the reply to give the user instead."""

    def __init__(self, response: LLMResponse) -> None:
        super().__init__(response.message)
        self.response = response


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def parse_reply_content(content: str) -> LLMResponse:
    """Turn the model's reply text into an :class:`LLMResponse`.

    A surrounding Markdown code fence is removed. A JSON object supplies
    ``message`` and ``emotion``; any other text is taken as the message itself
    with a neutral emotion.
    """
    if content.startswith("```"):
        start = content.find("\n")
        end = content.rfind("```")
        if start != -1 and end != -1 and end > start:
            content = content[start + 1 : end].strip()

    try:
        inner = json.loads(content)
    except ValueError:
        return LLMResponse(content, EmotionType.NEUTRAL)
    if not isinstance(inner, dict):
        return LLMResponse(content, EmotionType.NEUTRAL)

    label = inner.get("emotion")
    return LLMResponse(
        _as_text(inner.get("message")),
        emotion_from_label(label if isinstance(label, str) else ""),
    )


def _reply_content(body: Any) -> str:
    try:
        return _as_text(body["choices"][0]["message"]["content"])
    except (KeyError, IndexError, TypeError):
        return ""


class LLMEngine:
    """Keeps one conversation per topic and sends it to the chat-completion API."""

    def __init__(
        self,
        api_key: str,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        history_dir: str | Path = ".",
        session: requests.Session | None = None,
    ) -> None:
        self._api_key = api_key
        self._system_prompt = system_prompt
        self._history_dir = Path(history_dir)
        self._session = session if session is not None else requests.Session()
        self._history: list[Message] = []
        self._current_topic = ""
        self.reset_conversation()

    @property
    def history(self) -> list[Message]:
        """A copy of the conversation, oldest first."""
        return list(self._history)

    @property
    def current_topic(self) -> str:
        return self._current_topic

    @property
    def history_file(self) -> Path:
        """Where the current topic's conversation is stored."""
        return self._history_dir / f"history_{self._current_topic}.json"

    def add_user_message(self, content: str) -> None:
        self._history.append(Message("user", content))
        self._trim_history()

    def add_assistant_message(self, content: str) -> None:
        self._history.append(Message("assistant", content))
        self._trim_history()

    def reset_conversation(self) -> None:
        """Drop the conversation, keeping only the system prompt if there is one."""
        self._history = [Message("system", self._system_prompt)] if self._system_prompt else []

    def _trim_history(self) -> None:
        # The first entry is kept: it is the system prompt.
        while len(self._history) > MAX_MESSAGES:
            del self._history[1]

    def build_payload(self) -> dict[str, Any]:
        """The request body for the current conversation."""
        return {"model": MODEL, "messages": [asdict(message) for message in self._history]}

    def send_and_receive(self) -> LLMResponse:
        """Send the conversation and record the reply as the assistant's turn.

        Raises :class:`LLMError` if the request or the reply fails.
        """
        try:
            reply = self._session.post(
                API_URL,
                json=self.build_payload(),
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise LLMError(LLMResponse("Error: HTTP -1", EmotionType.SAD)) from exc

        if reply.status_code != 200:
            raise LLMError(LLMResponse(f"Error: HTTP {reply.status_code}", EmotionType.SAD))

        try:
            body = reply.json()
        except ValueError as exc:
            raise LLMError(LLMResponse(CONFUSED_REPLY, EmotionType.SAD)) from exc

        content = _reply_content(body)
        log.debug("Content: %s", content)
        response = parse_reply_content(content)
        self.add_assistant_message(response.message)
        return response

    def save_history(self, path: str | Path) -> None:
        """Write the conversation to ``path`` as a JSON array."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        data = [asdict(message) for message in self._history]
        target.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")

    def load_history(self, path: str | Path) -> None:
        """Replace the conversation with the one stored at ``path``.

        Raises ``OSError`` if the file cannot be read and ``ValueError`` if it
        does not hold a JSON array of messages.
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, list) or not all(isinstance(entry, dict) for entry in data):
            raise ValueError(f"{path}: expected a JSON array of messages")
        self._history = [
            Message(_as_text(entry.get("role")), _as_text(entry.get("content"))) for entry in data
        ]

    def switch_topic(self, topic: str) -> None:
        """Save the current topic's conversation and continue the stored one for ``topic``."""
        if self._current_topic:
            self.save_history(self.history_file)
        self._current_topic = topic
        try:
            self.load_history(self.history_file)
        except (OSError, ValueError):
            log.info("New topic started: %s", topic)
            self.reset_conversation()

    def set_system_prompt(self, prompt: str) -> None:
        """Change the system prompt; the conversation starts over."""
        self._system_prompt = prompt
        self.reset_conversation()

    def generate(self, prompt: str, callback: Callable[[LLMResponse], Any]) -> None:
        """Add ``prompt`` as the user's turn and pass the reply, or the error reply, to ``callback``."""
        self.add_user_message(prompt)
        try:
            response = self.send_and_receive()
        except LLMError as err:
            response = err.response
        callback(response)
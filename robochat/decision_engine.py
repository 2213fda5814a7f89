"""Language-model engine that can answer in text or by calling registered functions."""

from __future__ import annotations

import copy
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Iterable

import requests

from robochat.llm_engine import API_URL, CONFUSED_REPLY, REQUEST_TIMEOUT, LLMError
from robochat.models import EmotionType, LLMResponse

log = logging.getLogger(__name__)

DECISION_MODEL = "gpt-4o-mini"

FunctionHandler = Callable[[dict], Any]
DynamicSystemRoleProvider = Callable[[], str]


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


class FunctionProvider(ABC):
    """A source of functions that the model may call."""

    @abstractmethod
    def register_functions(self, engine: LLMDecisionEngine) -> None:
        """Register this provider's functions with ``engine``."""


@dataclass
class FunctionSpec:
    """A callable function offered to the model, with its JSON parameter schema."""

    description: str
    parameter_schema: dict
    handler: FunctionHandler

    def __post_init__(self) -> None:
        self.parameter_schema = copy.deepcopy(self.parameter_schema)


class LLMDecisionEngine:
    """Keeps a conversation and lets the model choose between replying and calling a tool."""

    def __init__(self, api_key: str, session: requests.Session | None = None) -> None:
        self._api_key = api_key
        self._session = session if session is not None else requests.Session()
        self._messages: list[dict[str, Any]] = []
        self._response: Any = {}
        self._tools: list[dict[str, Any]] | None = None
        self._tool_choice: str | None = None
        self._function_call_pending = False
        self._dynamic_roles: list[DynamicSystemRoleProvider] = []
        self._temporary_messages: list[str] = []
        self._functions: dict[str, FunctionSpec] = {}
        self._system_prompt = ""
        self._providers: list[FunctionProvider] = []

    @property
    def history(self) -> list[dict[str, Any]]:
        """A copy of the conversation messages, oldest first."""
        return copy.deepcopy(self._messages)

    @property
    def functions(self) -> dict[str, FunctionSpec]:
        """The registered functions by name."""
        return dict(self._functions)

    def set_system_prompt(self, prompt: str) -> None:
        """Set the system prompt; the conversation starts over with it."""
        self._system_prompt = prompt
        self._rebuild_history()

    def _rebuild_history(self) -> None:
        self._messages = []
        if self._system_prompt:
            self._messages.append({"role": "system", "content": self._system_prompt})

    def add_message(self, role: str, user: str, content: str) -> None:
        """Append a message; ``user`` names the speaker of user and assistant turns."""
        message: dict[str, Any] = {"role": role, "content": content}
        if user and role in ("user", "assistant"):
            message["name"] = user
        self._messages.append(message)

    def clear_history(self, keep_system_prompt: bool = True) -> None:
        """Empty the conversation, optionally keeping the system prompt."""
        log.debug("clear_history called, keep_system_prompt=%s", keep_system_prompt)
        self._messages = []
        if keep_system_prompt and self._system_prompt:
            self._rebuild_history()

    def add_function_message(self, name: str, content: str) -> None:
        """Append the result of a function call to the conversation."""
        self._messages.append({"role": "function", "name": name, "content": content})
        log.debug("Added function message: name=%s, content=%s", name, content)

    def register_function(
        self,
        name: str,
        description: str,
        parameter_schema: dict,
        handler: FunctionHandler,
    ) -> None:
        """Offer a function to the model; a name already registered is kept as it is."""
        self._functions.setdefault(name, FunctionSpec(description, parameter_schema, handler))

    def set_active_providers(self, providers: Iterable[FunctionProvider]) -> None:
        self._providers = list(providers)

    def build_function_schema(self) -> None:
        """Re-register functions from the active providers and rebuild the tool list."""
        self._functions.clear()
        for provider in self._providers:
            provider.register_functions(self)

        self._tool_choice = "auto"
        self._tools = [
            {
                "type": "function",
                "function": {
                    "name": name,
                    "description": spec.description,
                    "parameters": copy.deepcopy(spec.parameter_schema),
                },
            }
            for name, spec in sorted(self._functions.items())
        ]

    def build_request(self) -> dict[str, Any]:
        """The request body for the current conversation and tools."""
        return {
            "model": DECISION_MODEL,
            "messages": copy.deepcopy(self._messages),
            "tool_choice": self._tool_choice,
            "tools": copy.deepcopy(self._tools),
        }

    def add_dynamic_system_role(self, provider: DynamicSystemRoleProvider) -> None:
        """Add a provider of context that is sent as a system message with each request."""
        self._dynamic_roles.append(provider)

    def _inject_dynamic_system_roles(self) -> None:
        self._temporary_messages = []
        for provider in self._dynamic_roles:
            context = provider()
            if context:
                self.add_message("system", "", context)
                self._temporary_messages.append(context)

    def remove_temporary_system_roles(self) -> None:
        """Drop the system messages added from dynamic providers by the last request."""
        if not self._temporary_messages:
            return
        temporary = set(self._temporary_messages)
        self._messages = [
            message
            for message in self._messages
            if not (message.get("role") == "system" and _text(message.get("content")) in temporary)
        ]
        self._temporary_messages = []

    def _send(self, payload: dict[str, Any]) -> Any:
        log.debug("Sending request to LLM: %s", payload)
        try:
            reply = self._session.post(
                API_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise LLMError(LLMResponse(CONFUSED_REPLY, EmotionType.SAD)) from exc
        log.debug("Received response from LLM: %s", reply.text)
        try:
            return json.loads(reply.text)
        except ValueError as exc:
            log.warning("Failed to parse response: %s", exc)
            raise LLMError(LLMResponse(CONFUSED_REPLY, EmotionType.SAD)) from exc

    def _reply_message(self) -> dict[str, Any]:
        try:
            message = self._response["choices"][0]["message"]
        except (KeyError, IndexError, TypeError):
            return {}
        return message if isinstance(message, dict) else {}

    def _tool_function(self) -> dict[str, Any]:
        try:
            function = self._reply_message()["tool_calls"][0]["function"]
        except (KeyError, IndexError, TypeError):
            return {}
        return function if isinstance(function, dict) else {}

    def evaluate(self) -> str | None:
        """Send the conversation and return the model's text reply.

        Returns ``None`` when the model asked for a function call instead; the
        call is then pending. Raises :class:`LLMError` if no reply could be read.
        """
        self.build_function_schema()
        self._inject_dynamic_system_roles()
        self._response = self._send(self.build_request())

        message = self._reply_message()
        if message.get("tool_calls") is not None:
            self._function_call_pending = True
            return None
        return _text(message.get("content"))

    def is_function_call(self) -> bool:
        """Whether the last reply asked for a function call that has not run yet."""
        return self._function_call_pending

    def function_name(self) -> str:
        """Name of the function the model asked for, or an empty string."""
        return _text(self._tool_function().get("name"))

    def function_arguments(self) -> dict[str, Any]:
        """Arguments of the requested call; empty if they are missing or malformed."""
        raw = self._tool_function().get("arguments")
        if not isinstance(raw, str):
            log.warning("Function arguments missing")
            return {}
        try:
            arguments = json.loads(raw)
        except ValueError as exc:
            log.warning("Failed to parse function arguments: %s", exc)
            return {}
        return arguments if isinstance(arguments, dict) else {}

    def execute_function(self) -> bool:
        """Run the requested function; ``False`` if no such function is registered."""
        spec = self._functions.get(self.function_name())
        if spec is None:
            return False
        spec.handler(self.function_arguments())
        self._function_call_pending = False
        return True
"""Intent classification of user utterances through the chat-completion API."""

from __future__ import annotations

import logging

import requests

from robochat.llm_engine import API_URL, REQUEST_TIMEOUT

log = logging.getLogger(__name__)

CLASSIFIER_MODEL = "gpt-3.5-turbo"
UNKNOWN_INTENT = "unknown"

_PROMPT_HEAD = (
    "次の発言が以下の分類のうちどれに該当するかを判定してください。"
    "返答は分類名を1語だけ返してください。候補："
)


def build_intent_prompt(intents) -> str:
    """The system prompt listing the candidate intents."""
    return _PROMPT_HEAD + "、".join(f"'{intent}'" for intent in intents)


class IntentClassifier:
    """Asks the chat API which of a set of intents an utterance belongs to."""

    def __init__(self, api_key: str, session: requests.Session | None = None) -> None:
        self._api_key = api_key
        self._session = session if session is not None else requests.Session()

    def classify(self, user_input: str, intents) -> str:
        """Return the chosen intent, trimmed and lower-cased, or ``"unknown"``."""
        payload = {
            "model": CLASSIFIER_MODEL,
            "messages": [
                {"role": "system", "content": build_intent_prompt(intents)},
                {"role": "user", "content": user_input},
            ],
        }
        try:
            reply = self._session.post(
                API_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            log.warning("Intent request failed: %s", exc)
            return UNKNOWN_INTENT

        if reply.status_code != 200:
            return UNKNOWN_INTENT
        try:
            content = reply.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            return UNKNOWN_INTENT
        if not isinstance(content, str):
            return UNKNOWN_INTENT
        return content.strip().lower()
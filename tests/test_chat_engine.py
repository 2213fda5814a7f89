import json

import pytest
import responses

from robochat.chat_engine import ChatEngine, Engine
from robochat.llm_engine import API_URL, LLMEngine
from robochat.models import EmotionType, LLMResponse


def _completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def chat(tmp_path):
    return ChatEngine(LLMEngine(api_key="placeholder", history_dir=tmp_path))


def test_engine_is_abstract():
    with pytest.raises(TypeError):
        Engine()


def test_starts_on_chat_topic(chat):
    assert chat.current_topic == "chat"
    assert chat.llm.current_topic == "chat"


def test_reply_is_returned_and_history_saved(chat, tmp_path):
    reply = json.dumps({"message": "げんき！", "emotion": "happy"}, ensure_ascii=False)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, API_URL, json=_completion(reply))
        response = chat.generate_reply("元気？")
    assert response == LLMResponse("げんき！", EmotionType.HAPPY)
    saved = json.loads((tmp_path / "history_chat.json").read_text(encoding="utf-8"))
    assert saved[-2:] == [
        {"role": "user", "content": "元気？"},
        {"role": "assistant", "content": "げんき！"},
    ]


def test_error_reply_is_returned_and_nothing_saved(chat, tmp_path):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, API_URL, status=503)
        response = chat.generate_reply("hello")
    assert response == LLMResponse("Error: HTTP 503", EmotionType.SAD)
    assert not (tmp_path / "history_chat.json").exists()


def test_switch_topic_saves_previous(chat, tmp_path):
    chat.switch_topic("school")
    assert chat.current_topic == "school"
    assert (tmp_path / "history_chat.json").exists()
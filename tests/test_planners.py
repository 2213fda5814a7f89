import random

import pytest

from robochat.models import IntentType, LLMResponse, Message
from robochat.planners import TaskPlanner, ThoughtPlanner, classify_topic


class FakeLLM:
    def __init__(self, history=(), reply="fun fact"):
        self.history = list(history)
        self.reply = reply
        self.prompts = []

    def generate(self, prompt, callback):
        self.prompts.append(prompt)
        callback(LLMResponse(self.reply))


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.mark.parametrize(
    "content, topic",
    [
        ("今日は晴れ", "天気"),
        ("雨が降ってる", "天気"),
        ("宿題おわった", "学校"),
        ("学校たのしい", "学校"),
        ("ゲームしよう", "遊び"),
        ("公園で遊ぶ", "遊び"),
        ("おなかすいた", "その他"),
    ],
)
def test_classify_topic(content, topic):
    assert classify_topic(content) == topic


def test_task_planner_asks_once():
    planner = TaskPlanner()
    assert planner.has_topic() is False
    planner.tick()
    assert planner.has_topic() is True
    topic = planner.get_topic()
    assert topic.text == "そろそろこのタスクやりましょうか？"
    assert topic.intent is IntentType.TASK
    assert planner.has_topic() is False
    planner.tick()
    assert planner.has_topic() is False


def test_thought_planner_waits_for_interval():
    llm = FakeLLM()
    clock = FakeClock()
    planner = ThoughtPlanner(llm, interval=10.0, clock=clock)
    clock.now = 10.0
    planner.tick()
    assert planner.has_topic() is False
    assert llm.prompts == []

    clock.now = 10.5
    planner.tick()
    assert planner.has_topic() is True
    assert llm.prompts == [planner.build_prompt()]
    topic = planner.get_topic()
    assert topic.text == "fun fact"
    assert topic.intent is IntentType.CHAT
    assert planner.has_topic() is False


def test_thought_planner_restarts_interval_after_trigger():
    llm = FakeLLM()
    clock = FakeClock()
    planner = ThoughtPlanner(llm, interval=10.0, clock=clock)
    clock.now = 11.0
    planner.tick()
    planner.get_topic()
    clock.now = 15.0
    planner.tick()
    assert len(llm.prompts) == 1
    clock.now = 22.0
    planner.tick()
    assert len(llm.prompts) == 2


def test_reset_timing_delays_next_thought():
    llm = FakeLLM()
    clock = FakeClock()
    planner = ThoughtPlanner(llm, interval=10.0, clock=clock)
    clock.now = 8.0
    planner.reset_timing()
    clock.now = 12.0
    planner.tick()
    assert llm.prompts == []
    clock.now = 18.5
    planner.tick()
    assert len(llm.prompts) == 1


def test_no_new_request_while_topic_is_ready():
    llm = FakeLLM()
    clock = FakeClock()
    planner = ThoughtPlanner(llm, interval=1.0, clock=clock)
    clock.now = 5.0
    planner.tick()
    clock.now = 50.0
    planner.tick()
    assert len(llm.prompts) == 1
    assert planner.has_topic() is True


def test_prompt_asks_for_a_remark():
    planner = ThoughtPlanner(FakeLLM(), clock=FakeClock())
    prompt = planner.build_prompt()
    assert prompt.startswith("スタックチャンが")
    assert "前後の説明は不要で" in prompt


def test_recent_phrases_empty_without_user_turns():
    llm = FakeLLM([Message("system", "prompt")])
    planner = ThoughtPlanner(llm, clock=FakeClock(), rng=random.Random(1))
    assert planner.recent_phrases() == ""


def test_recent_phrases_single_phrase():
    llm = FakeLLM([Message("system", "prompt"), Message("user", "晴れだね")])
    planner = ThoughtPlanner(llm, clock=FakeClock(), rng=random.Random(1))
    assert planner.recent_phrases() == "「晴れだね」"


def test_recent_phrases_samples_two_from_one_topic():
    history = [
        Message("user", "晴れだね"),
        Message("assistant", "雨はやだね"),
        Message("user", "晴れがいい"),
    ]
    planner = ThoughtPlanner(FakeLLM(history), clock=FakeClock(), rng=random.Random(3))
    result = planner.recent_phrases()
    parts = result.removeprefix("「").removesuffix("」").split("」「")
    assert len(parts) == 2
    assert set(parts) <= {m.content for m in history}
from robochat.engine_manager import EngineManager
from robochat.models import IntentType, InteractionState, PlannedTopic
from robochat.planners import Planner, TaskPlanner
from robochat.scheduler import PlannerScheduler, SpeechOutput


class FakeSpeech(SpeechOutput):
    def __init__(self, speaking=False):
        self.speaking = speaking
        self.queue = []

    def is_speaking(self):
        return self.speaking

    def enqueue_text(self, text):
        self.queue.append(text)


class RecordingPlanner(Planner):
    def __init__(self, text):
        self.text = text
        self.ticks = 0
        self.resets = 0

    def tick(self):
        self.ticks += 1

    def has_topic(self):
        return bool(self.text)

    def get_topic(self):
        return PlannedTopic(self.text, IntentType.CHAT)

    def reset_timing(self):
        self.resets += 1


def test_speaks_planned_topic_and_becomes_busy():
    manager = EngineManager(classifier=None)
    speech = FakeSpeech()
    scheduler = PlannerScheduler(manager, speech)
    scheduler.add_planner(TaskPlanner())
    scheduler.tick()
    assert speech.queue == ["そろそろこのタスクやりましょうか？"]
    assert manager.state is InteractionState.SPEAKING
    assert manager.can_talk() is False


def test_nothing_happens_while_speaking():
    manager = EngineManager(classifier=None)
    speech = FakeSpeech(speaking=True)
    planner = RecordingPlanner("hello")
    scheduler = PlannerScheduler(manager, speech)
    scheduler.add_planner(planner)
    scheduler.tick()
    assert planner.ticks == 0
    assert speech.queue == []
    assert manager.state is InteractionState.IDLE


def test_nothing_happens_when_not_idle():
    manager = EngineManager(classifier=None)
    manager.state = InteractionState.LISTENING
    speech = FakeSpeech()
    planner = RecordingPlanner("hello")
    scheduler = PlannerScheduler(manager, speech)
    scheduler.add_planner(planner)
    scheduler.tick()
    assert planner.ticks == 0
    assert speech.queue == []
    assert manager.state is InteractionState.LISTENING


def test_first_ready_planner_wins():
    manager = EngineManager(classifier=None)
    speech = FakeSpeech()
    quiet = RecordingPlanner("")
    first = RecordingPlanner("first")
    second = RecordingPlanner("second")
    scheduler = PlannerScheduler(manager, speech)
    for planner in (quiet, first, second):
        scheduler.add_planner(planner)
    scheduler.tick()
    assert speech.queue == ["first"]
    assert (quiet.ticks, first.ticks, second.ticks) == (1, 1, 0)
    assert first.resets == 1
    assert quiet.resets == 0


def test_no_topic_leaves_state_idle():
    manager = EngineManager(classifier=None)
    speech = FakeSpeech()
    planner = RecordingPlanner("")
    scheduler = PlannerScheduler(manager, speech)
    scheduler.add_planner(planner)
    scheduler.tick()
    scheduler.tick()
    assert planner.ticks == 2
    assert speech.queue == []
    assert manager.can_talk() is True
# robochat

The conversation core of a small talking robot. It talks to an
OpenAI-style chat-completions endpoint. The modules are:

- `robochat.models`: the shared value types. These are `LLMResponse`
  (message and `EmotionType`), `Message`, `PlannedTopic`, `IntentType`
  and `InteractionState`. The function `emotion_from_label` maps labels
  such as `"happy"` to an `EmotionType`.
- `robochat.llm_engine`: `LLMEngine` keeps a rolling chat history of at
  most 10 messages. The system prompt is always kept as the first
  message. `LLMEngine` sends the history to the model and reads replies
  shaped as `{"message": ..., "emotion": ...}`. Such a reply may be
  wrapped in a Markdown code fence. Any other reply text becomes the
  message, with a neutral emotion. `parse_reply_content` does this
  reading on its own.
- `robochat.intent`: `IntentClassifier` asks the model which of several
  intent names fits an utterance. It returns the answer trimmed and
  lower-cased. It returns `"unknown"` on any failure.
- `robochat.chat_engine`: `Engine` is the interface for anything that
  answers an utterance. `ChatEngine` keeps free conversation per topic
  and starts on the topic `"chat"`.
- `robochat.engine_manager`: `EngineManager` classifies an utterance and
  passes it to the engine registered for that intent.
- `robochat.decision_engine`: `LLMDecisionEngine` lets the model call
  functions that you have registered, with a JSON schema and a handler.
- `robochat.planners` and `robochat.scheduler`: `TaskPlanner`,
  `ThoughtPlanner` and `PlannerScheduler` let the robot start talking on
  its own when it is idle.

## Install

```
pip install robochat
```

## Chatting

```python
from robochat.llm_engine import LLMEngine
from robochat.chat_engine import ChatEngine
from robochat.intent import IntentClassifier
from robochat.engine_manager import EngineManager

llm = LLMEngine(api_key="placeholder", history_dir="history")
chat = ChatEngine(llm)

manager = EngineManager(IntentClassifier(api_key="placeholder"))
manager.register_engine("chat", chat)

reply = manager.handle("今日はいい天気だね")
print(reply.message, reply.emotion)
```

`handle` sets `manager.state` to `InteractionState.LISTENING` while it
works. It sets the state to `InteractionState.SPEAKING` before it
returns. If the classified intent has no registered engine, the reply is
a fixed apology.

### History storage

Each topic's history is kept as a JSON array of `{"role", "content"}`
objects in `<history_dir>/history_<topic>.json`.

- `switch_topic(topic)` first saves the current topic. It then loads the
  stored history of the new topic. If there is none, it starts fresh
  with only the system prompt.
- `ChatEngine` saves the history after every successful reply.
- `save_history(path)` and `load_history(path)` work on any file you
  name.

### Errors

`LLMEngine.send_and_receive()` raises `LLMError` when the request fails.
It does so on a non-200 status and on a body that is not JSON. The
exception's `response` attribute holds a reply that you can give the
user instead.

`ChatEngine.generate_reply` and `LLMEngine.generate(prompt, callback)`
do not raise. They return, or pass on, that error reply.

## Tool calls

```python
from robochat.decision_engine import LLMDecisionEngine

engine = LLMDecisionEngine(api_key="placeholder")
engine.set_system_prompt("You are a helpful robot.")
engine.register_function(
    "set_face",
    "Change the robot's facial expression",
    {"type": "object", "properties": {"face": {"type": "string"}}},
    lambda args: print("face ->", args["face"]),
)
engine.add_message("user", "", "Look happy!")
content = engine.evaluate()
if engine.is_function_call():
    engine.execute_function()
else:
    print(content)
```

How `evaluate()` behaves:

- It returns the model's text.
- It returns `None` when the model asked for a function call. The call
  is then pending, and `function_name()` and `function_arguments()`
  describe it.
- It raises `LLMError` when no reply could be read.

How functions are registered:

- Before every request, `build_function_schema()` clears the registered
  functions. It registers them again from the providers given to
  `set_active_providers`, which are `FunctionProvider` objects.
- A function that you register directly, as in the example above, is
  therefore not among the tools the model is offered. To offer it, put
  it in a provider's `register_functions` instead.

How dynamic system messages work:

- Callables added with `add_dynamic_system_role` are run before each
  request.
- Each non-empty string they return is appended as a system message.
- `remove_temporary_system_roles()` removes those messages again.

## Spontaneous talk

```python
from robochat.models import InteractionState
from robochat.planners import ThoughtPlanner, TaskPlanner
from robochat.scheduler import PlannerScheduler

scheduler = PlannerScheduler(manager, speech)  # speech implements SpeechOutput
scheduler.add_planner(ThoughtPlanner(llm))
scheduler.add_planner(TaskPlanner())

scheduler.tick()
# once the robot has finished speaking:
manager.state = InteractionState.IDLE
```

`speech` is an implementation of `robochat.scheduler.SpeechOutput`, with
`is_speaking()` and `enqueue_text(text)`.

`tick()` does nothing unless `manager.can_talk()` is true and speech is
not playing. Otherwise it ticks the planners in order. The first planner
with a topic ready has its text queued for speech and its timing reset,
and the manager's state becomes `SPEAKING`. The scheduler never sets the
state back to `IDLE`; your own code must do that.

The two planners:

- `TaskPlanner` offers a single reminder once.
- `ThoughtPlanner` asks the LLM engine for an unprompted remark when
  `interval` seconds (600 by default) have passed since its last
  trigger. You can supply the clock (`clock`) and the random source
  (`rng`).
- `ThoughtPlanner.recent_phrases()` samples up to two phrases from one
  topic of the conversation. `classify_topic` sorts the conversation
  into those topics by keyword.

## What this package does not do

- It has no speech synthesis, speech recognition, display or avatar.
  Speech output comes in only through the `SpeechOutput` interface you
  provide.
- It provides no command-line program or main loop. You call `tick()`
  and `handle()` from your own code.
- It does not store API keys; pass them in yourself.

## Running the tests

```
pip install robochat[test]
pytest
```
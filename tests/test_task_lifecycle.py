# tests/test_task_lifecycle.py

from __future__ import annotations

import pytest

from moroutines.core.errors import ConstructionError, InvalidOperationError, SequenceError
from moroutines.core.runtime import init
from moroutines.tasks import task_api
from moroutines.tasks.suspension import WaitTicks
from moroutines.tasks.task import Task
from moroutines.tasks.task_models import TaskEvent, TaskState

from .fakes import Recorder, journaled, sequence_of

SINGLE_STATES = (
    TaskState.RESET,
    TaskState.RUNNING,
    TaskState.STOPPED,
    TaskState.COMPLETED,
    TaskState.DESTROYED,
)


def _assert_single_state(task: Task) -> None:
    assert task.state in SINGLE_STATES
    flags = [task.is_reset, task.is_running, task.is_stopped, task.is_completed, task.is_destroyed]
    assert flags.count(True) == 1


def _results(task: Task, driver) -> list:
    """Run the task to its end, recording last_result after every step."""
    out = []
    task.run()
    out.append(task.last_result)
    while task.is_running:
        driver.tick()
        out.append(task.last_result)
    return out


def test_three_step_sequence_completes_on_third_tick(runtime, driver) -> None:
    task = task_api.create(runtime, sequence_of("a", "b", "c"))
    assert task.is_reset

    task.run()
    assert task.is_running
    assert task.last_result == "a"

    driver.tick()
    driver.tick()
    assert task.is_running
    assert task.last_result == "c"

    driver.tick()
    assert task.is_completed
    assert task.last_result == "c"


def test_exactly_one_state_holds_through_the_lifecycle(runtime, driver) -> None:
    task = task_api.create(runtime, sequence_of(1, 2, 3))
    _assert_single_state(task)

    for op in (task.run, driver.tick, task.stop, task.run, driver.tick, driver.tick, task.reset, task.destroy):
        op()
        _assert_single_state(task)


def test_rerun_reproduces_the_same_results(runtime, driver) -> None:
    direct = _results(task_api.create(runtime, sequence_of(1, 2, 3)), driver)

    task = task_api.create(runtime, sequence_of(1, 2, 3))
    first = _results(task, driver)
    assert task.is_completed

    task.reset()
    assert task.last_result is None
    second = _results(task, driver)

    assert first == second == direct == [1, 2, 3, 3]


def test_stop_then_run_resumes_without_duplicating_or_skipping(runtime, driver) -> None:
    journal: list[int] = []
    task = task_api.run(runtime, journaled(journal, 5))
    driver.tick()
    driver.tick()
    assert journal == [1, 2, 3]

    task.stop()
    driver.tick()
    driver.tick()
    assert journal == [1, 2, 3]
    assert task.last_result == 3

    task.run()
    assert journal == [1, 2, 3, 4]

    driver.run_until_idle()
    assert journal == [1, 2, 3, 4, 5]
    assert task.is_completed


def test_run_while_running_is_a_no_op(runtime, driver) -> None:
    journal: list[int] = []
    task = task_api.run(runtime, journaled(journal, 5))
    generation = task.run_generation

    task.run()

    assert task.run_generation == generation
    assert journal == [1]
    assert driver.active_count == 1


def test_stale_stepper_is_ignored_after_stop_and_run(runtime, driver) -> None:
    journal: list[int] = []
    task = task_api.run(runtime, journaled(journal, 10))
    task.stop()
    task.run()
    assert journal == [1, 2]
    assert driver.active_count == 1

    driver.tick()
    assert journal == [1, 2, 3]


def test_destroy_is_idempotent(runtime) -> None:
    task = task_api.run(runtime, sequence_of(1, 2, 3))
    destroyed = Recorder()
    task.on_destroyed(destroyed)

    task.destroy()
    task.destroy()

    assert task.is_destroyed
    assert destroyed.count == 1
    assert task not in runtime.registry.all_tasks()
    assert task.last_result is None


def test_auto_destroy_happens_on_the_completing_step(runtime, driver) -> None:
    task = task_api.create(runtime, sequence_of(1, 2, 3), auto_destroy=True)
    seen: list[str] = []
    for kind in TaskEvent:
        task.subscribe(kind, lambda t, kind=kind: seen.append(kind.value))

    task.run()
    driver.tick()
    driver.tick()
    assert task.is_running

    driver.tick()
    assert task.is_destroyed
    assert seen == ["running", "completed", "destroyed"]
    assert len(runtime.registry) == 0


def test_single_use_iterator_defaults_to_auto_destroy_and_ignores_reset(runtime, driver) -> None:
    task = task_api.run(runtime, iter([1, 2, 3]))
    assert task.auto_destroy is True
    assert task.is_resettable is False

    task.stop()
    task.reset()
    assert task.is_stopped
    assert task.last_result == 1

    task.run()
    driver.run_until_idle()
    assert task.is_destroyed


def test_settings_default_auto_destroy_applies_to_rerunnable_tasks(settings, driver) -> None:
    settings.default_auto_destroy = True
    rt = init(settings, driver=driver)
    try:
        assert task_api.create(rt, sequence_of(1)).auto_destroy is True
        assert task_api.create(rt, sequence_of(1), auto_destroy=False).auto_destroy is False
    finally:
        rt.shutdown()


def test_run_on_completed_task(runtime, driver) -> None:
    task = task_api.run(runtime, sequence_of("x", "y"))
    driver.run_until_idle()
    assert task.is_completed

    with pytest.raises(InvalidOperationError):
        task.run(rerun_if_completed=False)
    assert task.is_completed

    task.run()
    assert task.is_running
    assert task.last_result == "x"


def test_control_calls_on_destroyed_task_raise(runtime, owner) -> None:
    task = task_api.create(runtime, sequence_of(1))
    task.destroy()

    for op in (task.run, task.stop, task.reset, task.rerun, lambda: task.set_owner(owner)):
        with pytest.raises(InvalidOperationError):
            op()
    assert task.is_destroyed


def test_stop_on_idle_task_is_a_no_op(runtime) -> None:
    task = task_api.create(runtime, sequence_of(1))
    stopped = Recorder()
    task.on_stopped(stopped)

    task.stop()

    assert task.is_reset
    assert stopped.count == 0


def test_reset_returns_to_the_start(runtime, driver) -> None:
    task = task_api.run(runtime, sequence_of(1, 2, 3))
    driver.tick()
    generation = task.cursor_generation

    task.reset()

    assert task.is_reset
    assert task.cursor_generation == generation + 1
    assert driver.active_count == 0
    task.run()
    assert task.last_result == 1


def test_rerun_restarts_a_running_task(runtime, driver) -> None:
    task = task_api.run(runtime, sequence_of(1, 2, 3))
    driver.tick()
    assert task.last_result == 2

    assert task.rerun() is task
    assert task.is_running
    assert task.last_result == 1


@pytest.mark.parametrize("bad", [None, 42, "not a sequence", lambda: None, lambda: 5])
def test_construction_rejects_unusable_sequences(runtime, bad) -> None:
    with pytest.raises(ConstructionError):
        Task(runtime, bad)
    assert len(runtime.registry) == 0


def test_sequence_failure_stops_the_task_and_surfaces_after_the_tick(runtime, driver) -> None:
    def boom():
        yield 1
        raise RuntimeError("boom")

    journal: list[int] = []
    failing = task_api.run(runtime, boom, name="failing")
    healthy = task_api.run(runtime, journaled(journal, 5))
    stopped = Recorder()
    failing.on_stopped(stopped)

    with pytest.raises(SequenceError) as info:
        driver.tick()

    assert info.value.task is failing
    assert isinstance(info.value.cause, RuntimeError)
    assert failing.is_stopped
    assert failing.error is info.value.cause
    assert stopped.count == 1
    # The rest of the tick still ran.
    assert journal == [1, 2]
    assert healthy.is_running


def test_listeners_run_in_order_and_can_detach(runtime) -> None:
    task = task_api.create(runtime, sequence_of(1, 2))
    order: list[str] = []
    first = task.on_running(lambda t: order.append("first"))
    task.on_running(lambda t: order.append("second"))

    task.run()
    first.detach()
    task.stop()
    task.run()

    assert order == ["first", "second", "second"]
    assert first.active is False


def test_listener_receives_the_task(runtime) -> None:
    task = task_api.create(runtime, sequence_of(1, 2))
    running = Recorder()
    task.on_running(running)

    task.run()

    assert running.calls == [(task,)]


def test_yielding_a_task_waits_for_its_completion(runtime, driver) -> None:
    child = task_api.create(runtime, sequence_of(1, 2), name="child")

    def parent():
        yield child
        yield "after"

    waiting = task_api.run(runtime, parent, name="parent")
    child.run()

    driver.tick()
    driver.tick()
    assert child.is_completed
    assert waiting.last_result is child

    driver.tick()
    assert waiting.last_result == "after"


def test_yielded_suspension_source_holds_the_cursor(runtime, driver) -> None:
    def sleeper():
        yield WaitTicks(3)
        yield "awake"

    task = task_api.run(runtime, sleeper)
    driver.tick()
    driver.tick()
    assert isinstance(task.last_result, WaitTicks)

    driver.tick()
    assert task.last_result == "awake"


def test_nested_generator_runs_inline(runtime, driver) -> None:
    def inner():
        yield "i1"
        yield "i2"

    def outer():
        yield inner()
        yield "o"

    task = task_api.run(runtime, outer)
    driver.run_until_idle()

    assert task.is_completed
    assert task.last_result == "o"


def test_naming_and_chaining(runtime) -> None:
    task = task_api.create(runtime, sequence_of(1))

    assert task.set_name("loader").set_auto_destroy(True) is task
    assert task.label == "loader"
    assert task.auto_destroy is True
    assert "loader" in repr(task)


def test_runtime_shutdown_destroys_everything(runtime, driver, owner) -> None:
    a = task_api.run(runtime, sequence_of(1, 2, 3))
    b = task_api.create(runtime, sequence_of(1), owner)

    runtime.shutdown()

    assert a.is_destroyed and b.is_destroyed
    assert len(runtime.registry) == 0
    assert driver.active_count == 0
    with pytest.raises(InvalidOperationError):
        task_api.create(runtime, sequence_of(1))


def test_sequence_can_stop_and_rerun_its_own_task(runtime, driver) -> None:
    box: dict[str, Task] = {}

    def body():
        yield 1
        me = box["task"]
        me.stop()
        me.run()
        yield 2

    task = task_api.create(runtime, body)
    box["task"] = task
    task.run()

    driver.tick()
    assert task.is_running
    assert task.error is None
    assert task.last_result == 2
    assert driver.active_count == 1

    driver.tick()
    assert task.is_completed
    assert driver.active_count == 0


class FlakyIterable:
    """Iterable that can only be iterated once."""

    def __init__(self, *values) -> None:
        self.values = values
        self.calls = 0

    def __iter__(self):
        self.calls += 1
        if self.calls > 1:
            raise OSError("source gone")
        return iter(self.values)


def test_failed_reset_leaves_a_running_task_untouched(runtime, driver) -> None:
    task = task_api.run(runtime, FlakyIterable(1, 2, 3, 4))

    with pytest.raises(ConstructionError, match="source gone"):
        task.reset()

    assert task.is_running
    assert driver.active_count == 1
    driver.tick()
    assert task.last_result == 2


def test_destroy_and_reset_close_the_old_generator(runtime, driver) -> None:
    closed: list[str] = []

    def inner():
        try:
            yield "inner"
            yield "inner again"
        finally:
            closed.append("inner")

    def body():
        try:
            yield 1
            yield inner()
            yield 2
        finally:
            closed.append("body")

    task = task_api.run(runtime, body)
    task.reset()
    assert closed == ["body"]

    task.run()
    driver.tick()
    driver.tick()
    assert closed == ["body"]
    task.destroy()
    assert closed == ["body", "inner", "body"]


def test_reset_from_inside_the_sequence_closes_it_after_the_step(runtime, driver) -> None:
    closed: list[str] = []
    box: dict[str, Task] = {}

    def body():
        try:
            yield 1
            box["task"].reset()
            yield 2
        finally:
            closed.append("body")

    task = task_api.create(runtime, body)
    box["task"] = task
    task.run()

    driver.tick()

    assert task.is_reset
    assert task.error is None
    assert closed == ["body"]
    assert driver.active_count == 0

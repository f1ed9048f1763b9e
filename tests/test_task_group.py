# tests/test_task_group.py

from __future__ import annotations

import logging

from moroutines.core.errors import InvalidOperationError
from moroutines.tasks import task_api
from moroutines.tasks.owner import Owner
from moroutines.tasks.task_group import TaskGroup
from moroutines.tasks.task_models import TaskState

from .fakes import Recorder, sequence_of


def test_mixed_states_fail_every_conjunction(runtime, driver) -> None:
    done_a = task_api.run(runtime, sequence_of(1))
    done_b = task_api.run(runtime, sequence_of(1))
    paused = task_api.run(runtime, sequence_of(1, 2, 3)).stop()
    driver.tick()

    group = task_api.to_group([done_a, done_b, paused])

    assert done_a.is_completed and done_b.is_completed and paused.is_stopped
    assert group.is_completed is False
    assert group.is_running is False
    assert group.is_stopped is False


def test_empty_group_satisfies_every_conjunction() -> None:
    group = TaskGroup()

    assert group.is_reset and group.is_running and group.is_completed and group.is_destroyed
    assert group.owner is None
    assert len(group) == 0


def test_bulk_control_applies_to_every_member(runtime, driver) -> None:
    group = task_api.to_group(task_api.create_many(runtime, sequence_of(1, 2), sequence_of(1, 2, 3)))

    assert group.run() is group
    assert group.is_running
    group.stop()
    assert group.is_stopped
    group.reset()
    assert group.is_reset

    group.run()
    driver.run_until_idle()
    assert group.is_completed

    group.destroy()
    assert group.is_destroyed
    assert len(runtime.registry) == 0


def test_group_events_fire_once_per_pass(runtime) -> None:
    group = task_api.to_group(task_api.create_many(runtime, sequence_of(1, 2), sequence_of(1, 2)))
    running, stopped = Recorder(), Recorder()
    group.on_running(running)
    group.on_stopped(stopped)

    group.run()
    group.stop()
    group.stop()

    assert running.calls == [(group,)]
    assert stopped.count == 2


def test_bulk_operation_continues_past_invalid_members(runtime, caplog) -> None:
    first = task_api.create(runtime, sequence_of(1, 2))
    gone = task_api.create(runtime, sequence_of(1, 2))
    last = task_api.create(runtime, sequence_of(1, 2))
    gone.destroy()
    group = TaskGroup([first, gone, last])

    with caplog.at_level(logging.WARNING, logger="moroutines.tasks.task_group"):
        group.run()

    assert first.is_running and last.is_running
    assert len(group.failures) == 1
    failed_task, error = group.failures[0]
    assert failed_task is gone
    assert isinstance(error, InvalidOperationError)
    assert "skipped" in caplog.text

    group.stop()
    assert [t for t, _ in group.failures] == [gone]


def test_rerun_keeps_failures_from_both_passes(runtime) -> None:
    ok = task_api.run(runtime, sequence_of(1, 2, 3))
    gone = task_api.create(runtime, sequence_of(1))
    gone.destroy()
    group = TaskGroup([ok, gone])

    group.rerun()

    assert ok.is_running and ok.last_result == 1
    assert [t for t, _ in group.failures] == [gone, gone]


def test_common_owner(runtime, owner) -> None:
    a = task_api.create(runtime, sequence_of(1), owner)
    b = task_api.create(runtime, sequence_of(1), owner)
    group = TaskGroup([a, b])
    assert group.owner is owner
    assert group.is_owned

    b.set_owner(Owner("elsewhere"))
    assert group.owner is None

    group.set_owner(owner)
    assert group.owner is owner

    group.make_unowned()
    assert group.owner is None
    assert not group.is_owned
    assert group.unowned_tasks() == [a, b]
    assert group.unowned_tasks(TaskState.RUNNING) == []


def test_auto_destroy_property(runtime) -> None:
    group = TaskGroup(task_api.create_many(runtime, sequence_of(1), sequence_of(2)))
    assert group.auto_destroy is False

    group.set_auto_destroy(True)
    assert all(t.auto_destroy for t in group)

    group.auto_destroy = False
    assert group.auto_destroy is False


def test_membership(runtime) -> None:
    a, b, c = task_api.create_many(runtime, sequence_of(1), sequence_of(2), sequence_of(3))
    group = TaskGroup([a])

    group.add(b).extend([c])
    assert list(group) == [a, b, c]

    group.remove(b).remove(b)
    assert list(group) == [a, c]


def test_wait_for_complete_snapshots_members(runtime, driver) -> None:
    group = task_api.to_group(task_api.run_many(runtime, sequence_of(1), sequence_of(1, 2)))
    waiter = group.wait_for_complete()
    late = task_api.create(runtime, sequence_of(1))
    group.add(late)

    assert waiter.advance() is True
    driver.run_until_idle()

    assert waiter.advance() is False
    assert late.is_reset
    assert group.is_completed is False


def test_group_wait_builders(runtime) -> None:
    group = task_api.to_group(task_api.run_many(runtime, sequence_of(1, 2, 3), sequence_of(1, 2, 3)))
    stop = group.wait_for_stop()
    destroy = group.wait_for_destroy()

    group.stop()
    assert stop.advance() is False
    run = group.wait_for_run()
    assert run.advance() is True
    group.run()
    assert run.advance() is False

    reset = group.wait_for_reset()
    group.reset()
    assert reset.advance() is False

    assert destroy.advance() is True
    group.destroy()
    assert destroy.advance() is False


def test_raising_member_listener_is_recorded_and_the_pass_continues(runtime, caplog) -> None:
    noisy = task_api.create(runtime, sequence_of(1, 2))
    quiet = task_api.create(runtime, sequence_of(1, 2))

    def explode(task) -> None:
        raise ValueError("listener broke")

    noisy.on_running(explode)
    group = TaskGroup([noisy, quiet])
    running = Recorder()
    group.on_running(running)

    with caplog.at_level(logging.WARNING, logger="moroutines.tasks.task_group"):
        group.run()

    assert quiet.is_running and quiet.last_result == 1
    assert running.calls == [(group,)]
    [(failed_task, error)] = group.failures
    assert failed_task is noisy
    assert isinstance(error, ValueError)
    assert "failed on" in caplog.text

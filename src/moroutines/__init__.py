"""
moroutines: controllable cooperative tasks driven by a tick loop.

Typical use:

    runtime = moroutines.init()
    task = moroutines.run(runtime, my_generator_function)
    runtime.driver.tick()
"""

from .config import Settings, get_settings
from .core.errors import ConstructionError, InvalidOperationError, MoroutineError, SequenceError
from .core.runtime import Runtime, init
from .tasks.owner import Owner
from .tasks.suspension import WaitSeconds, WaitTicks, WaitUntil, WaitWhile, as_suspension
from .tasks.task import Task
from .tasks.task_api import create, create_many, run, run_many, tasks_for, to_group, unowned_tasks
from .tasks.task_group import TaskGroup
from .tasks.task_models import TaskEvent, TaskState
from .tasks.task_scheduler import TickDriver, run_driver
from .tasks.waiters import WaitForAll, WaitForAny

__all__ = [
    "ConstructionError",
    "InvalidOperationError",
    "MoroutineError",
    "Owner",
    "Runtime",
    "SequenceError",
    "Settings",
    "Task",
    "TaskEvent",
    "TaskGroup",
    "TaskState",
    "TickDriver",
    "WaitForAll",
    "WaitForAny",
    "WaitSeconds",
    "WaitTicks",
    "WaitUntil",
    "WaitWhile",
    "as_suspension",
    "create",
    "create_many",
    "get_settings",
    "init",
    "run",
    "run_driver",
    "run_many",
    "tasks_for",
    "to_group",
    "unowned_tasks",
]

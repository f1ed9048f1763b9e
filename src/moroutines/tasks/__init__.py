"""
Task subsystem.

Components:
- task_models.py: state flags and event kinds (TaskState, TaskEvent)
- task.py: the Task state machine and its cursor
- task_registry.py: owner -> tasks ledger, reacts to owner deactivation/teardown
- task_scheduler.py: deterministic tick driver + asyncio polling loop
- suspension.py / awaiters.py / waiters.py: everything a task can yield and wait on
- task_group.py: bulk control over many tasks
- task_api.py: small high-level factory helpers used by the rest of the package
"""

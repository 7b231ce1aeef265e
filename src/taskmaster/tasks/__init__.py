"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Subtask, enums, input/patch types)
- task_store.py: in-memory owner of the task list, persisted through a blob port
- task_query.py: search / filter / sort pipeline producing the display list
- recurrence.py: next-occurrence date math for recurring tasks
- selection.py, stats.py, formatting.py, demo.py: helpers used by the front-end
"""

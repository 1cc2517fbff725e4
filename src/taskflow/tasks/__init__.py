"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, TaskPriority), validation, JSON codec
- task_repo.py: the canonical task collection + create/update/delete/reorder
- ordering.py: drag-and-drop move computation (pure)
- projection.py: search / priority filtering and per-column grouping (pure)
- stats.py: board statistics derived from a snapshot
- task_api.py: small high-level helpers used by the presentation layer
"""

"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, StatusCatalog)
- task_lifecycle.py: transition table + async controller delegating to the API
"""

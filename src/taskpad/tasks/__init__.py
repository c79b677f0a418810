"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Category, Priority) and the JSON blob codec
- task_store.py: in-memory owner of tasks/categories, mutations, load/reload
- task_persistence.py: ordered fire-and-forget writes to the key-value store
- task_query.py: pure filtering/lookup helpers used by the list view
"""

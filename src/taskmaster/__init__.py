"""
taskmaster: a single-user task list manager.

Subpackages:
- tasks: records, the task store and the query engine (the core)
- storage: key-value blob backends the store persists through
- core: ports and application state
- cli / connectors: console front-end
"""

__version__ = "0.1.0"

"""
Core wiring.

- ports.py: Protocols the task store depends on (storage, clock, warnings)
- state.py: AppState composed by the CLI bootstrap
"""

"""
Console entrypoint.

- bootstrap.py: composition root (settings -> storage -> store -> AppState)
- commands.py: slash-command registry and handlers
- main.py: the `taskmaster` console script
"""

"""Front-end connectors driving the task store (currently: the console REPL)."""

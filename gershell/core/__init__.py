"""Core state shared by the shell: history, progress and logging."""

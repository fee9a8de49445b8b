"""Core tasklist functionality: configuration and task persistence."""

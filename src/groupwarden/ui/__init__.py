"""
User interface components for Groupwarden.

- **console.py**: Interactive operator console. Shows status, rooms and
  moderation logs, restores messages, answers alerts, runs sweeps and handles
  graceful shutdown/restart. Uses prompt_toolkit for non-blocking I/O.
"""

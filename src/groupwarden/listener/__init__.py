"""
Transport event handling.

- **event_listener.py**: Routes inbound messages and joins to moderation,
  verification and admin reply handling.
- **room_directory.py**: Caches room names and ids and answers admin lookups.
"""

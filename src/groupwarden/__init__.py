"""
Groupwarden: content governance for group chats.

Subpackages:

- **ai**: classification gateway and prompts for the OpenAI-compatible backend.
- **configuration**: YAML application configuration and AI settings.
- **database**: SQLite connection management, schema and aggregate queries.
- **datatypes**: verdicts, classifications, chat events, ledger and verification records.
- **listener**: routing of transport events and the room directory.
- **media**: frame extraction for GIFs and videos.
- **moderation**: spam heuristics, the moderation pipeline, ledger and admin replies.
- **repositories**: static SQL helpers per table.
- **scheduler**: the background expiry sweeper.
- **transport**: the chat transport interface.
- **ui**: interactive operator console.
- **util**: logging, locks, image and formatting helpers.
- **verification**: image challenges and the verification state machine.
"""

"""
Utility functions and helpers for Groupwarden.

- **logger.py**: Colored console output, rotating file handlers, per-session logs.
- **errors.py**: Exception hierarchy.
- **keyed_lock.py**: Per-key asyncio locks.
- **image_utils.py**: Pillow helpers that shrink and re-encode images as JPEG.
- **format_utils.py**: Phone and identity formatting, masking and hashing.
"""

"""
Background tasks.

- **expiry_sweeper.py**: Periodically removes participants whose verification
  challenge expired.
"""

"""
New participant verification.

- **challenge.py**: Image challenge generation with Pillow.
- **localization.py**: English and Dutch verification texts.
- **verification_manager.py**: The pending/verified state machine and expiry sweep.
"""

"""
Moderation for Groupwarden.

- **spam_detector.py**: Local link, caps and repeat heuristics.
- **moderation_pipeline.py**: Ordered media and text stages producing a verdict.
- **moderation_parsing.py**: JSON extraction and schema validation of model replies.
- **moderation_ledger.py**: Moderation log access and message restore.
- **admin_response.py**: Administrator dispositions (ignore, ban, mute).
- **notifications.py**: User notices, admin alerts and admin reply parsing.
"""

"""
Configuration for Groupwarden.

- **app_configuration.py**: File-locked YAML loader with typed accessors for
  rooms, admins, verification, spam thresholds, media and the transport factory.
- **ai_settings.py**: Accessors for the classification backend section.
"""

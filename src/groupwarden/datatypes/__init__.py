"""Plain data types shared across Groupwarden packages."""

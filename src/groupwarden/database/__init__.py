"""
Database package for Groupwarden.

Provides the SQLite connection manager, schema creation and the ``Database``
facade used by the console and the listener for aggregate queries.
"""

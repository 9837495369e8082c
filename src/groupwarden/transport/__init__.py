"""The ``ChatTransport`` protocol the engine drives."""

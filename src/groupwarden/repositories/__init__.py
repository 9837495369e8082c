"""Static SQL helpers, one class per table, each taking an open connection."""

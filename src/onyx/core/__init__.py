"""Core timer logic: values, countdown state, coordination and persistence."""

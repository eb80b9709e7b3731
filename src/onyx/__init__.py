"""onyx: countdown timers for tracking study time per subject."""

__version__ = "0.1.0"

"""Schedule availability and intent execution engine for a prayer-anchored planner."""

__version__ = "0.1.0"

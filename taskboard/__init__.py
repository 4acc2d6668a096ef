"""Task board backend: lane-ordered tasks with a field-level audit trail."""

__version__ = "1.0.0"

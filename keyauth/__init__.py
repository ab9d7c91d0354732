"""keyauth: issues, tracks and revokes time-bounded access keys through chat commands."""

__version__ = "1.0.0"

"""Ship-gate intelligence for tracked GitHub repositories."""

__version__ = "0.1.0"

"""skillctl: keep skill directories in sync between a global root and targets."""

__version__ = "0.1.0"

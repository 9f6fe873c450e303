"""Source-level package manager for C/C++ projects."""

__version__ = "0.3.0"

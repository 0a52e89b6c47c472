"""Combine labeled GitLab merge requests into a single branch on webhook demand."""

__version__ = "0.1.0"

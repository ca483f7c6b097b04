"""MAIASS: AI-assisted commit, version bump and changelog pipeline for git repositories."""

__version__ = "0.1.0"

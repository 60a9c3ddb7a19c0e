"""
Learning Path Tracker.

Domain model for teacher-authored learning paths, their activities, and
per-student progress, with JSONL persistence and a small CLI.
"""

from .config.loader import load_settings

__all__ = ["load_settings"]

"""
Update Resolution & Safety Engine.

This package decides which version of a dependency or runtime platform an
update should move a project to, and protects project state with a
backup/restore protocol while the update is attempted.
"""

__version__ = "0.1.0"

"""Discovery services module.

Contains skill discovery and installation.
"""
from .skills import discover_skills, install_skills

__all__ = [
    'discover_skills',
    'install_skills',
]

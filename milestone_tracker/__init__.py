"""
Milestone tracking for video games: note matching, confirmation, progress
"""

__version__ = "0.1.0"

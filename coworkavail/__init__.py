"""
coworkavail - booking availability and conflict resolution for coworking spaces.
"""

__version__ = "0.1.0"

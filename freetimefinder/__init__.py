"""
freetimefinder - find the weekly windows when a group of students is free.
"""

__version__ = "0.1.0"

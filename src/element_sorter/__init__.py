"""
Element Sorter - reorder the members of Java classes
"""

__version__ = "1.0.0"

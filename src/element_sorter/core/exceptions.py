"""
Exception types for Element Sorter
"""


class ElementSorterError(Exception):
    """Base class for all sorter errors"""


class SourceParseError(ElementSorterError):
    """Raised when source text cannot be parsed into a class tree"""


class StructuralEditError(ElementSorterError):
    """Raised when an edit would touch a node that is no longer resident"""

"""
All-or-nothing edit boundary around a source document.
"""

import logging

from element_sorter.core.source_model import SourceDocument

logger = logging.getLogger(__name__)


class EditTransaction:
    """Context manager that restores the document when the edit fails.

    Usage:
        with EditTransaction(document):
            reorganizer.reorganize(document)

    On any exception the type declarations are restored from the snapshot taken
    on enter, pending arena edits are dropped, and the exception propagates.
    """

    def __init__(self, document: SourceDocument):
        self.document = document
        self._snapshot = None
        self.committed = False

    def __enter__(self) -> "EditTransaction":
        self._snapshot = self.document.snapshot()
        self.committed = False
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        if exc_type is None:
            self.committed = True
            self._snapshot = None
            return False

        logger.debug(f"Rolling back edit after {exc_type.__name__}: {exc_value}")
        self.document.restore(self._snapshot)
        self._snapshot = None
        return False

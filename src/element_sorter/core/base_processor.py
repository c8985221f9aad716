"""
Base processor interface for source file operations
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from element_sorter.core.config import Config

logger = logging.getLogger(__name__)


class ProcessingStatus(Enum):
    """Status of processing operation"""

    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"
    NO_CHANGES = "no_changes"


@dataclass
class ProcessResult:
    """Result of processing one source file"""

    file_path: Path
    status: ProcessingStatus
    changes_applied: int = 0
    changes_details: list[dict[str, Any]] = field(default_factory=list)
    message: str | None = None
    error_message: str | None = None
    backup_path: Path | None = None

    @property
    def is_success(self) -> bool:
        """Check if processing was successful"""
        return self.status in [ProcessingStatus.SUCCESS, ProcessingStatus.NO_CHANGES]

    def __str__(self) -> str:
        if self.status == ProcessingStatus.SUCCESS:
            return f"✓ {self.file_path.name}: {self.message or 'sorted'}"
        elif self.status == ProcessingStatus.NO_CHANGES:
            return f"= {self.file_path.name}: {self.message or 'No changes needed'}"
        elif self.status == ProcessingStatus.SKIPPED:
            return f"⊝ {self.file_path.name}: {self.message or 'Skipped'}"
        else:
            return f"✗ {self.file_path.name}: {self.error_message}"


class BaseProcessor(ABC):
    """Abstract base class for source file processors"""

    def __init__(self, config: Config | None = None):
        """
        Initialize processor

        Args:
            config: Loaded configuration, defaults when omitted
        """
        self.config = config or Config()
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def can_process(self, file_path: Path) -> bool:
        """
        Check if this processor can handle the given file

        Args:
            file_path: Path to file

        Returns:
            True if processor can handle this file type
        """
        pass

    @abstractmethod
    def process_file(self, file_path: Path, **kwargs) -> ProcessResult:
        """
        Process a single file

        Args:
            file_path: Path to file to process
            **kwargs: Additional processing parameters

        Returns:
            ProcessResult with operation details
        """
        pass

    @abstractmethod
    def validate_file(self, file_path: Path) -> bool:
        """
        Validate file syntax after processing

        Args:
            file_path: Path to file to validate

        Returns:
            True if file is valid
        """
        pass

    def read_file(self, file_path: Path) -> str:
        try:
            return file_path.read_text(encoding=self.config.encoding)
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error(f"Error reading {file_path}: {e}")
            raise

    def write_file(self, file_path: Path, content: str) -> bool:
        """
        Write content to file

        Returns:
            True if successful
        """
        try:
            file_path.write_text(content, encoding=self.config.encoding)
            return True
        except OSError as e:
            self.logger.error(f"Error writing {file_path}: {e}")
            return False

    def process_batch(self, file_paths: list[Path], **kwargs) -> list[ProcessResult]:
        """
        Process multiple files

        Args:
            file_paths: List of file paths
            **kwargs: Additional processing parameters

        Returns:
            List of ProcessResult objects
        """
        results = []
        for file_path in file_paths:
            if self.can_process(file_path):
                results.append(self.process_file(file_path, **kwargs))
            else:
                results.append(
                    ProcessResult(
                        file_path=file_path,
                        status=ProcessingStatus.SKIPPED,
                        message="File type not supported by this processor",
                    )
                )
        return results

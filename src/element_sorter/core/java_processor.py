"""
Processor that sorts the members of the first class in a Java source file
"""

from pathlib import Path

from element_sorter.core.backup_manager import BackupManager
from element_sorter.core.base_processor import (
    BaseProcessor,
    ProcessingStatus,
    ProcessResult,
)
from element_sorter.core.config import Config
from element_sorter.core.exceptions import SourceParseError
from element_sorter.core.java_parser import JavaSourceParser
from element_sorter.core.reorganizer import Reorganizer, SortOutcome, SortStatus
from element_sorter.core.reporting import CollectingReporter, MessageLevel
from element_sorter.core.selection import SelectionRange


class JavaFileProcessor(BaseProcessor):
    """Parse, sort and rewrite one ``.java`` file at a time"""

    SUFFIXES = {".java"}

    def __init__(
        self,
        config: Config | None = None,
        backup_manager: BackupManager | None = None,
    ):
        super().__init__(config)
        self.backup_manager = backup_manager
        self.parser = JavaSourceParser()

    def can_process(self, file_path: Path) -> bool:
        return file_path.suffix in self.SUFFIXES

    def process_file(
        self,
        file_path: Path,
        selection: SelectionRange | None = None,
        lines: tuple[int, int] | None = None,
        **kwargs,
    ) -> ProcessResult:
        """
        Sort one file, or only the selected members of it

        Args:
            file_path: Java file to process
            selection: Character range restricting the sort to its members
            lines: 1-based inclusive line range, used when no selection is given

        Returns:
            ProcessResult; NO_CHANGES also covers files with nothing to sort
        """
        if not self.can_process(file_path):
            return ProcessResult(
                file_path=file_path,
                status=ProcessingStatus.SKIPPED,
                message="Not a Java file",
            )

        try:
            content = self.read_file(file_path)
        except (OSError, UnicodeDecodeError) as e:
            return ProcessResult(
                file_path=file_path,
                status=ProcessingStatus.ERROR,
                error_message=str(e),
            )

        try:
            document = self.parser.parse(content, file_path)
        except SourceParseError as e:
            self.logger.warning(str(e))
            return ProcessResult(
                file_path=file_path,
                status=ProcessingStatus.SKIPPED,
                message=str(e),
            )

        if selection is None and lines is not None:
            selection = SelectionRange.from_lines(content, *lines)

        reporter = CollectingReporter()
        outcome = Reorganizer(self.config.sorting, reporter).reorganize(
            document, selection
        )
        return self._apply_outcome(file_path, content, outcome, reporter)

    def _apply_outcome(
        self,
        file_path: Path,
        content: str,
        outcome: SortOutcome,
        reporter: CollectingReporter,
    ) -> ProcessResult:
        if outcome.status == SortStatus.FAILED:
            errors = reporter.texts(MessageLevel.ERROR)
            return ProcessResult(
                file_path=file_path,
                status=ProcessingStatus.ERROR,
                error_message=errors[-1] if errors else outcome.message,
            )

        if not outcome.is_sorted:
            return ProcessResult(
                file_path=file_path,
                status=ProcessingStatus.NO_CHANGES,
                message=outcome.message,
            )

        details = [
            {
                "fields": outcome.fields,
                "methods": outcome.methods,
                "nested_types": outcome.nested_types,
                "selected": outcome.selected,
            }
        ]

        if outcome.text == content:
            self.logger.info(f"No changes needed for {file_path}")
            return ProcessResult(
                file_path=file_path,
                status=ProcessingStatus.NO_CHANGES,
                changes_details=details,
                message="Already sorted",
            )

        if self.config.dry_run:
            self.logger.info(f"[DRY RUN] Would sort {file_path}")
            return ProcessResult(
                file_path=file_path,
                status=ProcessingStatus.SUCCESS,
                changes_applied=outcome.total,
                changes_details=details,
                message=f"[DRY RUN] {outcome.message}",
            )

        backup_path = None
        if self.backup_manager:
            backup_path = self.backup_manager.backup_file(file_path)

        if not self.write_file(file_path, outcome.text):
            return ProcessResult(
                file_path=file_path,
                status=ProcessingStatus.ERROR,
                error_message=f"Could not write {file_path}",
                backup_path=backup_path,
            )

        if not self.validate_file(file_path):
            self.write_file(file_path, content)
            return ProcessResult(
                file_path=file_path,
                status=ProcessingStatus.ERROR,
                error_message="Sorted source does not parse, original restored",
                backup_path=backup_path,
            )

        self.logger.info(f"Sorted {file_path}")
        return ProcessResult(
            file_path=file_path,
            status=ProcessingStatus.SUCCESS,
            changes_applied=outcome.total,
            changes_details=details,
            message=outcome.message,
            backup_path=backup_path,
        )

    def validate_file(self, file_path: Path) -> bool:
        try:
            self.parser.parse(self.read_file(file_path), file_path)
        except (OSError, UnicodeDecodeError, SourceParseError) as e:
            self.logger.error(f"Validation failed for {file_path}: {e}")
            return False
        return True

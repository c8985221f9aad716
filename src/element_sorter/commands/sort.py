"""
Sort command: run the Java processor over a file or a directory
"""

import logging
from pathlib import Path

from element_sorter.core.backup_manager import BackupManager
from element_sorter.core.base_processor import ProcessingStatus, ProcessResult
from element_sorter.core.config import Config
from element_sorter.core.java_processor import JavaFileProcessor
from element_sorter.core.reporting import ConsoleReporter, Reporter
from element_sorter.core.selection import SelectionRange

logger = logging.getLogger(__name__)


class SortCommand:
    """Command handler for member sorting"""

    def __init__(self, config: Config, reporter: Reporter | None = None):
        self.config = config
        self.reporter = reporter or ConsoleReporter(quiet=config.quiet)
        self.backup_manager = None
        if config.backup.enabled and not config.dry_run:
            self.backup_manager = BackupManager.from_config(config.backup)
        self.processor = JavaFileProcessor(config, self.backup_manager)
        self.results: list[ProcessResult] = []

    def execute(
        self,
        path: Path,
        recursive: bool = False,
        selection: SelectionRange | None = None,
        lines: tuple[int, int] | None = None,
    ) -> ProcessResult:
        """
        Sort a single file or every Java file of a directory

        Args:
            path: File or directory to process
            recursive: Descend into subdirectories
            selection: Character range, single files only
            lines: 1-based inclusive line range, single files only

        Returns:
            ProcessResult for the file, or a summary result for a directory
        """
        self.results = []

        if (selection is not None or lines is not None) and not path.is_file():
            return self._error(path, "A selection can only be used with a single file")

        if self.backup_manager:
            self.backup_manager.start_session("sort")

        try:
            if path.is_file():
                result = self._process_file(path, selection=selection, lines=lines)
            elif path.is_dir():
                result = self._process_directory(path, recursive)
            else:
                result = self._error(path, f"Invalid path: {path}")
        except Exception as e:
            logger.error(f"Error during sorting: {e}")
            result = self._error(path, str(e))
        finally:
            if self.backup_manager:
                self.backup_manager.finalize_session()

        return result

    @property
    def changed_files(self) -> list[Path]:
        """Files that were (or, in dry-run, would be) rewritten"""
        return [
            result.file_path
            for result in self.results
            if result.status == ProcessingStatus.SUCCESS
        ]

    def _process_file(self, file_path: Path, **kwargs) -> ProcessResult:
        result = self.processor.process_file(file_path, **kwargs)
        self.results.append(result)
        self._report(result)
        return result

    def _process_directory(self, dir_path: Path, recursive: bool) -> ProcessResult:
        pattern = "**/*.java" if recursive else "*.java"
        for java_file in sorted(dir_path.glob(pattern)):
            if java_file.is_file():
                self._process_file(java_file)

        summary = self._summary()
        logger.info(summary)

        errors = [r for r in self.results if r.status == ProcessingStatus.ERROR]
        return ProcessResult(
            file_path=dir_path,
            status=ProcessingStatus.ERROR if errors else ProcessingStatus.SUCCESS,
            changes_applied=len(self.changed_files),
            message=summary,
            error_message=f"{len(errors)} files failed" if errors else None,
        )

    def _summary(self) -> str:
        counts = {status: 0 for status in ProcessingStatus}
        for result in self.results:
            counts[result.status] += 1
        return (
            f"Processed {len(self.results)} files: "
            f"{counts[ProcessingStatus.SUCCESS]} sorted, "
            f"{counts[ProcessingStatus.NO_CHANGES]} unchanged, "
            f"{counts[ProcessingStatus.SKIPPED]} skipped, "
            f"{counts[ProcessingStatus.ERROR]} errors"
        )

    def _report(self, result: ProcessResult) -> None:
        if result.status == ProcessingStatus.ERROR:
            self.reporter.error(str(result))
        else:
            self.reporter.info(str(result))

    def _error(self, path: Path, message: str) -> ProcessResult:
        self.reporter.error(message)
        return ProcessResult(
            file_path=path,
            status=ProcessingStatus.ERROR,
            error_message=message,
        )

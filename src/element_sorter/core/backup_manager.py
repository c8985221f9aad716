"""
Backup sessions for source files rewritten by the sorter
"""

import json
import logging
import shutil
import tarfile
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from element_sorter.core.config import BackupConfig

logger = logging.getLogger(__name__)

SESSION_PREFIX = "session_"
METADATA_FILE = "session_metadata.json"


@dataclass
class BackupSession:
    """Information about a backup session"""

    session_id: str
    timestamp: str
    directory: Path
    description: str | None = None
    files_backed_up: list[str] = field(default_factory=list)
    total_size: int = 0
    compressed: bool = False


def _relative_path(file_path: Path) -> Path:
    """Location of a file inside a session directory"""
    if file_path.is_absolute():
        return Path(*file_path.parts[1:]) if len(file_path.parts) > 1 else Path(file_path.name)
    return file_path


class BackupManager:
    """Copies original files into timestamped sessions before they are rewritten"""

    def __init__(
        self,
        backup_dir: str | Path = ".backups",
        compression: bool = False,
        keep_sessions: int = 10,
    ):
        """
        Initialize backup manager

        Args:
            backup_dir: Directory to store backups
            compression: Whether to compress finalized sessions to tar.gz
            keep_sessions: Number of backup sessions to keep
        """
        self.backup_dir = Path(backup_dir)
        self.compression = compression
        self.keep_sessions = keep_sessions
        self.current_session: BackupSession | None = None
        self.backup_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_config(cls, config: BackupConfig) -> "BackupManager":
        return cls(
            backup_dir=config.directory,
            compression=config.compression,
            keep_sessions=config.keep_sessions,
        )

    def start_session(self, description: str | None = None) -> Path:
        """Start a new backup session"""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        session_id = f"{SESSION_PREFIX}{timestamp}"
        if description:
            session_id = f"{session_id}_{description}"

        session_dir = self.backup_dir / session_id
        session_dir.mkdir(parents=True, exist_ok=True)
        self.current_session = BackupSession(
            session_id=session_id,
            timestamp=timestamp,
            directory=session_dir,
            description=description,
        )
        logger.info(f"Started backup session: {session_id}")
        return session_dir

    def backup_file(self, file_path: Path) -> Path | None:
        """Copy one file into the current session, starting one if needed"""
        if not self.current_session:
            self.start_session()

        if not file_path.exists():
            logger.warning(f"File does not exist: {file_path}")
            return None

        backup_path = self.current_session.directory / _relative_path(file_path)
        try:
            backup_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(file_path, backup_path)
        except OSError as e:
            logger.error(f"Error backing up {file_path}: {e}")
            return None

        self.current_session.files_backed_up.append(str(file_path))
        self.current_session.total_size += file_path.stat().st_size
        logger.debug(f"Backed up: {file_path} -> {backup_path}")
        return backup_path

    def restore_file(self, original_path: Path, backup_path: Path | None = None) -> bool:
        """Restore a file from an explicit backup path or the current session"""
        if backup_path is None and self.current_session:
            backup_path = self.current_session.directory / _relative_path(original_path)

        if backup_path is None or not backup_path.exists():
            logger.warning(f"No backup found for {original_path}")
            return False

        try:
            shutil.copy2(backup_path, original_path)
        except OSError as e:
            logger.error(f"Error restoring {original_path}: {e}")
            return False

        logger.info(f"Restored {original_path} from {backup_path}")
        return True

    def finalize_session(self) -> Path | None:
        """Write session metadata, compress if configured and prune old sessions.

        A session with no backed-up files is removed instead.
        """
        session = self.current_session
        if not session:
            logger.warning("No active backup session")
            return None
        self.current_session = None

        if not session.files_backed_up:
            shutil.rmtree(session.directory, ignore_errors=True)
            logger.debug(f"Discarded empty backup session: {session.session_id}")
            return None

        result = session.directory
        try:
            if self.compression:
                session.compressed = True
                self._write_metadata(session)
                result = self._compress_session(session)
                shutil.rmtree(session.directory)
                logger.info(f"Compressed backup session to {result}")
            else:
                self._write_metadata(session)
        except (OSError, tarfile.TarError) as e:
            logger.error(f"Error finalizing backup session {session.session_id}: {e}")
            return session.directory if session.directory.exists() else None

        self.cleanup_old_sessions()
        logger.info(f"Finalized backup session: {session.session_id}")
        return result

    @staticmethod
    def _write_metadata(session: BackupSession) -> None:
        with open(session.directory / METADATA_FILE, "w") as f:
            json.dump(asdict(session), f, indent=2, default=str)

    def _compress_session(self, session: BackupSession) -> Path:
        archive_path = self.backup_dir / f"{session.session_id}.tar.gz"
        with tarfile.open(archive_path, "w:gz") as tar:
            tar.add(session.directory, arcname=session.session_id)
        return archive_path

    # ============================================================
    # SESSIONS ON DISK
    # ============================================================

    def _session_entries(self) -> list[Path]:
        """Session directories and archives, newest first"""
        entries = []
        for item in self.backup_dir.iterdir():
            if not item.name.startswith(SESSION_PREFIX):
                continue
            if item.is_dir() or item.name.endswith(".tar.gz"):
                entries.append(item)
        return sorted(entries, key=lambda x: x.name, reverse=True)

    @staticmethod
    def _remove_entry(entry: Path) -> None:
        try:
            if entry.is_dir():
                shutil.rmtree(entry)
            else:
                entry.unlink()
        except OSError as e:
            logger.error(f"Error removing backup {entry}: {e}")
            return
        logger.debug(f"Removed backup: {entry}")

    def cleanup_old_sessions(self) -> int:
        """Remove sessions beyond the keep_sessions most recent, return how many"""
        stale = self._session_entries()[self.keep_sessions :]
        for entry in stale:
            self._remove_entry(entry)
        return len(stale)

    def list_sessions(self) -> list[dict[str, Any]]:
        """List all backup sessions, newest first"""
        sessions = []
        for item in self._session_entries():
            if item.is_dir():
                metadata_file = item / METADATA_FILE
                if metadata_file.exists():
                    with open(metadata_file, "r") as f:
                        sessions.append(json.load(f))
                    continue
                sessions.append({"session_id": item.name, "directory": str(item)})
            else:
                sessions.append(
                    {
                        "session_id": item.name.removesuffix(".tar.gz"),
                        "archive": str(item),
                        "compressed": True,
                    }
                )
        return sessions

    def restore_session(self, session_id: str) -> bool:
        """Restore all files from a backup session"""
        session_path = self.backup_dir / session_id
        archive_path = self.backup_dir / f"{session_id}.tar.gz"
        extracted = False

        try:
            if not session_path.exists() and archive_path.exists():
                with tarfile.open(archive_path, "r:gz") as tar:
                    tar.extractall(self.backup_dir, filter="data")
                extracted = True

            if not session_path.exists():
                logger.error(f"Backup session not found: {session_id}")
                return False

            metadata_file = session_path / METADATA_FILE
            if not metadata_file.exists():
                logger.error(f"Backup session {session_id} has no metadata")
                return False

            with open(metadata_file, "r") as f:
                metadata = json.load(f)

            for file_path in metadata.get("files_backed_up", []):
                original = Path(file_path)
                backup = session_path / _relative_path(original)
                if backup.exists():
                    original.parent.mkdir(parents=True, exist_ok=True)
                    shutil.copy2(backup, original)
                    logger.info(f"Restored: {original}")
            return True

        except (OSError, ValueError, tarfile.TarError) as e:
            logger.error(f"Error restoring session {session_id}: {e}")
            return False

        finally:
            if extracted and session_path.exists():
                shutil.rmtree(session_path)

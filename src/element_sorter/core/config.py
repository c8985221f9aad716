"""
Unified configuration system for Element Sorter
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

TRUTHY = ["true", "1", "yes"]
FALSY = ["false", "0", "no"]


@dataclass
class SortingConfig:
    """Ordering policy, selected once when a sorter is built"""

    demote_list_fields: bool = False  # list-typed fields after the others
    static_precedes_annotated: bool = True  # static fields get their own group
    blank_line_after_doc_or_annotation: bool = True
    group_documented_fields: bool = False  # documented fields join the annotated group
    blank_line_between_methods: bool = True
    max_nesting_depth: int = 2  # nested type levels sorted below the top class

    # Fully-qualified container names; the simple name is matched as well
    list_type_names: list[str] = field(
        default_factory=lambda: [
            "java.util.List",
            "java.util.ArrayList",
            "java.util.LinkedList",
            "java.util.Vector",
            "java.util.concurrent.CopyOnWriteArrayList",
        ]
    )


@dataclass
class BackupConfig:
    """Configuration for backup operations"""

    enabled: bool = True
    directory: str = ".backups"
    compression: bool = True
    keep_sessions: int = 10


@dataclass
class Config:
    """Main configuration class for Element Sorter"""

    # General settings
    dry_run: bool = False
    verbose: bool = False
    quiet: bool = False
    encoding: str = "utf-8"

    # Sub-configurations
    sorting: SortingConfig = field(default_factory=SortingConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)

    config_file: str | None = None

    @classmethod
    def from_file(cls, filepath: Path) -> "Config":
        """Load configuration from YAML or JSON file"""
        if not filepath.exists():
            logger.warning(f"Config file not found: {filepath}")
            return cls()

        try:
            with open(filepath, "r") as f:
                if filepath.suffix in [".yaml", ".yml"]:
                    data = yaml.safe_load(f) or {}
                elif filepath.suffix == ".json":
                    data = json.load(f)
                else:
                    logger.error(f"Unsupported config file format: {filepath.suffix}")
                    return cls()

            config = cls._from_dict(data)
            config.config_file = str(filepath)
            return config
        except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
            logger.error(f"Error loading config file {filepath}: {e}")
            return cls()

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config instance from dictionary"""
        config = cls()

        for key in ["dry_run", "verbose", "quiet", "encoding"]:
            if key in data:
                setattr(config, key, data[key])

        if "sorting" in data:
            config.sorting = SortingConfig(**data["sorting"])
        if "backup" in data:
            config.backup = BackupConfig(**data["backup"])

        return config

    @classmethod
    def load_hierarchy(cls, project_dir: Path | None = None) -> "Config":
        """Load configuration from hierarchy: global -> project -> env vars"""
        config = cls()

        # 1. Global config
        global_config = Path.home() / ".element-sorter" / "config.yaml"
        if global_config.exists():
            config = cls.from_file(global_config)
            logger.debug(f"Loaded global config from {global_config}")

        # 2. Project config
        if project_dir:
            project_config = project_dir / ".element-sorter.yaml"
            if project_config.exists():
                config.merge(cls.from_file(project_config))
                logger.debug(f"Loaded project config from {project_config}")

        # 3. Environment variables
        config.apply_env_vars()

        return config

    def merge(self, other: "Config") -> None:
        """Merge another config into this one (other takes precedence)"""
        if other.config_file:
            self.config_file = other.config_file
        if other.encoding != "utf-8":
            self.encoding = other.encoding

        # Boolean flags only switch on
        for flag in ["dry_run", "verbose", "quiet"]:
            if getattr(other, flag):
                setattr(self, flag, True)

        self._merge_dataclass(self.sorting, other.sorting)
        self._merge_dataclass(self.backup, other.backup)

    def _merge_dataclass(self, target: Any, source: Any) -> None:
        """Merge source dataclass into target, skipping default values"""
        defaults = source.__class__()
        for field_name in source.__dataclass_fields__:
            source_value = getattr(source, field_name)
            if source_value != getattr(defaults, field_name):
                setattr(target, field_name, source_value)

    def apply_env_vars(self) -> None:
        """Apply environment variables to configuration"""
        if os.environ.get("ELEMENT_SORTER_DRY_RUN", "").lower() in TRUTHY:
            self.dry_run = True

        if os.environ.get("ELEMENT_SORTER_VERBOSE", "").lower() in TRUTHY:
            self.verbose = True

        demote = os.environ.get("ELEMENT_SORTER_DEMOTE_LIST_FIELDS", "").lower()
        if demote in TRUTHY:
            self.sorting.demote_list_fields = True
        elif demote in FALSY:
            self.sorting.demote_list_fields = False

        static_first = os.environ.get("ELEMENT_SORTER_STATIC_FIRST", "").lower()
        if static_first in TRUTHY:
            self.sorting.static_precedes_annotated = True
        elif static_first in FALSY:
            self.sorting.static_precedes_annotated = False

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors"""
        errors = []

        if self.sorting.max_nesting_depth < 0:
            errors.append("max_nesting_depth must not be negative")
        for name in self.sorting.list_type_names:
            if not name or name.strip() != name:
                errors.append(f"Invalid list type name: {name!r}")
        if self.backup.keep_sessions < 1:
            errors.append("keep_sessions must be at least 1")

        try:
            "".encode(self.encoding)
        except LookupError:
            errors.append(f"Unknown encoding: {self.encoding}")

        return errors

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary"""
        return {
            "dry_run": self.dry_run,
            "verbose": self.verbose,
            "quiet": self.quiet,
            "encoding": self.encoding,
            "sorting": asdict(self.sorting),
            "backup": asdict(self.backup),
        }

    def save(self, filepath: Path) -> None:
        """Save configuration to file"""
        data = self.to_dict()

        with open(filepath, "w") as f:
            if filepath.suffix in [".yaml", ".yml"]:
                yaml.safe_dump(data, f, default_flow_style=False)
            elif filepath.suffix == ".json":
                json.dump(data, f, indent=2)
            else:
                raise ValueError(f"Unsupported config file format: {filepath.suffix}")

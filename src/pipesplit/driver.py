"""
driver.py - Main workflow driver for pipesplit

Orchestrates a split by:
- Loading the project file (YAML)
- Building the host document it describes
- Executing workflow operations in sequence
- Generating output files (cutting list, resulting document)
"""
from __future__ import annotations

import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from pipesplit.config.loader import LoadedConfig, load_config
from pipesplit.core.logging_setup import get_logger, set_display_levels, setup_logging
from pipesplit.core.split_settings import SplitSettings
from pipesplit.errors import (
    CommandFailedError,
    PipeSplitError,
    SelectionError,
    SystemResolutionError,
)
from pipesplit.model.document import Document
from pipesplit.model.document_io import build_document, save_document_file
from pipesplit.model.elements import LinearElement
from pipesplit.splitting.cut_list import write_cut_list
from pipesplit.splitting.segmentation_engine import SegmentationEngine, SplitResult
from pipesplit.splitting.split_validator import RunSnapshot, SplitValidator, ValidationReport
from pipesplit.splitting.system_resolver import SystemResolver

logger = get_logger(__name__)

SELECTION_MESSAGE = "Please select ONLY one element from current project."
CONNECTIVITY_MESSAGE = "Error! Check the system connectivity"


class Status(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class CommandResult:
    status: Status
    message: str = ""
    split: Optional[SplitResult] = None
    snapshot: Optional[RunSnapshot] = None

    @property
    def succeeded(self) -> bool:
        return self.status is Status.SUCCEEDED


class SplitCommand:
    """Split the single selected pipe inside one 'split pipe' transaction."""

    def __init__(self, document: Document, settings: Optional[SplitSettings] = None):
        self.document = document
        self.settings = settings or SplitSettings()

    def execute(self) -> CommandResult:
        """Run the command; any failure is reported, never raised."""
        snapshot = None
        try:
            selected = self._single_selection()
            system = SystemResolver(self.document, self.settings.accepted_system_kinds).resolve(selected)
            if system is None:
                raise SystemResolutionError(CONNECTIVITY_MESSAGE)
            if not isinstance(selected, LinearElement):
                raise SelectionError(f"{selected!r} is not a pipe. Select the pipe run to split.")

            snapshot = SplitValidator(self.document, self.settings).capture(selected)
            engine = SegmentationEngine(self.document, self.settings)
            with self.document.transaction("split pipe"):
                split = engine.split(selected, system, system.type_id, selected.type_id)

        except PipeSplitError as e:
            logger.error(f"Split failed: {e}")
            return CommandResult(Status.FAILED, str(e), snapshot=snapshot)
        except Exception as e:
            logger.error(f"Split failed: {e}")
            logger.debug(f"Full traceback:\n{traceback.format_exc()}")
            return CommandResult(Status.FAILED, str(e), snapshot=snapshot)

        return CommandResult(Status.SUCCEEDED, split=split, snapshot=snapshot)

    def _single_selection(self):
        if len(self.document.selection) != 1:
            raise SelectionError(SELECTION_MESSAGE)
        return self.document.get_element(self.document.selection[0])


class Driver:
    """Main driver class for the pipesplit workflow"""

    def __init__(self, config: Optional[LoadedConfig] = None):
        """
        Initialize the driver

        Args:
            config: Already loaded project, or None to call load_configuration later
        """
        self.config = config
        self.settings = SplitSettings()
        self.doc: Optional[Document] = None
        self.metadata: Dict[str, Any] = {}
        self.output_files: Dict[str, Any] = {}
        self.last_command: Optional[CommandResult] = None
        self.last_report: Optional[ValidationReport] = None
        setup_logging()
        if config is not None:
            self._apply_config()

    def load_configuration(self, config_file):
        """
        Load the project file

        Args:
            config_file: Path to YAML project file
        """
        logger.info(f"Loading project: {config_file}")
        try:
            self.config = load_config(config_file)
        except Exception as e:
            logger.error(f"Failed to load project: {e}")
            raise
        self._apply_config()
        logger.info("Project loaded")

    def _apply_config(self):
        self.settings = SplitSettings.from_dict(self.config.section("settings"))
        self.metadata = self.config.section("metadata")
        self.output_files = self.config.section("output_files")
        display_levels = self.config.section("logging").get("display_levels")
        if display_levels:
            set_display_levels(display_levels)

    def setup_document(self):
        """Build the host document described by the project"""
        self.doc = build_document(self.config.section("document"), self.settings.point_tolerance)
        logger.debug(f"Document ready: {self.doc!r}")

    def workflow(self):
        """Execute the workflow defined in the project"""
        logger.info("Running: workflow()")

        if self.doc is None:
            self.setup_document()

        for operation in self.config.data.get("workflow", []):
            description = operation.get("description", operation.get("operation"))
            logger.info(f"Executing: {description}")
            try:
                self._execute_operation(operation)
            except Exception as e:
                logger.error(f"Operation failed: {e}")
                logger.debug(f"Full traceback:\n{traceback.format_exc()}")
                raise

        logger.info("Workflow complete")

    def _execute_operation(self, operation):
        """Execute a single operation"""
        operation_type = operation.get("operation")

        if not operation_type:
            logger.warning("Operation missing 'operation' field")
            return

        if operation_type == "select":
            self._select(operation)
        elif operation_type == "split_selected":
            self._split_selected(operation)
        elif operation_type == "validate_split":
            self._validate_split(operation)
        elif operation_type == "write_cut_list":
            self._write_cut_list(operation)
        elif operation_type == "save_document":
            self._save_document(operation)
        else:
            logger.warning(f"Unknown operation type: {operation_type}")

    def _select(self, operation):
        self.doc.selection = list(operation.get("elements", []) or [])
        logger.info(f"Selection: {self.doc.selection}")

    def _split_selected(self, operation):
        self.last_command = SplitCommand(self.doc, self.settings).execute()
        if not self.last_command.succeeded:
            raise CommandFailedError(self.last_command.message)
        split = self.last_command.split
        logger.info(f"Split {split.original_id}: "
                    f"{[segment.id for segment in split.segments]}")

    def _require_split(self, operation_type: str) -> CommandResult:
        if self.last_command is None or not self.last_command.succeeded:
            raise CommandFailedError(f"'{operation_type}' needs a successful split_selected first")
        return self.last_command

    def _validate_split(self, operation):
        command = self._require_split("validate_split")
        validator = SplitValidator(self.doc, self.settings,
                                   operation.get("length_tolerance", 0.01))
        self.last_report = validator.validate(command.snapshot, command.split)
        if not self.last_report.passed and operation.get("fail_on_error", True):
            raise CommandFailedError(f"Split validation failed: {self.last_report.issues}")

    def _write_cut_list(self, operation):
        command = self._require_split("write_cut_list")
        path = operation.get("path") or self.output_files.get("cut_list")
        if not path:
            logger.warning("No cut list path given; skipping")
            return
        write_cut_list(path, command.split, self.metadata.get("project_name", ""), self.settings)

    def _save_document(self, operation):
        path = operation.get("path") or self.output_files.get("document")
        if not path:
            logger.warning("No document path given; skipping")
            return
        save_document_file(self.doc, path, operation.get("unit", "mm"))


def run_project(config_file) -> Driver:
    driver = Driver()
    driver.load_configuration(config_file)
    driver.setup_document()
    driver.workflow()
    return driver

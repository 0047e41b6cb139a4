"""
Utility Functions Module

Provides essential utilities:
- Upload profiling (headers, row count, content fingerprint)
- Synthetic table rendering and file output (CSV, JSON)
- Logging configuration
- Path management
"""

import io
import re
import sys
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union
from logging.handlers import RotatingFileHandler

import pandas as pd

from .commitment import fingerprint
from .models import SyntheticTable
from .schema import parse_headers

logger = logging.getLogger(__name__)


@dataclass
class UploadProfile:
    """What leaves the client for an upload: never the content itself"""
    filename: str
    headers: List[str] = field(default_factory=list)
    row_count: int = 0
    content_hash: str = ""

    @property
    def column_count(self) -> int:
        return len(self.headers)


# File I/O handlers
class FileHandler:
    """
    Handles file input/output operations

    Supports: CSV, JSON
    """

    FORMATS = ["csv", "json"]

    @staticmethod
    def read_text(filepath: Union[str, Path]) -> str:
        """
        Read a text file exactly as stored

        Line endings are preserved so the fingerprint matches the one
        computed in the browser.
        """
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        with open(filepath, 'r', encoding='utf-8', newline='') as f:
            return f.read()

    @staticmethod
    def profile_upload(filepath: Union[str, Path]) -> UploadProfile:
        """
        Profile a CSV upload

        Args:
            filepath: Path to the CSV file

        Returns:
            UploadProfile with lower-cased headers, data row count and fingerprint
        """
        filepath = Path(filepath)
        content = FileHandler.read_text(filepath)

        try:
            row_count = len(pd.read_csv(io.StringIO(content)))
        except pd.errors.EmptyDataError:
            row_count = 0
        except pd.errors.ParserError as e:
            logger.warning(f"Could not count rows in {filepath}: {e}")
            row_count = max(len([l for l in content.splitlines() if l.strip()]) - 1, 0)

        return UploadProfile(
            filename=filepath.name,
            headers=parse_headers(content),
            row_count=row_count,
            content_hash=fingerprint(content),
        )

    @staticmethod
    def render_table(table: SyntheticTable, output_format: str) -> str:
        """
        Render a synthetic table as text

        Args:
            table: Table to render
            output_format: 'csv' or 'json' (list of row records)

        Returns:
            Rendered text
        """
        data = table.to_dataframe()

        if output_format == 'csv':
            return data.to_csv(index=False)
        elif output_format == 'json':
            return data.to_json(orient='records', indent=2)
        else:
            raise ValueError(f"Unsupported output format: {output_format}")

    @staticmethod
    def write_table(
        table: SyntheticTable,
        filepath: Union[str, Path],
        output_format: Optional[str] = None
    ) -> Path:
        """
        Write a synthetic table to disk

        Args:
            table: Table to write
            filepath: Output path
            output_format: 'csv' or 'json' (inferred from the extension if None)

        Returns:
            Path written
        """
        filepath = Path(filepath)

        # Create directory if needed
        filepath.parent.mkdir(parents=True, exist_ok=True)

        if output_format is None:
            output_format = filepath.suffix.lower().lstrip('.')

        try:
            text = FileHandler.render_table(table, output_format)
            with open(filepath, 'w', encoding='utf-8', newline='') as f:
                f.write(text)
            logger.info(f"File written successfully: {filepath}")
        except Exception as e:
            logger.error(f"Failed to write {filepath}: {e}")
            raise

        return filepath


class LoggerConfig:
    """
    Logging configuration manager

    Sets up consistent logging across the application
    """

    @staticmethod
    def setup_logger(
        name: str = "synthproof",
        level: int = logging.INFO,
        log_file: Optional[Union[str, Path]] = None,
        log_to_console: bool = True,
        log_format: Optional[str] = None
    ) -> logging.Logger:
        """
        Setup and configure logger

        Args:
            name: Logger name
            level: Logging level
            log_file: Optional file path for file logging
            log_to_console: Whether to log to console
            log_format: Custom log format

        Returns:
            Configured logger
        """
        logger = logging.getLogger(name)
        logger.setLevel(level)

        # Remove existing handlers
        logger.handlers.clear()

        if log_format is None:
            log_format = (
                '%(asctime)s - %(name)s - %(levelname)s - '
                '%(filename)s:%(lineno)d - %(message)s'
            )

        formatter = logging.Formatter(log_format)

        if log_to_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(level)
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        if log_file:
            log_file = Path(log_file)
            log_file.parent.mkdir(parents=True, exist_ok=True)

            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,  # 10 MB
                backupCount=5
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        return logger


class PathManager:
    """Manages runtime and output paths"""

    @staticmethod
    def ensure_dir(path: Union[str, Path]) -> Path:
        path = Path(path)
        path.mkdir(parents=True, exist_ok=True)
        return path

    @staticmethod
    def get_runtime_dir(base: Optional[Union[str, Path]] = None) -> Path:
        """Directory holding store files and logs"""
        return PathManager.ensure_dir(base or ".runtime")

    @staticmethod
    def clean_filename(filename: str) -> str:
        """Replace characters that are unsafe in file names"""
        cleaned = re.sub(r'[<>:"/\\|?*\s]+', '_', filename).strip('._')
        return cleaned or "output"


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Union[str, Path]] = None
) -> logging.Logger:
    """
    Quick logging setup for the adapters

    Args:
        level: Logging level
        log_file: Optional rotating log file

    Returns:
        Package logger
    """
    return LoggerConfig.setup_logger("synthproof", level=level, log_file=log_file)

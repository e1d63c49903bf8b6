"""Configuration models using Pydantic for validation."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from ..models import RunMode

DEFAULT_IGNORE_PATTERNS = "*darktable_exported*"

DEFAULT_IMAGE_EXTENSIONS = [
    ".jpg",
    ".jpeg",
    ".png",
    ".tif",
    ".tiff",
    ".webp",
    ".cr2",
    ".nef",
    ".arw",
    ".dng",
    ".raf",
    ".orf",
]


class EditorSettings(BaseModel):
    """External editor and export settings."""

    class Config:
        extra = "forbid"

    tool_path: str = Field(
        default="gimp", description="Editor executable, as a path or a name looked up on PATH"
    )
    run_detached: bool = Field(
        default=False, description="Launch without waiting; edited files are not brought back"
    )
    export_format: Literal["original", "jpeg", "png", "tiff"] = Field(
        default="tiff", description="Format of the temporary copies handed to the editor"
    )
    bit_depth: Literal[8, 16] = Field(default=8, description="Bits per channel of exported copies")
    jpeg_quality: int = Field(default=95, ge=1, le=100, description="JPEG export quality")

    @field_validator("tool_path")
    @classmethod
    def tool_path_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("tool_path must not be empty")
        return v

    @property
    def run_mode(self) -> RunMode:
        return RunMode.DETACHED if self.run_detached else RunMode.ATTACHED


class ImportSettings(BaseModel):
    """Import filtering and inbox watching."""

    class Config:
        extra = "forbid"

    ignore_patterns: str = Field(
        default=DEFAULT_IGNORE_PATTERNS,
        description="Pipe (|) separated patterns; matching files are not imported",
    )
    matcher: Literal["glob", "regex"] = Field(
        default="glob", description="How ignore patterns are interpreted"
    )
    inbox_folders: list[Path] = Field(
        default_factory=list, description="Folders watched for new images"
    )
    debounce_seconds: float = Field(
        default=2.0, ge=0, description="Quiet period before a new file is imported"
    )
    supported_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IMAGE_EXTENSIONS),
        description="Extensions considered importable (lowercase, with dot)",
    )

    @field_validator("supported_extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        normalized = []
        for ext in v:
            ext = ext.strip().lower()
            if not ext:
                continue
            if not ext.startswith("."):
                ext = "." + ext
            normalized.append(ext)
        return normalized

    @property
    def patterns(self) -> list[str]:
        """Ignore patterns in configured order."""
        from ..filters import parse_patterns

        return parse_patterns(self.ignore_patterns)


class LoggingSettings(BaseModel):
    """Logging configuration."""

    class Config:
        extra = "forbid"

    level: str = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_dir: Path = Field(default=Path("logs"), description="Directory for log files")
    max_bytes: int = Field(
        default=5 * 1024 * 1024, ge=1024, description="Max log file size before rotation (bytes)"
    )
    backup_count: int = Field(default=3, ge=1, description="Number of rotated log files to keep")
    console_enabled: bool = Field(default=True, description="Enable console logging")
    file_enabled: bool = Field(default=True, description="Enable file logging")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper


class DatabaseSettings(BaseModel):
    """Catalog storage."""

    class Config:
        extra = "forbid"

    path: Path = Field(default=Path("data/catalog.db"), description="SQLite catalog file")
    export_dir: Path | None = Field(
        default=None, description="Where temporary exports are written (system temp if unset)"
    )


class RoundTripConfig(BaseModel):
    """Main configuration."""

    editor: EditorSettings = Field(default_factory=EditorSettings)
    imports: ImportSettings = Field(default_factory=ImportSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    class Config:
        """Pydantic config."""

        validate_assignment = True
        extra = "forbid"


# Flat option names accepted by ``config set`` mapped to (section, field).
OPTION_KEYS = {
    "tool_path": ("editor", "tool_path"),
    "run_detached": ("editor", "run_detached"),
    "export_format": ("editor", "export_format"),
    "bit_depth": ("editor", "bit_depth"),
    "jpeg_quality": ("editor", "jpeg_quality"),
    "ignore_patterns": ("imports", "ignore_patterns"),
    "matcher": ("imports", "matcher"),
    "debounce_seconds": ("imports", "debounce_seconds"),
    "log_level": ("logging", "level"),
    "catalog_path": ("database", "path"),
    "export_dir": ("database", "export_dir"),
}

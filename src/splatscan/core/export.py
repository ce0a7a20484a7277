"""Export a PointCloudModel to PLY, OBJ or a USDZ scene archive.

Each format writes to a fixed file name (``ExportedModel.<ext>``) inside the
output directory, which defaults to the system temporary directory. Exporting
the same format again overwrites the previous file.
"""

from __future__ import annotations

import logging
import tempfile
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from .errors import ExportFailure
from .point_cloud import PointCloudModel

logger = logging.getLogger(__name__)

EXPORT_STEM = "ExportedModel"


class ExportFormat(str, Enum):
    PLY = "ply"
    OBJ = "obj"
    USDZ = "usdz"

    @property
    def file_name(self) -> str:
        return f"{EXPORT_STEM}.{self.value}"


class ExportResult(BaseModel):
    """Outcome of one export: ``path`` on success, ``error`` on failure."""

    format: ExportFormat
    path: Optional[Path] = Field(None, description="Written file")
    error: Optional[str] = Field(None, description="Why the export failed")

    @model_validator(mode="after")
    def _exactly_one(self) -> ExportResult:
        if (self.path is None) == (self.error is None):
            raise ValueError("ExportResult needs exactly one of path or error")
        return self

    @property
    def ok(self) -> bool:
        return self.path is not None

    def unwrap(self) -> Path:
        """Return the written path or raise ExportFailure."""
        if self.path is None:
            raise ExportFailure(self.error)
        return self.path


def default_export_dir() -> Path:
    return Path(tempfile.gettempdir())


def export_path(fmt: ExportFormat | str, output_dir: Optional[Path] = None) -> Path:
    """Fixed destination for ``fmt`` inside ``output_dir`` (temp dir if None)."""
    fmt = ExportFormat(fmt)
    return Path(output_dir or default_export_dir()) / fmt.file_name


def _write(model: PointCloudModel, fmt: ExportFormat, path: Path, usd_up_axis: str) -> Path:
    from splatscan.utils.io import write_obj, write_ply_ascii

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if fmt is ExportFormat.PLY:
            return write_ply_ascii(path, model)
        if fmt is ExportFormat.OBJ:
            return write_obj(path, model)
        from splatscan.utils.usd_writer import write_scene_archive

        return write_scene_archive(path, model, up_axis=usd_up_axis)
    except (OSError, UnicodeError, RuntimeError) as e:
        raise ExportFailure(f"Failed to write {fmt.value.upper()} file {path}: {e}") from e


def export(
    model: PointCloudModel,
    fmt: ExportFormat | str,
    output_dir: Optional[Path] = None,
    *,
    usd_up_axis: str = "Y",
) -> ExportResult:
    """Serialize ``model`` in ``fmt``. Never raises on I/O errors; check ``result.ok``.

    Nothing is retried and a partially written file may remain after a failure.
    """
    fmt = ExportFormat(fmt)
    path = export_path(fmt, output_dir)
    try:
        written = _write(model, fmt, path, usd_up_axis)
    except ExportFailure as e:
        logger.error(str(e))
        return ExportResult(format=fmt, error=str(e))
    return ExportResult(format=fmt, path=written)

"""USD writer: package a minimal scene as USDZ.

Uses pxr (usd-core). The archive holds a root transform with one empty child
node and no point geometry. Splat geometry is not embedded; this matches the
scene-archive export of the capture app this tool replaces and is tracked as
an open question rather than filled in here.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from splatscan.core.point_cloud import PointCloudModel

logger = logging.getLogger(__name__)


def _has_pxr() -> bool:
    """Check if pxr (usd-core) is available."""
    try:
        from pxr import Usd  # noqa: F401
        return True
    except ImportError:
        return False


def write_scene_archive(
    path: Path,
    model: PointCloudModel,
    *,
    up_axis: str = "Y",
    meters_per_unit: float = 1.0,
) -> Path:
    """Write a USDZ package containing an empty scene graph.

    Args:
        path: Output .usdz path. Overwritten if it exists.
        model: The splat cloud being exported. Only its size is logged.
        up_axis: Stage up axis ("Y" or "Z").
        meters_per_unit: Scale factor for the stage.

    Raises:
        RuntimeError: usd-core is not installed or packaging failed.
    """
    if not _has_pxr():
        raise RuntimeError("usd-core not installed. Install with: pip install usd-core")

    from pxr import Sdf, Usd, UsdGeom, UsdUtils

    path = Path(path)
    with tempfile.TemporaryDirectory(prefix="splatscan_usd_") as tmp:
        layer_path = Path(tmp) / f"{path.stem}.usdc"
        stage = Usd.Stage.CreateNew(str(layer_path))
        UsdGeom.SetStageUpAxis(stage, UsdGeom.Tokens.z if up_axis == "Z" else UsdGeom.Tokens.y)
        UsdGeom.SetStageMetersPerUnit(stage, meters_per_unit)

        root = UsdGeom.Xform.Define(stage, "/Scene")
        stage.SetDefaultPrim(root.GetPrim())
        UsdGeom.Xform.Define(stage, "/Scene/Node")
        stage.Save()

        if path.exists():
            path.unlink()
        success = UsdUtils.CreateNewUsdzPackage(Sdf.AssetPath(str(layer_path)), str(path))
        if not success:
            raise RuntimeError(f"Failed to create USDZ package: {path}")

    logger.info(
        f"USDZ exported: {path} (scene only, {model.count} splats not embedded)"
    )
    return path

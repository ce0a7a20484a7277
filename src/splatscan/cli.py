"""CLI entry point for the splatscan pipeline.

Usage:
    splatscan run                                # Run full pipeline
    splatscan run-step splat_export -i '{...}'   # Run single step
    splatscan info                               # Show pipeline info
    splatscan schema splat_export --part config  # Print a step model schema
    splatscan reconstruct FRAMES DEPTHS          # Frames + .npy depth maps -> PLY
"""

from __future__ import annotations

from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.table import Table

from splatscan.core.logging import setup_logging

app = typer.Typer(name="splatscan", help="Images + depth maps -> splat point cloud")
console = Console()

DEFAULT_CONFIG = Path("configs/pipeline.yaml")
LOG_LEVEL = typer.Option("INFO", "--log-level", help="DEBUG | INFO | WARNING | ERROR")


def _init_logging(level: str) -> None:
    try:
        setup_logging(level)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level") from e


@app.command()
def run(
    config: Path = typer.Option(DEFAULT_CONFIG, help="Pipeline config path"),
    log_level: str = LOG_LEVEL,
) -> None:
    """Run the full pipeline."""
    _init_logging(log_level)
    from splatscan.core.pipeline_runner import run_pipeline

    run_pipeline(config)


@app.command()
def run_step(
    step_name: str = typer.Argument(..., help="Step name (e.g. splat_export)"),
    config: Path = typer.Option(DEFAULT_CONFIG, help="Pipeline config path"),
    input_json: str = typer.Option(None, "--input", "-i", help="Input as JSON string"),
    log_level: str = LOG_LEVEL,
) -> None:
    """Run a single pipeline step."""
    import json

    _init_logging(log_level)
    from splatscan.core.pipeline_runner import load_pipeline_config, import_step_class, load_step_config

    pipeline_cfg = load_pipeline_config(config)
    entry = next((s for s in pipeline_cfg.steps if s.name == step_name), None)
    if entry is None:
        console.print(f"[red]Step '{step_name}' not found in pipeline config[/red]")
        raise typer.Exit(1)

    step_cls = import_step_class(entry.module)
    step_config = load_step_config(Path(entry.config_file), step_cls.config_type)
    step_instance = step_cls(config=step_config, data_root=pipeline_cfg.data_root)

    input_data = dict(entry.inputs)
    if input_json:
        input_data.update(json.loads(input_json))
    else:
        missing = step_cls.missing_inputs(input_data)
        if missing:
            console.print(f"[yellow]Step '{step_name}' requires input fields: {missing}[/yellow]")
            console.print("[yellow]Use --input/-i with JSON string, e.g.:[/yellow]")
            console.print(f'  splatscan run-step {step_name} -i \'{{"field": "value"}}\'')
            raise typer.Exit(1)

    console.print(f"[green]Running step: {step_name}[/green]")
    step_input = step_cls.input_type(**input_data)
    output = step_instance.execute(step_input)
    console.print(f"[green]Done. Output:[/green] {output.model_dump_json(indent=2)}")


@app.command()
def info(config: Path = typer.Option(DEFAULT_CONFIG, help="Pipeline config path")) -> None:
    """Show pipeline steps and their status."""
    from splatscan.core.pipeline_runner import load_pipeline_config

    pipeline_cfg = load_pipeline_config(config)
    table = Table(title=f"Pipeline: {pipeline_cfg.project_name}")
    table.add_column("#", style="dim")
    table.add_column("Step", style="cyan")
    table.add_column("Module", style="green")
    table.add_column("Enabled", style="yellow")
    table.add_column("Depends On", style="dim")

    for i, step in enumerate(pipeline_cfg.steps, 1):
        table.add_row(
            str(i),
            step.name,
            step.module,
            "Y" if step.enabled else "N",
            ", ".join(step.depends_on) if step.depends_on else "-",
        )
    console.print(table)


@app.command()
def schema(
    step_name: str = typer.Argument(..., help="Step name (e.g. splat_export)"),
    config: Path = typer.Option(DEFAULT_CONFIG, help="Pipeline config path"),
    part: str = typer.Option("input", help="input | output | config"),
) -> None:
    """Print the JSON schema of a step's input, output or config model."""
    import json

    from splatscan.core.pipeline_runner import load_pipeline_config, import_step_class

    pipeline_cfg = load_pipeline_config(config)
    entry = next((s for s in pipeline_cfg.steps if s.name == step_name), None)
    if entry is None:
        console.print(f"[red]Step '{step_name}' not found in pipeline config[/red]")
        raise typer.Exit(1)

    step_cls = import_step_class(entry.module)
    getters = {
        "input": step_cls.get_input_schema,
        "output": step_cls.get_output_schema,
        "config": step_cls.get_config_schema,
    }
    if part not in getters:
        console.print(f"[red]Unknown schema part '{part}' (input | output | config)[/red]")
        raise typer.Exit(1)
    console.print_json(json.dumps(getters[part]()))


@app.command()
def reconstruct(
    frames_dir: Path = typer.Argument(..., help="Directory of captured frames"),
    depth_dir: Path = typer.Argument(..., help="Directory of <frame stem>.npy depth maps"),
    fmt: List[str] = typer.Option(["ply"], "--format", "-f", help="ply | obj | usdz (repeatable)"),
    output_dir: Path = typer.Option(None, help="Export directory (default: system temp dir)"),
    workers: int = typer.Option(1, help="Frames unprojected concurrently"),
    log_level: str = LOG_LEVEL,
) -> None:
    """Reconstruct a splat cloud from frames + precomputed depth and export it."""
    _init_logging(log_level)
    from splatscan.core.depth_source import NpyDepthSource
    from splatscan.core.session import ScanSession
    from splatscan.utils.image_io import list_frames

    frames = list_frames(frames_dir)
    if not frames:
        console.print(f"[red]No image frames in {frames_dir}[/red]")
        raise typer.Exit(1)

    with ScanSession(NpyDepthSource(depth_dir), formats=fmt, output_dir=output_dir, max_workers=workers) as session:
        result = session.submit(frames).result()

    if not result.ok:
        console.print(f"[red]Reconstruction failed:[/red] {result.error}")
        raise typer.Exit(1)

    table = Table(title=f"{result.model.count} splats from {result.report.images_used}/{len(frames)} frames")
    table.add_column("Format", style="cyan")
    table.add_column("Result", style="green")
    for res in result.exports:
        table.add_row(res.format.value, str(res.path) if res.ok else f"[red]{res.error}[/red]")
    console.print(table)

    if any(not res.ok for res in result.exports):
        raise typer.Exit(1)


if __name__ == "__main__":
    app()

"""
Live Filter command line entry point.

Applies a filter chain to a still image, or plays an image sequence through
the frame scheduler, without the GUI collaborator.
"""

from pathlib import Path
from typing import Any, Optional, Sequence
import logging
import sys

import click
import numpy as np
from PySide6.QtCore import QCoreApplication

from .core import CapacityExceeded, FilterKind, LiveFilterError, ProcessingSettings
from .oiio import ImageSequenceStream, OiioAdapter
from .processing import FilterChain, PipelineProcessor, get_all_categories, get_filters_by_category
from .services import ChainSerializer, FrameScheduler, FrameSource, Settings

logger = logging.getLogger("livefilter")


def _application() -> QCoreApplication:
    return QCoreApplication.instance() or QCoreApplication(sys.argv[:1])


def _parse_value(text: str) -> Any:
    for cast in (int, float):
        try:
            return cast(text)
        except ValueError:
            continue
    return text


def _parse_size(text: Optional[str]) -> Optional[tuple[int, int]]:
    if not text:
        return None
    try:
        width, height = (int(v) for v in text.lower().split("x"))
    except ValueError:
        raise click.BadParameter(f"expected WIDTHxHEIGHT, got {text!r}") from None
    return width, height


def _load_settings(settings_file: Optional[str], size: Optional[str]) -> ProcessingSettings:
    if settings_file:
        settings = Settings(Path(settings_file)).to_processing_settings()
    else:
        # Keep the source resolution unless asked otherwise
        settings = ProcessingSettings(canvas_width=0, canvas_height=0)
    parsed = _parse_size(size)
    if parsed:
        settings.canvas_width, settings.canvas_height = parsed
    return settings


def build_chain(
    settings: ProcessingSettings,
    filters: Sequence[str],
    params: Sequence[str],
    chain_file: Optional[str] = None,
) -> FilterChain:
    """Build a chain from a saved file and/or -f/-p options."""
    if chain_file:
        chain = ChainSerializer.load_from_file(Path(chain_file), max_filters=settings.max_filters)
    else:
        chain = FilterChain(max_filters=settings.max_filters)

    for name in filters:
        try:
            chain.add(name)
        except CapacityExceeded as e:
            raise click.ClickException(str(e))
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--filter")

    for assignment in params:
        target, sep, value = assignment.partition("=")
        kind_name, dot, param_name = target.partition(".")
        if not sep or not dot:
            raise click.BadParameter(f"expected KIND.NAME=VALUE, got {assignment!r}", param_hint="--param")
        try:
            kind = FilterKind.parse(kind_name)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--param")
        matches = [f for f in chain.order() if f.kind == kind]
        if not matches:
            raise click.BadParameter(f"no {kind.value} filter in chain", param_hint="--param")
        instance = matches[-1]
        parsed = _parse_value(value)
        schema = instance.descriptor.get_parameter(param_name)
        if schema is None:
            click.echo(f"Warning: {kind.value} has no parameter {param_name!r}", err=True)
        else:
            valid, message = schema.validate(parsed)
            if not valid:
                # Out-of-range values are still applied; transforms clamp their output
                click.echo(f"Warning: {kind.value}.{param_name}: {message}", err=True)
        chain.set_parameter(instance.instance_id, param_name, parsed)

    return chain


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Real-time pixel filter pipeline."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
def catalog() -> None:
    """List filter kinds and their default parameters."""
    for category in get_all_categories():
        click.echo(f"[{category}]")
        for descriptor in get_filters_by_category(category):
            parts = []
            for key, param in descriptor.parameters.items():
                part = f"{key}={param.default}"
                if not param.used:
                    part += " (ignored)"
                parts.append(part)
            click.echo(f"  {descriptor.kind.value:<12} {descriptor.name:<16} {', '.join(parts)}")


@cli.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output", required=True, type=click.Path(dir_okay=False), help="Output image path")
@click.option("-f", "--filter", "filters", multiple=True, help="Filter kind to append (repeatable)")
@click.option("-p", "--param", "params", multiple=True, help="KIND.NAME=VALUE override for the last KIND in the chain")
@click.option("--chain", "chain_file", type=click.Path(exists=True, dir_okay=False), help="Load chain from JSON")
@click.option("--save-chain", type=click.Path(dir_okay=False), help="Save resulting chain to JSON")
@click.option("--settings", "settings_file", type=click.Path(dir_okay=False), help="Settings INI file")
@click.option("--size", help="Resize source to WIDTHxHEIGHT before processing")
@click.option("--seed", type=int, help="Seed for the vintage grain")
def apply(input_path, output, filters, params, chain_file, save_chain, settings_file, size, seed) -> None:
    """Apply a filter chain to a still image."""
    app = _application()
    settings = _load_settings(settings_file, size)
    chain = build_chain(settings, filters, params, chain_file)

    rng = np.random.default_rng(seed) if seed is not None else None
    processor = PipelineProcessor(rng=rng, snapshot_format=settings.snapshot_format)
    source = FrameSource(settings=settings)
    scheduler = FrameScheduler(source, chain, processor, auto_reprocess=False)

    failures = []
    source.error.connect(failures.append)
    scheduler.error.connect(failures.append)
    processor.log.connect(lambda message: click.echo(message, err=True))

    source.load_image(input_path)
    source.wait_for_decode()
    if failures:
        raise click.ClickException(str(failures[0]))

    result = scheduler.reprocess()
    if result is None:
        raise click.ClickException(str(failures[0]) if failures else "Nothing was processed")

    try:
        processor.export(Path(output))
    except LiveFilterError as e:
        raise click.ClickException(str(e))

    if save_chain:
        ChainSerializer.save_to_file(chain, Path(save_chain))

    names = " -> ".join(f.kind.value for f in chain.order()) or "(empty chain)"
    click.echo(f"{input_path}: {names} -> {output} ({result.width}x{result.height})")
    app.processEvents()


@cli.command()
@click.argument("frames", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output-dir", required=True, type=click.Path(file_okay=False), help="Snapshot directory")
@click.option("-f", "--filter", "filters", multiple=True, help="Filter kind to append (repeatable)")
@click.option("-p", "--param", "params", multiple=True, help="KIND.NAME=VALUE override")
@click.option("--chain", "chain_file", type=click.Path(exists=True, dir_okay=False), help="Load chain from JSON")
@click.option("--settings", "settings_file", type=click.Path(dir_okay=False), help="Settings INI file")
@click.option("--size", help="Resize frames to WIDTHxHEIGHT")
@click.option("--fps", type=click.IntRange(1, 60), help="Override tick rate")
@click.option("-n", "--count", type=int, default=0, help="Frames to process (0 = one pass over the sequence)")
def play(frames, output_dir, filters, params, chain_file, settings_file, size, fps, count) -> None:
    """Play an image sequence through the scheduler, writing one snapshot per tick."""
    app = _application()
    settings = _load_settings(settings_file, size)
    if fps:
        settings.fps = fps
    chain = build_chain(settings, filters, params, chain_file)
    target = count if count > 0 else len(frames)

    processor = PipelineProcessor(snapshot_format=settings.snapshot_format)
    source = FrameSource(settings=settings)
    scheduler = FrameScheduler(source, chain, processor, auto_reprocess=False)
    stream = ImageSequenceStream(frames, loop=target > len(frames), size=settings.canvas_size, quality=settings.quality)

    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    failures = []

    def on_snapshot(data: bytes) -> None:
        path = out_dir / f"frame.{scheduler.frames_processed + 1:04d}.{settings.snapshot_format}"
        path.write_bytes(data)

    def on_processed(n: int) -> None:
        if n >= target:
            scheduler.stop()
            app.quit()

    def on_error(error) -> None:
        failures.append(error)
        scheduler.stop()
        app.quit()

    processor.processing_complete.connect(on_snapshot)
    scheduler.frame_processed.connect(on_processed)
    scheduler.error.connect(on_error)

    try:
        source.bind_stream(stream)
    except LiveFilterError as e:
        raise click.ClickException(str(e))

    scheduler.start()
    app.exec()
    source.unbind()

    if failures:
        raise click.ClickException(str(failures[0]))
    click.echo(f"Wrote {scheduler.frames_processed} snapshots to {out_dir} ({OiioAdapter.get_oiio_version()})")


def main():
    """Launch the command line interface."""
    cli()


if __name__ == "__main__":
    main()

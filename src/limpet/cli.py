"""
Limpet CLI

Commands:
- validate-uri: Parse and validate an Image API request URI
- image-uri: Build an Image API request URI from its parameters
- check-info: Validate an info.json document and check its compliance level
- generate-info: Print a minimal info.json for an image
- tiles: List tile URIs for one scale factor
- behaviors: Validate Presentation API behaviors and print the effective set
"""

from __future__ import annotations

import json
from typing import Any

from datetime import datetime, timezone

import typer
import logging
from pydantic import ValidationError

from limpet.iiif.v3 import (
    ComplianceLevel,
    ImageRequest,
    check_compliance,
    generate_descriptor,
    generate_standard_sizes,
    generate_standard_tiles,
    all_tile_uris,
    build_image_uri,
    load_descriptor,
    load_json,
    parse_descriptor,
    parse_image_uri,
    resolve_effective,
    validate_behaviors,
    validate_descriptor_shape,
    validate_image_request,
)
from limpet.iiif.v3.compliance import DEFAULT_SCALE_FACTORS, DEFAULT_SIZE_WIDTHS, DEFAULT_TILE_WIDTH

app = typer.Typer(add_completion=False, help="Limpet IIIF Image and Presentation API tooling")

DEFAULT_REGION = "full"
DEFAULT_SIZE = "max"
DEFAULT_ROTATION = "0"
DEFAULT_QUALITY = "default"
DEFAULT_FORMAT = "jpg"


class JsonFormatter(logging.Formatter):
    """Simple JSON formatter for structured logs."""
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        # Include any custom attributes passed via `extra=`.
        reserved = {
            "name","msg","args","levelname","levelno","pathname","filename","module",
            "exc_info","exc_text","stack_info","lineno","funcName","created","msecs",
            "relativeCreated","thread","threadName","processName","process",
            "taskName",
        }
        for k, v in record.__dict__.items():
            if k in reserved or k.startswith("_"):
                continue
            try:
                json.dumps(v)
                payload[k] = v
            except TypeError:
                payload[k] = repr(v)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: str) -> logging.Logger:
    logger = logging.getLogger("limpet")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.handlers[:] = [handler]
    logger.propagate = False
    return logger


LOGGER = logging.getLogger("limpet")


def _echo_result(errors: list[str], warnings: list[str]) -> None:
    for i, error in enumerate(errors, start=1):
        typer.echo(f"  {i:>3}. {error}")
    for warning in warnings:
        typer.echo(f"⚠️  {warning}")


def _load_info(path: str) -> Any:
    """Read an info.json document, exiting with code 1 if it cannot be read."""
    try:
        return load_json(path)
    except FileNotFoundError:
        typer.echo(f"Error: File not found: {path}", err=True)
        raise typer.Exit(code=1)
    except json.JSONDecodeError as e:
        typer.echo(f"Error: Invalid JSON in {path}: {e}", err=True)
        raise typer.Exit(code=1)


@app.command("validate-uri")
def validate_uri_cmd(
    uri: str = typer.Argument(..., help="Image request URI"),
    info: str | None = typer.Option(
        None, "--info", help="info.json path; checks the request against the service capabilities"
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level"),
) -> None:
    """Parse an Image API request URI and validate its parameters."""
    global LOGGER
    LOGGER = setup_logging(log_level)

    parsed = parse_image_uri(uri)
    if not parsed.ok:
        typer.echo(f"❌ Invalid image URI: {parsed.error}")
        raise typer.Exit(code=2)

    descriptor = None
    if info is not None:
        try:
            descriptor = load_descriptor(info)
        except FileNotFoundError:
            typer.echo(f"Error: File not found: {info}", err=True)
            raise typer.Exit(code=1)
        except (json.JSONDecodeError, ValidationError) as e:
            typer.echo(f"Error: Could not read image information from {info}: {e}", err=True)
            raise typer.Exit(code=1)
        LOGGER.info(
            "descriptor_loaded",
            extra={"info_path": info, "profile": descriptor.profile.value},
        )

    result = validate_image_request(parsed.value.to_request(), descriptor)
    if not result.valid:
        typer.echo(f"❌ Validation failed: {len(result.errors)} issue(s)\n")
        _echo_result(result.errors, result.warnings)
        raise typer.Exit(code=2)

    typer.echo(f"✅ Valid image request: {parsed.value.identifier}")
    _echo_result([], result.warnings)


@app.command("image-uri")
def image_uri_cmd(
    base_uri: str = typer.Argument(..., help="Base URI of the image service"),
    region: str = typer.Option(DEFAULT_REGION, help="IIIF region (e.g., full)"),
    size: str = typer.Option(DEFAULT_SIZE, help="IIIF size parameter"),
    rotation: str = typer.Option(DEFAULT_ROTATION, help="IIIF rotation (e.g., 0)"),
    quality: str = typer.Option(DEFAULT_QUALITY, help="IIIF quality (e.g., default)"),
    fmt: str = typer.Option(DEFAULT_FORMAT, help="IIIF format (e.g., jpg, png)"),
) -> None:
    """Build an image request URI from its parameters."""
    request = ImageRequest(
        region=region, size=size, rotation=rotation, quality=quality, format=fmt
    )
    result = validate_image_request(request)
    if not result.valid:
        typer.echo(f"❌ Invalid request: {len(result.errors)} issue(s)\n")
        _echo_result(result.errors, result.warnings)
        raise typer.Exit(code=2)

    typer.echo(build_image_uri(base_uri, request))


@app.command("check-info")
def check_info_cmd(
    path: str = typer.Argument(..., help="info.json path ('-' for stdin)"),
    level: ComplianceLevel | None = typer.Option(
        None, "--level", help="Also check compliance with this level"
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level"),
) -> None:
    """Validate the structure of an info.json document."""
    global LOGGER
    LOGGER = setup_logging(log_level)

    data = _load_info(path)
    shape = validate_descriptor_shape(data)
    LOGGER.info(
        "descriptor_checked",
        extra={"info_path": path, "errors": len(shape.errors), "warnings": len(shape.warnings)},
    )
    if not shape.valid:
        typer.echo(f"❌ info.json validation failed: {len(shape.errors)} issue(s)\n")
        _echo_result(shape.errors, shape.warnings)
        raise typer.Exit(code=2)

    typer.echo("✅ info.json structure is valid.")
    _echo_result([], shape.warnings)

    if level is None:
        return

    try:
        descriptor = parse_descriptor(data)
    except ValidationError as e:
        typer.echo(f"Error: Could not read image information from {path}: {e}", err=True)
        raise typer.Exit(code=1)

    report = check_compliance(descriptor, level)
    if not report.compliant:
        typer.echo(f"❌ Not compliant with {level}:")
        for feature in report.missing_features:
            typer.echo(f"  - missing feature: {feature}")
        for fmt in report.missing_formats:
            typer.echo(f"  - missing format: {fmt}")
        for quality in report.missing_qualities:
            typer.echo(f"  - missing quality: {quality}")
        raise typer.Exit(code=2)

    typer.echo(f"✅ Compliant with {level}.")


@app.command("generate-info")
def generate_info_cmd(
    id: str = typer.Argument(..., help="Base URI of the image service"),
    width: int = typer.Argument(..., help="Full image width in pixels"),
    height: int = typer.Argument(..., help="Full image height in pixels"),
    level: ComplianceLevel = typer.Option(ComplianceLevel.LEVEL0, "--level", help="Compliance level"),
    tile_width: int = typer.Option(DEFAULT_TILE_WIDTH, "--tile-width", help="Tile width"),
    scale_factors: list[int] | None = typer.Option(
        None, "--scale-factor", help="Tile scale factor (repeatable; default 1 2 4 8)"
    ),
    max_width: int | None = typer.Option(None, "--max-width", help="Maximum output width"),
    features: list[str] | None = typer.Option(
        None, "--feature", help="Extra feature beyond the level (repeatable)"
    ),
) -> None:
    """Print a minimal info.json for an image."""
    try:
        descriptor = generate_descriptor(
            id,
            width,
            height,
            level,
            sizes=generate_standard_sizes(width, height, DEFAULT_SIZE_WIDTHS)
            if level == ComplianceLevel.LEVEL0
            else None,
            tiles=generate_standard_tiles(tile_width, scale_factors or DEFAULT_SCALE_FACTORS),
            max_width=max_width,
            extra_features=features,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    typer.echo(json.dumps(descriptor.to_info_json(), indent=2))


@app.command("tiles")
def tiles_cmd(
    base_uri: str = typer.Argument(..., help="Base URI of the image service"),
    width: int = typer.Argument(..., help="Full image width in pixels"),
    height: int = typer.Argument(..., help="Full image height in pixels"),
    tile_width: int = typer.Option(DEFAULT_TILE_WIDTH, "--tile-width", help="Tile width"),
    tile_height: int | None = typer.Option(
        None, "--tile-height", help="Tile height (defaults to the tile width)"
    ),
    scale_factor: int = typer.Option(1, "--scale-factor", help="Scale factor"),
    fmt: str = typer.Option(DEFAULT_FORMAT, "--fmt", help="IIIF format (e.g., jpg, png)"),
    quality: str = typer.Option(DEFAULT_QUALITY, "--quality", help="IIIF quality (e.g., default)"),
) -> None:
    """List tile URIs for one scale factor, row by row."""
    request = ImageRequest(quality=quality, format=fmt)
    syntax = validate_image_request(request)
    if not syntax.valid:
        raise typer.BadParameter("; ".join(syntax.errors))

    try:
        uris = all_tile_uris(
            base_uri,
            width,
            height,
            tile_width,
            tile_height or tile_width,
            scale_factor,
            fmt,
            quality,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    for uri in uris:
        typer.echo(uri)


@app.command("behaviors")
def behaviors_cmd(
    resource_type: str = typer.Argument(..., help="Resource type, e.g. Manifest or Canvas"),
    behaviors: list[str] | None = typer.Argument(None, help="Behaviors declared on the resource"),
    parent_type: str | None = typer.Option(None, "--parent-type", help="Type of the containing resource"),
    parent_behaviors: list[str] | None = typer.Option(
        None, "--parent-behavior", help="Behavior of the containing resource (repeatable)"
    ),
) -> None:
    """Validate behaviors on a resource and print its effective behaviors."""
    declared = behaviors or []
    parents = parent_behaviors if parent_type is not None else None
    result = validate_behaviors(resource_type, declared, parent_type, parents)
    if not result.valid:
        typer.echo(f"❌ Behavior validation failed: {len(result.errors)} issue(s)\n")
        _echo_result(result.errors, result.warnings)
        raise typer.Exit(code=2)

    effective = resolve_effective(resource_type, declared, parent_type, parents or [])
    typer.echo(f"✅ Behaviors valid for {resource_type}.")
    _echo_result([], result.warnings)
    typer.echo("Effective: " + (", ".join(effective) if effective else "(none)"))


def main() -> None:
    app()


if __name__ == "__main__":
    main()

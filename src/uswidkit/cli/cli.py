"""Typer CLI entrypoint for uswidkit."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from uswidkit.atomic_write import atomic_write_bytes
from uswidkit.cli.bootstrap import (
    build_collection,
    configure_logging,
    load_effective_config,
)
from uswidkit.cli.rendering import render_error, render_written
from uswidkit.collection import IdentityCollection, ParentPolicy
from uswidkit.config import ConfigError
from uswidkit.errors import UswidError
from uswidkit.formats import FileFormat, input_format_for, output_format_for
from uswidkit.payload import file_entry_for
from uswidkit.tag_id import generate_tag_id

app = typer.Typer(
    name="uswidkit",
    help="Convert and combine CoSWID/SWID tags and uSWID containers.",
    add_completion=False,
)
_CONSOLE = Console()
_ERR_CONSOLE = Console(stderr=True)
_LOGGER = logging.getLogger(__name__)

_FAILURES = (UswidError, ConfigError, OSError, ValueError)

InputFilesArg = Annotated[
    list[Path],
    typer.Argument(
        exists=True,
        file_okay=True,
        dir_okay=False,
        help="Input files (.json .xml .cbor .uswid .pc or firmware images).",
    ),
]
OutputFileOpt = Annotated[
    Path,
    typer.Option(
        "--output-file",
        "-o",
        dir_okay=False,
        help="Output file, either .json .xml .cbor or .uswid.",
    ),
]
ParentFileOpt = Annotated[
    Path | None,
    typer.Option(
        "--parent-file",
        "-p",
        exists=True,
        dir_okay=False,
        help="Single-identity tag that gets a requires link to every input.",
    ),
]
ParentPolicyOpt = Annotated[
    ParentPolicy | None,
    typer.Option(
        "--parent-policy",
        case_sensitive=False,
        help="Link the first identity of the collection or of each input.",
    ),
]
CompressOpt = Annotated[
    bool,
    typer.Option(
        "--zlib-compress",
        "-z",
        help="zlib (RFC 1950) compress .cbor or .uswid output.",
    ),
]
InputFormatOpt = Annotated[
    FileFormat | None,
    typer.Option(
        "--input-format",
        case_sensitive=False,
        help="Read every input as this format instead of by extension.",
    ),
]
OutputFormatOpt = Annotated[
    FileFormat | None,
    typer.Option(
        "--output-format",
        case_sensitive=False,
        help="Write this format instead of choosing by extension.",
    ),
]
ConfigFileOpt = Annotated[
    Path | None,
    typer.Option(
        "--config",
        file_okay=True,
        dir_okay=False,
        help="Path to uswidkit config YAML/JSON file.",
    ),
]


def _fail(exc: Exception) -> typer.Exit:
    render_error(_ERR_CONSOLE, exc)
    return typer.Exit(code=1)


def _write_collection(
    collection: IdentityCollection,
    *,
    output_file: Path,
    output_format: FileFormat | None,
    compress: bool,
) -> None:
    fmt = output_format_for(output_file, output_format)
    if compress and fmt not in (FileFormat.CBOR, FileFormat.USWID):
        _LOGGER.warning("Compression only applies to cbor/uswid output; ignoring -z")
    atomic_write_bytes(output_file, collection.export(fmt, compress=compress))


@app.callback()
def main(
    debug: Annotated[
        bool, typer.Option("--debug", help="Enable debug logging.")
    ] = False,
) -> None:
    """Convert between SWID/CoSWID and uSWID representations."""
    configure_logging(debug=debug)


@app.command("convert")
def convert_command(  # noqa: PLR0913
    input_files: InputFilesArg,
    output_file: OutputFileOpt,
    parent_file: ParentFileOpt = None,
    parent_policy: ParentPolicyOpt = None,
    zlib_compress: CompressOpt = False,
    input_format: InputFormatOpt = None,
    output_format: OutputFormatOpt = None,
    config_file: ConfigFileOpt = None,
) -> None:
    """Combine input tags and write them in another format.

    Args:
        input_files: Input paths in import order.
        output_file: Destination path.
        parent_file: Optional single-identity parent source.
        parent_policy: Optional link injection policy.
        zlib_compress: Compress cbor/uswid output; also on when config says so.
        input_format: Optional explicit input format.
        output_format: Optional explicit output format.
        config_file: Optional config file path override.

    Raises:
        Exit: Raised with status 1 when any input or the output fails.
    """
    config = load_effective_config(config_file, console=_ERR_CONSOLE)
    compress = zlib_compress or config.output.compress
    try:
        output_format_for(output_file, output_format)
        collection = build_collection(
            input_files=input_files,
            config=config,
            input_format=input_format,
            parent_file=parent_file,
            parent_policy=parent_policy,
        )
        _write_collection(
            collection,
            output_file=output_file,
            output_format=output_format,
            compress=compress,
        )
    except _FAILURES as exc:
        raise _fail(exc) from exc
    render_written(_CONSOLE, collection, output_file)


@app.command("print")
def print_command(
    input_files: InputFilesArg,
    parent_file: ParentFileOpt = None,
    parent_policy: ParentPolicyOpt = None,
    input_format: InputFormatOpt = None,
    config_file: ConfigFileOpt = None,
) -> None:
    """Print input tags as pretty JSON on stdout.

    Args:
        input_files: Input paths in import order.
        parent_file: Optional single-identity parent source.
        parent_policy: Optional link injection policy.
        input_format: Optional explicit input format.
        config_file: Optional config file path override.

    Raises:
        Exit: Raised with status 1 when any input fails.
    """
    config = load_effective_config(config_file, console=_ERR_CONSOLE)
    try:
        collection = build_collection(
            input_files=input_files,
            config=config,
            input_format=input_format,
            parent_file=parent_file,
            parent_policy=parent_policy,
        )
    except _FAILURES as exc:
        raise _fail(exc) from exc
    document = json.loads(collection.to_json())
    typer.echo(json.dumps(document, indent=config.output.json_indent))


@app.command("generate-tag-id")
def generate_tag_id_command(
    name: Annotated[
        str,
        typer.Option(
            "--name",
            "-n",
            help="String to derive the UUID from (e.g. software name).",
        ),
    ],
    config_file: ConfigFileOpt = None,
) -> None:
    """Print a type-5 SHA-1 RFC 4122 UUID usable as tag-id.

    Args:
        name: Name the UUID is derived from.
        config_file: Optional config file path override (namespace).
    """
    config = load_effective_config(config_file, console=_ERR_CONSOLE)
    typer.echo(generate_tag_id(name, namespace=config.generator.tag_id_namespace))


@app.command("add-payload")
def add_payload_command(  # noqa: PLR0913
    input_file: Annotated[
        Path,
        typer.Argument(
            exists=True, file_okay=True, dir_okay=False, help="Tag to extend."
        ),
    ],
    payload_file: Annotated[
        Path,
        typer.Option(
            "--payload",
            exists=True,
            file_okay=True,
            dir_okay=False,
            help="File to record as payload (name, size, SHA-256).",
        ),
    ],
    output_file: OutputFileOpt,
    tag_id: Annotated[
        str | None,
        typer.Option("--tag-id", help="Identity to extend when input holds several."),
    ] = None,
    zlib_compress: CompressOpt = False,
    input_format: InputFormatOpt = None,
    output_format: OutputFormatOpt = None,
    config_file: ConfigFileOpt = None,
) -> None:
    """Add a payload file entry to one identity and write the result.

    Args:
        input_file: Input tag path.
        payload_file: Payload file to describe.
        output_file: Destination path.
        tag_id: Optional tag-id selecting the identity.
        zlib_compress: Compress cbor/uswid output; also on when config says so.
        input_format: Optional explicit input format.
        output_format: Optional explicit output format.
        config_file: Optional config file path override.

    Raises:
        Exit: Raised with status 1 when input, selection, or output fails.
    """
    config = load_effective_config(config_file, console=_ERR_CONSOLE)
    compress = zlib_compress or config.output.compress
    try:
        output_format_for(output_file, output_format)
        collection = IdentityCollection(config)
        collection.import_file(input_file, input_format_for(input_file, input_format))
        identity = collection.select(tag_id)
        identity.add_file(file_entry_for(payload_file))
        _write_collection(
            collection,
            output_file=output_file,
            output_format=output_format,
            compress=compress,
        )
    except _FAILURES as exc:
        raise _fail(exc) from exc
    render_written(_CONSOLE, collection, output_file)

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from tqdm import tqdm

from molrw.config import load_settings
from molrw.core.errors import MolrwError, UnknownFormatError
from molrw.core.logging_utils import get_logger
from molrw.core.view import to_json
from molrw.formats.base import FormatDescriptor
from molrw.formats.dataset import MoleculeDataset
from molrw.formats.registry import describe_all, guess_format, resolve
from molrw.io import from_file, read, write

logger = get_logger(__name__)
app = typer.Typer(no_args_is_help=True)


def _resolve(path: Path, fmt: Optional[str]) -> FormatDescriptor:
    fmt = fmt or (None if guess_format(path) else load_settings().default_format)
    try:
        return resolve(path, fmt)
    except UnknownFormatError as e:
        raise typer.BadParameter(str(e)) from None


@app.command("formats")
def formats_cmd():
    """List every registered format."""
    for info in describe_all():
        mode = "read/write" if info["writable"] else "read only"
        logger.info("%-16s %-28s %-10s %s", info["tag"], " ".join(info["extensions"]), mode, info["description"])


@app.command("guess")
def guess_cmd(paths: List[Path] = typer.Argument(..., help="Files to classify.")):
    """Log the format guessed for each path."""
    for path in paths:
        logger.info("%s: %s", path, guess_format(path) or "unknown")


@app.command("convert")
def convert_cmd(
    source: Path = typer.Argument(..., help="Input file."),
    target: Path = typer.Argument(..., help="Output file (created or truncated)."),
    from_format: Optional[str] = typer.Option(None, "--from", help="Input format tag (default: guessed)."),
    to_format: Optional[str] = typer.Option(None, "--to", help="Output format tag (default: guessed)."),
    strict: bool = typer.Option(False, help="Stop at the first unparsable record."),
):
    """Convert every molecule of SOURCE into TARGET."""
    reader = _resolve(source, from_format)
    writer = _resolve(target, to_format)
    molecules = tqdm(read(source, reader.tag, strict=strict or None), desc=source.name, unit="mol")
    try:
        count = write(target, molecules, writer.tag)
    except MolrwError as e:
        logger.error("Conversion failed: %s", e)
        raise typer.Exit(code=1)
    logger.info("Converted %d molecules: %s (%s) -> %s (%s)", count, source, reader.tag, target, writer.tag)


@app.command("info")
def info_cmd(
    paths: List[Path] = typer.Argument(..., help="Files to summarize."),
    fmt: Optional[str] = typer.Option(None, "--format", help="Format tag for all files."),
    csv: Optional[Path] = typer.Option(None, help="Save the per-molecule table as CSV."),
):
    """Summarize the molecules in one or more files."""
    for path in paths:
        _resolve(path, fmt)
    ds = MoleculeDataset.from_paths(paths, fmt=fmt)
    df = ds.to_frame()
    if csv is not None:
        df.to_csv(csv, index=False)
        logger.info("Wrote %s (%d rows)", csv, len(df))
    typer.echo(df.to_string(index=False))


@app.command("view")
def view_cmd(
    path: Path = typer.Argument(..., help="Molecule file."),
    fmt: Optional[str] = typer.Option(None, "--format", help="Format tag (default: guessed)."),
):
    """Print the JSON view of the last molecule in PATH."""
    descriptor = _resolve(path, fmt)
    try:
        mol = from_file(path, descriptor.tag)
    except MolrwError as e:
        logger.error("Cannot read %s: %s", path, e)
        raise typer.Exit(code=1)
    typer.echo(to_json(mol))


def main():
    app()


if __name__ == "__main__":
    main()

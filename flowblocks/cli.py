#!/usr/bin/env python3
# flowblocks/cli.py

import glob as _glob
import json
import logging
from pathlib import Path
from typing import Optional

import typer

from flowblocks.editor.drafts import check_block_draft, save_block
from flowblocks.structural.checker import count_properties
from flowblocks.structural.checker import validate as validate_catalog
from flowblocks.structural.model import CatalogModelError, parse_catalog
from flowblocks.structural.report import ValidationReport
from flowblocks.structural.schema import CATALOG_JSON_SCHEMA
from flowblocks.utils.io import CatalogLoadError, load_catalog, read_json, write_json
from flowblocks.utils.logger import get_logger, init_logger

app = typer.Typer(help="flowblocks CLI - Validate block definition catalogs for the flow builder")

logger = get_logger("cli")

DEFAULT_CATALOG = Path("src/blockDefinitions.json")


def _section(title: str) -> None:
    typer.secho(f"\n━━━ {title} ━━━", fg=typer.colors.CYAN)


def _print_report(result: ValidationReport) -> None:
    for line in result.summary_lines():
        stripped = line.lstrip()
        if stripped.startswith("ERROR:") or line == "Validation failed!":
            typer.secho(line, fg=typer.colors.RED)
        elif stripped.startswith("WARNING:"):
            typer.secho(line, fg=typer.colors.YELLOW)
        elif line.startswith("All validations passed") or line.startswith("Validation passed"):
            typer.secho(line, fg=typer.colors.GREEN)
        else:
            print(line)


def _setup_logging(verbose: bool, log_dir: Optional[Path]) -> None:
    if verbose or log_dir is not None:
        init_logger(level=logging.DEBUG if verbose else None, log_dir=log_dir)


def _load_or_exit(path: Path) -> dict:
    try:
        return load_catalog(path)
    except CatalogLoadError as e:
        typer.secho(f"ERROR: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


@app.command()
def validate(
    path: Path = typer.Argument(
        DEFAULT_CATALOG, envvar="FLOWBLOCKS_CATALOG", help="Catalog file (.json, .yaml, .yml)"
    ),
    report: Optional[Path] = typer.Option(None, "--report", help="Write a JSON report to this path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging and a category breakdown"),
    log_dir: Optional[Path] = typer.Option(
        None, "--log-dir", envvar="FLOWBLOCKS_LOG_DIR", help="Also write logs to <dir>/flowblocks.log"
    ),
):
    """
    Validate a block definitions catalog. Exit code 1 when errors are found;
    warnings alone never fail the run.
    """
    _setup_logging(verbose, log_dir)

    _section("Block Definitions Validator")
    print(f"Validating: {path}")
    data = _load_or_exit(path)
    typer.secho("Catalog syntax is valid", fg=typer.colors.GREEN)

    _section("Structure Validation")
    block_types = data.get("blockTypes")
    if isinstance(block_types, dict):
        print(f"Found {len(block_types)} block type(s), {count_properties(block_types)} property definition(s)")

    result = validate_catalog(data)

    _section("Validation Results")
    _print_report(result)

    if report is not None:
        write_json(report, {"input": str(path), **result.to_dict()})
        print(f"[ok] wrote report to {report}")

    if verbose and result.ok:
        try:
            catalog = parse_catalog(data)
        except CatalogModelError as e:
            logger.warning("typed view unavailable: %s", e)
        else:
            print("[debug] categories:")
            for category, ids in catalog.categories().items():
                print(f"    - {category}: {', '.join(ids)}")
            print(f"[debug] property types: {catalog.property_type_counts()}")

    raise typer.Exit(code=0 if result.ok else 1)


@app.command()
def batch(
    glob: str = typer.Option("catalogs/*.json", "--glob", help="Glob for catalog files"),
    out: Path = typer.Option(Path("reports/validation.csv"), "--out", help="CSV path to write results"),
    log_dir: Optional[Path] = typer.Option(
        None, "--log-dir", envvar="FLOWBLOCKS_LOG_DIR", help="Also write logs to <dir>/flowblocks.log"
    ),
):
    """
    Validate many catalogs and export a CSV summary (one row per file).
    """
    import pandas as pd

    _setup_logging(False, log_dir)

    files = sorted(_glob.glob(glob))
    if not files:
        raise typer.BadParameter(f"No files match '{glob}'", param_hint="--glob")

    rows = []
    for fp_str in files:
        fp = Path(fp_str)
        try:
            data = load_catalog(fp)
        except CatalogLoadError as e:
            print(f"[skip] {fp}: {e}")
            rows.append({"path": str(fp), "blocks": 0, "errors": None, "warnings": None,
                         "ok": False, "load_error": str(e)})
            continue

        result = validate_catalog(data)
        block_types = data.get("blockTypes")
        rows.append({
            "path": str(fp),
            "blocks": len(block_types) if isinstance(block_types, dict) else 0,
            "errors": len(result.errors),
            "warnings": len(result.warnings),
            "ok": result.ok,
            "load_error": "",
        })
        status = "ok" if result.ok else "FAIL"
        print(f"[{status}] {fp} ({len(result.errors)} errors, {len(result.warnings)} warnings)")

    df = pd.DataFrame(rows, columns=["path", "blocks", "errors", "warnings", "ok", "load_error"])
    out.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out, index=False)
    print(f"[ok] wrote {out}")

    raise typer.Exit(code=0 if bool(df["ok"].all()) else 1)


@app.command()
def schema(
    out: Optional[Path] = typer.Option(None, "--out", help="Write the JSON Schema here instead of stdout"),
):
    """
    Print the catalog JSON Schema used by editor tooling.
    """
    if out is None:
        print(json.dumps(CATALOG_JSON_SCHEMA, ensure_ascii=False, indent=2))
        return
    write_json(out, CATALOG_JSON_SCHEMA)
    print(f"[ok] wrote {out}")


@app.command()
def check_block(
    block_file: Path = typer.Argument(..., exists=True, readable=True, help="JSON file with one block definition"),
    catalog: Optional[Path] = typer.Option(None, "--catalog", help="Catalog to check for id collisions"),
    selected_id: Optional[str] = typer.Option(None, "--selected-id", help="Id the block was opened under (rename)"),
):
    """
    Run the editor's save-time checks on a single block, plus the full
    validator on that block alone.
    """
    try:
        block = read_json(block_file)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        typer.secho(f"ERROR: Failed to parse JSON: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    if not isinstance(block, dict):
        typer.secho("ERROR: Block definition must be an object", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    if catalog is not None:
        block_types = _load_or_exit(catalog).get("blockTypes")
        if block_types is not None and not isinstance(block_types, dict):
            typer.secho('ERROR: "blockTypes" must be an object', fg=typer.colors.RED)
            raise typer.Exit(code=1)
        _, draft_errors = save_block(block_types or {}, block, selected_id=selected_id)
    else:
        draft_errors = check_block_draft(block)

    block_id = block.get("id") or "<draft>"
    result = validate_catalog({"blockTypes": {block_id: block}})

    _section("Editor Checks")
    if draft_errors:
        for err in draft_errors:
            typer.secho(f"  ERROR: {err}", fg=typer.colors.RED)
    else:
        typer.secho("Block can be saved", fg=typer.colors.GREEN)

    _section("Validation Results")
    _print_report(result)

    raise typer.Exit(code=0 if result.ok and not draft_errors else 1)


if __name__ == "__main__":
    app()

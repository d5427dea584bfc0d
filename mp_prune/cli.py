"""Click CLI with list-unused and graph subcommands."""

from __future__ import annotations

import json
from pathlib import Path

import click

from mp_prune import __version__
from mp_prune.config import ConfigFile, build_config, find_config_file, load_config_file
from mp_prune.errors import MpPruneError
from mp_prune.log import configure_logging
from mp_prune.models import AnalysisResult, AnalyzerConfig
from mp_prune.pipeline import analyze_project

_EXT_COLORS = {
    "js": "yellow",
    "ts": "blue",
    "wxml": "green",
    "wxss": "magenta",
    "less": "magenta",
    "wxs": "cyan",
    "json": "bright_yellow",
}


def _analysis_options(func):
    """Options shared by every command that runs an analysis."""
    options = [
        click.argument("project", type=click.Path(exists=True, file_okay=False, path_type=Path), default="."),
        click.option("--miniapp-root", "-m", help="Mini-program root, relative to PROJECT"),
        click.option("--entry-file", "-e", help="Root manifest to use instead of app.json"),
        click.option("--types", "-t", help="Comma-separated file extensions to scan"),
        click.option("--exclude", "-x", multiple=True, help="Glob of files to ignore (repeatable)"),
        click.option("--essential", multiple=True, help="File always treated as used (repeatable)"),
        click.option("--keep", "-k", multiple=True, help="Glob of files never reported (repeatable)"),
        click.option("--include-assets/--no-include-assets", default=None, help="Also scan image files"),
        click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
                     help="Config file (default: mp-prune.config.* in PROJECT)"),
        click.option("--verbose", "-v", count=True, help="Increase log verbosity (-v, -vv, -vvv)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _load_config(
    project: Path,
    config_path: Path | None,
    miniapp_root: str | None,
    entry_file: str | None,
    types: str | None,
    exclude: tuple[str, ...],
    essential: tuple[str, ...],
    keep: tuple[str, ...],
    include_assets: bool | None,
) -> AnalyzerConfig:
    try:
        path = config_path or find_config_file(project)
        file_config = load_config_file(path) if path else ConfigFile()
    except MpPruneError as e:
        raise click.ClickException(str(e))
    return build_config(
        project,
        file_config,
        miniapp_root=miniapp_root,
        entry_file=entry_file,
        types=types,
        exclude=exclude,
        essential_files=essential,
        keep_assets=keep,
        include_assets=include_assets,
    )


def _run(config: AnalyzerConfig, verbose: int) -> AnalysisResult:
    def progress(stage: str, current: int, total: int):
        if total > 0:
            click.echo(f"  {stage}: {current}/{total}", nl=(current == total), err=True)
        else:
            click.echo(f"  {stage}...", err=True)

    try:
        return analyze_project(config, progress=progress if verbose else None)
    except MpPruneError as e:
        raise click.ClickException(str(e))


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def _write(text: str, output: Path | None):
    if output:
        output.write_text(text, encoding="utf-8")
        click.echo(f"Wrote {output}", err=True)
    else:
        click.echo(text)


@click.group()
@click.version_option(version=__version__)
def cli():
    """mp-prune: Find files a WeChat mini-program never uses."""


@cli.command("list-unused")
@_analysis_options
@click.option("--format", "-f", "fmt", type=click.Choice(["text", "json"]), default="text", help="Output format")
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), help="Write the report to a file")
def list_unused(
    project: Path,
    miniapp_root: str | None,
    entry_file: str | None,
    types: str | None,
    exclude: tuple[str, ...],
    essential: tuple[str, ...],
    keep: tuple[str, ...],
    include_assets: bool | None,
    config_path: Path | None,
    verbose: int,
    fmt: str,
    output: Path | None,
):
    """List files that nothing in the project reaches."""
    configure_logging(verbose)
    config = _load_config(project, config_path, miniapp_root, entry_file, types,
                          exclude, essential, keep, include_assets)
    result = _run(config, verbose)
    root = config.project_root
    rel_paths = [_relative(p, root) for p in result.unused_files]

    if fmt == "json":
        payload = {
            "projectRoot": str(root),
            "miniappRoot": str(config.resolved_miniapp_root),
            "unusedFiles": rel_paths,
            "warnings": result.warnings,
            "summary": {
                "totalFiles": len(result.structure.module_nodes()),
                "unusedFiles": len(rel_paths),
            },
        }
        _write(json.dumps(payload, indent=2, ensure_ascii=False), output)
        return

    if output:
        _write("\n".join(rel_paths), output)
        return

    if not rel_paths:
        click.echo("No unused files found.")
        return

    click.echo(f"\nFound {len(rel_paths)} unused file(s):\n")

    # Group by extension
    by_ext: dict[str, list[str]] = {}
    for rel in rel_paths:
        ext = Path(rel).suffix.lstrip(".").lower() or "(none)"
        by_ext.setdefault(ext, []).append(rel)

    for ext, paths in sorted(by_ext.items()):
        click.echo(click.style(f"{ext} ({len(paths)})", fg=_EXT_COLORS.get(ext, "white"), bold=True))
        for rel in paths:
            click.echo(f"  {rel}")
        click.echo()

    if result.warnings:
        click.echo(click.style(f"{len(result.warnings)} warning(s); rerun with -v for details", dim=True))


@cli.command()
@_analysis_options
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), help="Write the graph to a file")
def graph(
    project: Path,
    miniapp_root: str | None,
    entry_file: str | None,
    types: str | None,
    exclude: tuple[str, ...],
    essential: tuple[str, ...],
    keep: tuple[str, ...],
    include_assets: bool | None,
    config_path: Path | None,
    verbose: int,
    output: Path | None,
):
    """Dump the project dependency graph as JSON."""
    configure_logging(verbose)
    config = _load_config(project, config_path, miniapp_root, entry_file, types,
                          exclude, essential, keep, include_assets)
    result = _run(config, verbose)
    _write(json.dumps(result.structure.to_dict(), indent=2, ensure_ascii=False), output)


if __name__ == "__main__":
    cli()

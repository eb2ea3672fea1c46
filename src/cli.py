"""CLI interface for markflow."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from markflow.adapters import ValidationSeverity, create_adapter
from markflow.config import MarkflowConfig, load_config, merge_cli_overrides
from markflow.core import MarkdownProcessor, prepare_content, render_platforms, standalone_page
from markflow.errors import MarkflowError

app = typer.Typer(
    name="markflow",
    help="Convert Markdown with front matter into WeChat- and Zhihu-ready HTML.",
)

console = Console()
err_console = Console(stderr=True)

_SEVERITY_STYLES = {
    ValidationSeverity.ERROR: "red",
    ValidationSeverity.WARNING: "yellow",
    ValidationSeverity.INFO: "cyan",
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from markflow import __version__

        console.print(f"markflow {__version__}")
        raise typer.Exit()


def _configure_logging(level: str | int) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )
    logging.getLogger().setLevel(level)


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log every processing step."),
    ] = False,
) -> None:
    """markflow - Markdown to platform-ready HTML."""
    ctx.obj = {"verbose": verbose}
    if verbose:
        _configure_logging(logging.DEBUG)


def _load(ctx: typer.Context, config_path: Path | None, **overrides: object) -> MarkflowConfig:
    """Load config, apply CLI overrides and set the log level from it."""
    try:
        config = merge_cli_overrides(load_config(config_path), **overrides)
    except MarkflowError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    if not verbose:
        _configure_logging(config.general.log_level)
    return config


def _read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        console.print(f"[red]Error:[/red] Cannot read {path}: {escape(str(exc))}")
        raise typer.Exit(1)


InputArg = Annotated[
    Path,
    typer.Argument(
        help="Markdown file to convert.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
]
ConfigOpt = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to a markflow TOML config file."),
]
PlatformOpt = Annotated[
    Optional[str],
    typer.Option("--platform", "-p", help="Target platform: wechat, zhihu or all."),
]


@app.command()
def process(
    ctx: typer.Context,
    input_file: InputArg,
    platform: PlatformOpt = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output directory. Defaults to ./output/"),
    ] = None,
    preview: Annotated[
        bool,
        typer.Option("--preview", help="Print the HTML instead of writing files."),
    ] = False,
    standalone: Annotated[
        bool,
        typer.Option("--standalone", help="Wrap output in a full page with the platform CSS."),
    ] = False,
    skip_validation: Annotated[
        bool,
        typer.Option("--skip-validation", help="Adapt even when validation fails."),
    ] = False,
    config_path: ConfigOpt = None,
) -> None:
    """Convert a Markdown file into HTML for each target platform."""
    config = _load(ctx, config_path, platform=platform, output_directory=output)
    source = _read_source(input_file)

    try:
        result = render_platforms(source, config=config, validate=not skip_validation)
    except MarkflowError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    title = result.content.title
    for target, html in result.outputs.items():
        if standalone:
            html = standalone_page(title, html, create_adapter(target, config))

        if preview:
            console.rule(f"[bold]{target.value}[/bold]")
            console.print(html, markup=False, highlight=False, soft_wrap=True)
            continue

        try:
            path = config.output.path_for(title, target)
        except MarkflowError as exc:
            console.print(f"[red]Error:[/red] {escape(str(exc))}")
            raise typer.Exit(1)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(html, encoding="utf-8")
        console.print(f"[green]{target.value}:[/green] {path}")

    if not result.outputs:
        console.print("[yellow]No enabled platforms to render.[/yellow]")


@app.command()
def inspect(
    ctx: typer.Context,
    input_file: InputArg,
    config_path: ConfigOpt = None,
) -> None:
    """Print the parsed title and metadata as YAML."""
    config = _load(ctx, config_path)
    source = _read_source(input_file)

    try:
        content = prepare_content(source, config)
    except MarkflowError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    summary = {
        "title": content.title,
        "metadata": content.metadata.model_dump(exclude_none=True),
        "images": MarkdownProcessor().extract_images(content.markdown),
        "links": MarkdownProcessor().extract_links(content.markdown),
    }
    console.print(
        yaml.safe_dump(summary, allow_unicode=True, sort_keys=False),
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


@app.command()
def validate(
    ctx: typer.Context,
    input_file: InputArg,
    platform: PlatformOpt = None,
    config_path: ConfigOpt = None,
) -> None:
    """Report every validation finding for each target platform."""
    config = _load(ctx, config_path, platform=platform)
    source = _read_source(input_file)

    try:
        content = prepare_content(source, config)
        targets = config.target_platforms()
    except MarkflowError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    table = Table(title=f"Validation: {escape(content.title)}")
    table.add_column("Platform")
    table.add_column("Severity")
    table.add_column("Field")
    table.add_column("Message")

    failed = False
    for target in targets:
        for issue in create_adapter(target, config).check_content(content):
            style = _SEVERITY_STYLES[issue.severity]
            table.add_row(
                target.value,
                f"[{style}]{issue.severity.value}[/{style}]",
                issue.field,
                escape(issue.message),
            )
            failed = failed or issue.severity == ValidationSeverity.ERROR

    if table.row_count:
        console.print(table)
    else:
        console.print("[green]No issues found.[/green]")

    if failed:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()

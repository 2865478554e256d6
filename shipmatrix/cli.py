"""Command-line interface for shipmatrix.

Provides commands for:
- run: Run the pipeline for an automatic check or a manual release
- next-version: Show the version a manual release would get
- targets: List the build matrix
- init-config: Generate configuration
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from shipmatrix import __version__
from shipmatrix.build.targets import archive_name, executable_name, targets_from_config
from shipmatrix.config.defaults import write_default_config
from shipmatrix.config.loader import load_config
from shipmatrix.exceptions import ReleaseError
from shipmatrix.pipeline.graph import JobState
from shipmatrix.pipeline.workflow import PipelineResult, ReleasePipeline
from shipmatrix.trigger import ReleaseKind, TriggerEvent
from shipmatrix.utils.logging import configure_logging
from shipmatrix.utils.version import Version, is_valid_tag
from shipmatrix.versioning import GitTagHistory, next_version

# Create Typer app
app = typer.Typer(
    name="shipmatrix",
    help="Release orchestration for compiled, multi-platform projects",
    add_completion=False,
    no_args_is_help=True,
)

# Rich console for formatted output
console = Console()

STATE_STYLES = {
    JobState.SUCCEEDED: "[green]SUCCEEDED[/green]",
    JobState.FAILED: "[red]FAILED[/red]",
    JobState.SKIPPED: "[yellow]SKIPPED[/yellow]",
    JobState.PENDING: "[dim]PENDING[/dim]",
    JobState.RUNNING: "[cyan]RUNNING[/cyan]",
}


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"shipmatrix version {__version__}")
        raise typer.Exit()


def display_outcomes(result: PipelineResult) -> None:
    """Print one row per job with its terminal state."""
    table = Table(title="Pipeline Jobs")
    table.add_column("Job", style="cyan")
    table.add_column("State", style="bold")
    table.add_column("Duration", justify="right")
    table.add_column("Detail")

    for name, outcome in result.outcomes.items():
        if outcome.state is JobState.FAILED and outcome.error is not None:
            detail = getattr(outcome.error, "message", str(outcome.error))
        elif outcome.state is JobState.SKIPPED:
            detail = outcome.skip_reason or ""
        else:
            detail = ""
        duration = f"{outcome.duration:.1f}s" if outcome.state is not JobState.SKIPPED else "-"
        table.add_row(name, STATE_STYLES[outcome.state], duration, detail)

    console.print(table)

    collection = result.collection
    if collection is not None and collection.failures:
        console.print("\n[red]Failed targets:[/red]")
        for failure in collection.failures:
            console.print(f"  {failure.target}: [dim]{failure.cause}[/dim]")


def display_record(result: PipelineResult) -> None:
    record = result.record
    if record is None:
        return
    lines = [
        f"Version: [bold]{record.version.tag}[/bold]",
        f"Prerelease: {'yes' if record.prerelease else 'no'}",
        f"Artifacts: {len(record.artifacts)}",
    ]
    if record.url:
        lines.append(f"URL: {record.url}")
    console.print(Panel("\n".join(lines), title="Release", border_style="green"))


def resolve_trigger(release_kind: str | None, from_env: bool) -> TriggerEvent:
    if from_env:
        return TriggerEvent.from_environment()
    if release_kind:
        return TriggerEvent.manual(ReleaseKind.parse(release_kind))
    return TriggerEvent.automatic()


@app.callback()
def main(
    version: bool = typer.Option(  # noqa: B008
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Release orchestration for compiled, multi-platform projects.

    Validates every commit with a full cross-platform build, and turns a
    manual release request into a tag, archives, a container image and a
    hosted release.
    """


@app.command()
def run(
    release_kind: str | None = typer.Option(  # noqa: B008
        None,
        "--release-kind",
        "-r",
        help="Run a manual release: 'beta' or 'stable' (omit for an automatic check)",
    ),
    from_env: bool = typer.Option(  # noqa: B008
        False,
        "--from-env",
        help="Read the trigger from the GitHub Actions environment",
    ),
    dry_run: bool = typer.Option(  # noqa: B008
        False,
        "--dry-run",
        "-n",
        help="Build everything but push no tag, image or release",
    ),
    config: Path | None = typer.Option(  # noqa: B008
        None,
        "--config",
        "-c",
        help="Path to configuration file (searched if omitted)",
    ),
    project_root: Path = typer.Option(  # noqa: B008
        Path("."),
        "--project-root",
        "-C",
        help="Project root directory",
    ),
    verbose: bool = typer.Option(  # noqa: B008
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
) -> None:
    """Run the release pipeline.

    Examples:
        shipmatrix run                         # automatic check
        shipmatrix run -r beta                 # beta release
        shipmatrix run -r stable --dry-run     # preview a stable release
        shipmatrix run --from-env              # inside GitHub Actions
    """
    configure_logging(verbose=verbose, console=console)
    try:
        root = project_root.resolve()
        cfg = load_config(config, project_root=root)
        trigger = resolve_trigger(release_kind, from_env)

        if dry_run:
            console.print(
                Panel("[yellow]DRY RUN MODE[/yellow] - No tag, image or release will be pushed")
            )

        result = ReleasePipeline(root, cfg, trigger, dry_run=dry_run).run()
    except ReleaseError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=e.exit_code) from None

    display_outcomes(result)
    display_record(result)

    if not result.succeeded:
        error = result.first_error
        if error is not None:
            console.print(f"\n[red]Error:[/red] {error}")
        raise typer.Exit(code=result.exit_code)
    console.print(f"\n[green]Pipeline {result.status}[/green]")


@app.command(name="next-version")
def next_version_cmd(
    config: Path | None = typer.Option(  # noqa: B008
        None,
        "--config",
        "-c",
        help="Path to configuration file (searched if omitted)",
    ),
    project_root: Path = typer.Option(  # noqa: B008
        Path("."),
        "--project-root",
        "-C",
        help="Project root directory",
    ),
) -> None:
    """Show the version the next manual release would get. Creates no tag."""
    try:
        root = project_root.resolve()
        cfg = load_config(config, project_root=root)
        latest = GitTagHistory(root, cfg).latest()
        upcoming = next_version(latest, cfg.version.tag_prefix)
    except ReleaseError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=e.exit_code) from None

    console.print(f"Latest tag: {latest or '[dim]none[/dim]'}")
    console.print(f"Next version: [bold]{upcoming.tag}[/bold]")


@app.command()
def targets(
    config: Path | None = typer.Option(  # noqa: B008
        None,
        "--config",
        "-c",
        help="Path to configuration file (searched if omitted)",
    ),
    project_root: Path = typer.Option(  # noqa: B008
        Path("."),
        "--project-root",
        "-C",
        help="Project root directory",
    ),
    tag: str | None = typer.Option(  # noqa: B008
        None,
        "--tag",
        "-t",
        help="Version tag used in archive names (default: the snapshot version)",
    ),
) -> None:
    """List the build matrix with executable and archive names."""
    try:
        cfg = load_config(config, project_root=project_root.resolve())
    except ReleaseError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=e.exit_code) from None

    if tag and not is_valid_tag(tag, cfg.version.tag_prefix):
        console.print(
            f"[red]Error:[/red] '{tag}' is not a release tag "
            f"(expected {cfg.version.tag_prefix}X.Y.Z)"
        )
        raise typer.Exit(code=3)

    label = tag or Version.snapshot(
        cfg.version.snapshot_qualifier, cfg.version.tag_prefix
    ).tag
    binary = cfg.project.binary_name

    table = Table(title=f"Build Matrix ({label})")
    table.add_column("OS", style="cyan")
    table.add_column("Arch", style="cyan")
    table.add_column("Executable")
    table.add_column("Archive", style="green")
    for target in targets_from_config(cfg):
        table.add_row(
            target.os,
            target.arch,
            executable_name(binary, target, cfg.build.windows_suffix),
            archive_name(binary, label, target),
        )
    console.print(table)


@app.command(name="init-config")
def init_config(
    output: Path = typer.Option(  # noqa: B008
        Path("shipmatrix.yml"),
        "--output",
        "-o",
        help="Output path for configuration file",
    ),
    name: str | None = typer.Option(  # noqa: B008
        None,
        "--name",
        help="Project name (defaults to the directory name)",
    ),
    force: bool = typer.Option(  # noqa: B008
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Generate a configuration file.

    Reads go.mod for the binary name and toolchain version and the git
    remote for the release repository.

    Examples:
        shipmatrix init-config
        shipmatrix init-config -o config/shipmatrix.yml
    """
    if output.exists() and not force:
        console.print(f"[red]Configuration already exists:[/red] {output}")
        console.print("Use --force to overwrite")
        raise typer.Exit(code=1)

    try:
        write_default_config(output, project_root=Path.cwd(), project_name=name)
    except (ReleaseError, OSError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from None
    console.print(f"[green]Configuration written to:[/green] {output}")


if __name__ == "__main__":
    app()

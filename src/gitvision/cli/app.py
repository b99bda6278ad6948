# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import logging
import sys
import threading
from pathlib import Path
from typing import List, Optional

import typer

from ..config import Settings
from ..domain import ConfigurationError, RepositoryContext, VcsQueryError
from ..adapters.vcs.git_cli import GitCLI
from ..adapters.store.sqlite_watchlist import SQLiteWatchList
from ..services import AttributionCoordinator, CommitHistoryIndex, ReportService
from ..services.report_service import FORMATS

from ..logging_config import setup_logging

setup_logging()

app = typer.Typer(help="GitVision CLI - Highlight the lines owned by selected commits")
watch_app = typer.Typer(help="Manage the persisted list of watched commits")
app.add_typer(watch_app, name="watch")

logger = logging.getLogger(__name__)

DEFAULT_DB = "gitvision.db"


# ------------------------------
# Host adapter
# ------------------------------


class CliHost:
    """HostPort for a terminal session: prompts on stdin, messages on stderr."""

    def __init__(self, assume_yes: bool = False, quiet: bool = False) -> None:
        self._assume_yes = assume_yes
        self._quiet = quiet

    def confirm(self, message: str) -> bool:
        if self._assume_yes:
            return True
        return typer.confirm(message, default=False, err=True)

    def warn(self, message: str) -> None:
        typer.secho(f"Warning: {message}", fg=typer.colors.YELLOW, err=True)

    def info(self, message: str) -> None:
        if not self._quiet:
            typer.echo(message, err=True)

    def highlights_changed(self) -> None:
        logger.debug("Highlights changed")


class _Progress:
    """Turns fractional progress reports from worker threads into bar ticks."""

    def __init__(self, bar, steps: int = 100) -> None:
        self._bar = bar
        self._steps = steps
        self._lock = threading.Lock()
        self._total = 0.0
        self._shown = 0

    def __call__(self, increment: float) -> None:
        with self._lock:
            self._total += increment
            target = min(self._steps, int(round(self._total * self._steps)))
            if target > self._shown:
                self._bar.update(target - self._shown)
                self._shown = target


# ------------------------------
# Wiring
# ------------------------------


def _settings(**overrides) -> Settings:
    """Environment settings with every truthy / non-empty CLI override applied."""
    try:
        settings = Settings.from_env()
        for key, value in overrides.items():
            if value:
                settings = settings.with_value(key, value)
    except ConfigurationError as e:
        raise typer.BadParameter(str(e))
    return settings


def _repo_root(repo: Path, timeout: Optional[float]) -> Path:
    try:
        return GitCLI(repo, timeout=timeout).toplevel()
    except VcsQueryError:
        raise typer.BadParameter(f"Not a git repository: {repo}")


def _wire(repo: Path, settings: Settings, host: CliHost) -> AttributionCoordinator:
    """
    Minimal composition root:
      GitCLI + RepositoryContext + AttributionCoordinator
    """
    root = _repo_root(repo, settings.query_timeout)
    vcs = GitCLI(root, timeout=settings.query_timeout)
    context = RepositoryContext(root, vcs, settings)
    return AttributionCoordinator(context, host)


def _run_pass(
    coordinator: AttributionCoordinator,
    labels: List[str],
    branch: Optional[str],
    progress: Optional[_Progress],
) -> None:
    if branch:
        coordinator.add_branch(branch, progress=progress)
    if labels or not branch:
        coordinator.add_commits(labels, progress=progress)


def _verbose(verbose: bool) -> None:
    if verbose:
        setup_logging("DEBUG")
        logger.debug("Verbose logging enabled")


# ------------------------------
# CLI Commands
# ------------------------------

REPO_OPTION = typer.Option(
    ".",
    "--repo",
    exists=True,
    file_okay=False,
    dir_okay=True,
    resolve_path=True,
    help="Path inside the git repository",
)
DB_OPTION = typer.Option(
    DEFAULT_DB,
    "--db",
    help="Path to the SQLite watch-list file",
    resolve_path=True,
)


@app.command()
def commits(
    repo: Path = REPO_OPTION,
    all_commits: bool = typer.Option(
        False, "--all-commits", help="Keep merge commits in the index."
    ),
    merged_only: bool = typer.Option(
        False, "--merged-only", help="Number only merge commits (merge test mode)."
    ),
    show_hash: bool = typer.Option(False, "--show-hash", help="Print hash and date too."),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose logging"),
):
    """
    List the commit index: the labels accepted by `highlight` and `watch`.
    """
    _verbose(verbose)
    settings = _settings(show_all_commits=all_commits, test_merged_commits=merged_only)
    root = _repo_root(repo, settings.query_timeout)
    index = CommitHistoryIndex.build(
        GitCLI(root, timeout=settings.query_timeout), settings, CliHost()
    )
    for commit in index:
        if show_hash:
            typer.echo(f"{commit.hash}  {commit.date}  {commit.label}")
        else:
            typer.echo(commit.label)


@app.command()
def highlight(
    repo: Path = REPO_OPTION,
    commit: Optional[List[str]] = typer.Option(
        None, "--commit", "-c", help="Commit label to watch (repeatable)."
    ),
    watched: bool = typer.Option(
        False, "--watched", help="Also watch the labels stored in the watch list."
    ),
    uncommitted: bool = typer.Option(
        False, "--uncommitted", help="Always include uncommitted changes."
    ),
    branch: Optional[str] = typer.Option(
        None, "--branch", help="Watch every commit on BRANCH..HEAD (e.g. main)."
    ),
    find_renamed: bool = typer.Option(
        False, "--find-renamed", help="Follow renamed files (extra rename-aware diff)."
    ),
    link_merged: bool = typer.Option(
        False, "--link-merged", help="Watching a merge also watches the commits it merged."
    ),
    include_whitespace: bool = typer.Option(
        False, "--include-whitespace", help="Attribute whitespace-only changes too."
    ),
    all_commits: bool = typer.Option(
        False, "--all-commits", help="Keep merge commits in the index."
    ),
    ignore: Optional[List[str]] = typer.Option(
        None, "--ignore", help="Glob of files to leave out (repeatable)."
    ),
    fmt: str = typer.Option("json", "--fmt", help="Output format: json, ndjson or csv."),
    out: Optional[Path] = typer.Option(
        None,
        "--out",
        "--output",
        help="Write the report here. If a directory is given the file is named "
        "'highlights.<fmt>' inside it. Omit to print to stdout.",
        resolve_path=True,
    ),
    db: Path = DB_OPTION,
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Process large change sets without asking."
    ),
    quiet: bool = typer.Option(False, "--quiet", help="Suppress the final summary line."),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose logging"),
):
    """
    Attribute lines to the selected commits and write the highlight report.
    """
    _verbose(verbose)
    fmt = fmt.lower()
    if fmt not in FORMATS:
        raise typer.BadParameter(
            f"Unknown format: {fmt}. Valid options: {', '.join(FORMATS)}"
        )

    settings = _settings(
        always_show_uncommitted=uncommitted,
        find_renamed_files=find_renamed,
        link_merged_commits=link_merged,
        include_whitespace_blame=include_whitespace,
        show_all_commits=all_commits,
        ignore_patterns=list(ignore or []),
    )
    host = CliHost(assume_yes=yes, quiet=quiet)
    coordinator = _wire(repo, settings, host)

    labels = list(commit or [])
    if watched:
        with SQLiteWatchList(db) as wl:
            labels = wl.labels(coordinator.context.root) + labels

    unknown = [label for label in labels if label not in coordinator.index]
    for label in unknown:
        host.warn(f"Unknown commit label: {label}")

    if quiet:
        _run_pass(coordinator, labels, branch, None)
    else:
        with typer.progressbar(length=100, label="Attributing", file=sys.stderr) as bar:
            _run_pass(coordinator, labels, branch, _Progress(bar))

    report = ReportService(coordinator.get_highlight_data(), root=coordinator.context.root)
    if out is None:
        typer.echo(report.render(fmt), nl=False)
    else:
        target = out / f"highlights.{fmt}" if out.is_dir() else out
        written = report.write_highlights(target, fmt=fmt)
        host.info(f"Wrote {fmt} report to {written}")

    if not quiet:
        counts = coordinator.get_highlight_files()
        host.info(f"Highlighted {sum(counts.values())} lines in {len(counts)} files")


@watch_app.command("add")
def watch_add(
    labels: List[str] = typer.Argument(..., help="Commit labels to watch."),
    repo: Path = REPO_OPTION,
    db: Path = DB_OPTION,
):
    """Add commit labels to the watch list."""
    settings = _settings()
    root = _repo_root(repo, settings.query_timeout)
    index = CommitHistoryIndex.build(
        GitCLI(root, timeout=settings.query_timeout), settings, CliHost()
    )
    unknown = [label for label in labels if label not in index]
    if unknown:
        typer.secho(
            f"Unknown commit label(s): {', '.join(unknown)}", fg=typer.colors.RED, err=True
        )
        raise typer.Exit(code=1)

    with SQLiteWatchList(db) as wl:
        added = wl.add(root, [index.get(label).label for label in labels])
    typer.echo(f"Watching {added} new commit(s)")


@watch_app.command("remove")
def watch_remove(
    labels: List[str] = typer.Argument(..., help="Commit labels to stop watching."),
    repo: Path = REPO_OPTION,
    db: Path = DB_OPTION,
):
    """Remove commit labels from the watch list."""
    root = _repo_root(repo, _settings().query_timeout)
    with SQLiteWatchList(db) as wl:
        removed = wl.remove(root, labels)
    typer.echo(f"Removed {removed} commit(s)")


@watch_app.command("list")
def watch_list(repo: Path = REPO_OPTION, db: Path = DB_OPTION):
    """Print the watched commit labels."""
    root = _repo_root(repo, _settings().query_timeout)
    with SQLiteWatchList(db) as wl:
        for label in wl.labels(root):
            typer.echo(label)


@watch_app.command("clear")
def watch_clear(repo: Path = REPO_OPTION, db: Path = DB_OPTION):
    """Forget every watched commit of the repository."""
    root = _repo_root(repo, _settings().query_timeout)
    with SQLiteWatchList(db) as wl:
        cleared = wl.clear(root)
    typer.echo(f"Cleared {cleared} commit(s)")

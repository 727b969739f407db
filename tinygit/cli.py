"""Command-line front end."""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

import click

from .config import Config, load_config
from .diff import diff_text, format_diff
from .errors import NotFound, TinygitError
from .repository import STORE_DIR, Repository

META_DIR = ".tinygit"
FILE_PATH = click.Path(exists=True, dir_okay=False, path_type=Path)


def find_root(start: Path) -> Path:
    """Walk up from ``start`` to the directory holding the metadata dir."""
    for candidate in (start, *start.parents):
        if (candidate / META_DIR / STORE_DIR).exists():
            return candidate
    raise NotFound("repository", str(start))


def open_repo() -> Repository:
    try:
        return Repository.open(find_root(Path.cwd().resolve()), meta_dir=META_DIR)
    except TinygitError as exc:
        raise click.ClickException(str(exc)) from exc


def work_path(repo: Repository, path: str) -> str:
    """Rewrite a path given relative to the cwd as a repository path."""
    root = repo.worktree.root.resolve()
    target = Path(os.path.normpath(Path.cwd().resolve() / path))
    try:
        return target.relative_to(root).as_posix()
    except ValueError:
        raise click.ClickException(
            f"'{path}' is outside repository at '{root}'"
        ) from None


@click.group()
@click.version_option(package_name="tinygit")
@click.option("-v", "--verbose", is_flag=True, help="Log progress to stderr.")
def cli(verbose):
    """tinygit - a small content-addressed version-control tool."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


@cli.command()
@click.option(
    "--hash",
    "hash_algorithm",
    type=click.Choice(["sha1", "sha256"]),
    default="sha1",
    show_default=True,
)
@click.option("--branch", "default_branch", default="main", show_default=True)
def init(hash_algorithm, default_branch):
    """Create an empty repository in the current directory."""
    root = Path.cwd()
    existed = (root / META_DIR / STORE_DIR).exists()
    config = load_config(root, META_DIR)
    if not existed:
        config = Config(
            meta_dir=META_DIR,
            default_branch=default_branch,
            hash_algorithm=hash_algorithm,
            author=config.author,
        )
    with Repository.init(root, config):
        pass
    verb = "Reinitialized existing" if existed else "Initialized empty"
    click.echo(f"{verb} tinygit repository in {root / META_DIR}")


@cli.command()
@click.argument("paths", nargs=-1, required=True)
def add(paths):
    """Stage files for the next commit."""
    with open_repo() as repo:
        for path in paths:
            try:
                digest = repo.stage(work_path(repo, path))
            except (TinygitError, ValueError) as exc:
                raise click.ClickException(str(exc)) from exc
            click.echo(f"Added {path} ({digest})")


@cli.command()
@click.argument("path")
def rm(path):
    """Remove a tracked file and stage the removal."""
    with open_repo() as repo:
        try:
            repo.remove(work_path(repo, path))
        except (TinygitError, ValueError) as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(f"Removed {path}")


@cli.command()
@click.argument("paths", nargs=-1, required=True)
def reset(paths):
    """Unstage PATHS, keeping the working files as they are."""
    with open_repo() as repo:
        for path in paths:
            try:
                repo.unstage(work_path(repo, path))
            except (TinygitError, ValueError) as exc:
                raise click.ClickException(str(exc)) from exc
            click.echo(f"Unstaged {path}")


@cli.command()
@click.option("-m", "--message", required=True, help="Commit message.")
def commit(message):
    """Record the staged changes."""
    with open_repo() as repo:
        try:
            root = repo.refs.head_commit() is None
            digest = repo.seal_commit(message)
        except TinygitError as exc:
            raise click.ClickException(str(exc)) from exc
        where = repo.refs.head_branch() or "detached HEAD"
        if root:
            where += " (root-commit)"
        click.echo(f"[{where} {digest[:7]}] {message}")


@cli.command()
def log():
    """Show first-parent history from HEAD."""
    with open_repo() as repo:
        try:
            for digest, entry in repo.log():
                click.echo(f"commit {digest}")
                if entry.is_merge:
                    click.echo("Merge: " + " ".join(p[:7] for p in entry.parents))
                when = datetime.fromtimestamp(entry.timestamp).strftime("%c")
                click.echo(f"Author: {entry.author}")
                click.echo(f"Date:   {when}")
                click.echo("")
                for line in entry.message.splitlines() or [""]:
                    click.echo(f"    {line}")
                click.echo("")
        except TinygitError as exc:
            raise click.ClickException(str(exc)) from exc


@cli.command()
@click.argument("name", required=False)
def branch(name):
    """List branches, or create NAME at HEAD."""
    with open_repo() as repo:
        if name is None:
            entries = list(repo.list_branches())
            if not entries:
                click.echo("No branches found.")
            for entry in entries:
                marker = "*" if entry.current else " "
                click.echo(f"{marker} {entry.name}")
            return
        try:
            digest = repo.create_branch(name)
        except (TinygitError, ValueError) as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(f"Branch '{name}' created at {digest[:7]}")


@cli.command()
@click.argument("target")
def checkout(target):
    """Switch to a branch or commit."""
    with open_repo() as repo:
        try:
            repo.switch_to(target)
        except TinygitError as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(f"Switched to {target}")


@cli.command()
@click.argument("branch_name")
@click.option(
    "--allow-unrelated",
    is_flag=True,
    help="Merge histories that share no commit against an empty base.",
)
def merge(branch_name, allow_unrelated):
    """Merge BRANCH_NAME into the current branch."""
    with open_repo() as repo:
        try:
            outcome = repo.begin_merge(branch_name, allow_unrelated=allow_unrelated)
        except TinygitError as exc:
            raise click.ClickException(str(exc)) from exc

        if outcome.status == "up_to_date":
            click.echo("Already up to date.")
        elif outcome.status == "fast_forward":
            click.echo(f"Fast-forward to {outcome.commit[:7]}")
        elif outcome.status == "committed":
            click.echo(f"Merged branch '{branch_name}'")
            click.echo(f"Merge commit: {outcome.commit[:7]}")
        else:
            for conflict in outcome.conflicts:
                click.echo(f"Conflict in file: {conflict.path}", err=True)
            click.echo(
                "Merge failed due to conflicts. Resolve them, add, and commit.",
                err=True,
            )
            sys.exit(1)


@cli.command()
@click.argument("file1", type=FILE_PATH)
@click.argument("file2", type=FILE_PATH)
def diff(file1, file2):
    """Show line differences between two files."""
    try:
        text_a = file1.read_text(encoding="utf-8", errors="replace")
        text_b = file2.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise click.ClickException(
            f"cannot read {exc.filename}: {exc.strerror}"
        ) from exc
    records = diff_text(text_a, text_b)
    if records:
        click.echo(format_diff(records))


@cli.command()
def status():
    """Show the current branch and staged changes."""
    with open_repo() as repo:
        try:
            state = repo.current_status()
        except TinygitError as exc:
            raise click.ClickException(str(exc)) from exc
        if state.branch is not None:
            click.echo(f"On branch {state.branch}")
        else:
            click.echo(f"HEAD detached at {state.detached_at[:7]}")
        if state.clean:
            click.echo("\nnothing to commit, working tree clean")
            return
        click.echo("\nChanges to be committed:")
        labels = {"added": "new file:", "modified": "modified:", "deleted": "deleted:"}
        for path, change in state.staged:
            click.echo(f"  {labels[change]:<12}{path}")


def main():
    cli()


if __name__ == "__main__":
    main()

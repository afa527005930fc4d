# cli.py
from __future__ import annotations

import re
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

import click

from jenkinsctl.actions import run_action
from jenkinsctl.build_queue import fetch_queue, render_queue
from jenkinsctl.client.api_client import APIError, JenkinsClient
from jenkinsctl.config import Config, ConfigError, load_config
from jenkinsctl.history import show_history
from jenkinsctl.jobs import AmbiguousTargetError, JobCache, NoMatchesError
from jenkinsctl.tail import tail_job
from jenkinsctl.ui.console import Console, get_console, set_console

# Short verb -> command name
ALIASES = {
    "ls": "list",
    "q": "queue",
    "hist": "history",
}


class AliasedGroup(click.Group):
    """Click group that also accepts the short verbs in ALIASES."""

    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        return super().get_command(ctx, ALIASES.get(cmd_name, cmd_name))


@dataclass
class RunContext:
    """Everything a command needs for one invocation."""
    config: Config
    client: JenkinsClient
    jobs: JobCache


def build_context(config: Config) -> RunContext:
    client = JenkinsClient(
        config.base_uri,
        user=config.user,
        cookie_file=config.cookie_file,
        credentials=config.get_password,
    )
    return RunContext(
        config=config,
        client=client,
        jobs=JobCache(client, config.jobs, config.views),
    )


@contextmanager
def _run_session(ctx: click.Context) -> Iterator[RunContext]:
    """Yield the run context and turn failures into CLI errors."""
    console = get_console()
    try:
        yield ctx.obj
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except re.error as e:
        raise click.BadParameter(f"invalid regular expression: {e}", param_hint="PATTERN") from None
    except NoMatchesError as e:
        console.print_error(
            "No matches",
            str(e),
            suggestion="Run 'jenkinsctl list' to see the available jobs.",
        )
        sys.exit(1)
    except AmbiguousTargetError as e:
        console.print_error(
            "Ambiguous target",
            str(e),
            details=[job.name for job in e.matches],
            suggestion=f"Narrow the pattern or give the exact job name:\n  jenkinsctl {e.command} <job>",
        )
        sys.exit(1)
    except APIError as e:
        console.print_error("API request failed", str(e))
        if console.verbose:
            console.print_exception(e)
        sys.exit(1)
    except ConfigError as e:
        console.print_error("Invalid configuration", str(e))
        sys.exit(1)


@click.group(cls=AliasedGroup)
@click.option(
    "-c", "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    envvar="JENKINSCTL_CONFIG",
    help="Configuration file (defaults to ~/.jenkinsctl.yml if present).",
)
@click.option("-b", "--base-uri", default=None, help="Base URI of the CI server.")
@click.option("-u", "--user", default=None, help="User to log in as.")
@click.option("-j", "--job", "jobs", multiple=True, help="Job to consider (repeatable).")
@click.option("-w", "--view", "views", multiple=True, help="View whose jobs to consider (repeatable).")
@click.option("--stoplight/--no-stoplight", default=None, help="Show successful jobs in green.")
@click.option("--color/--no-color", default=None, help="Force colored output on or off.")
@click.option("--stuck/--no-stuck", default=None, help="Show stuck queue items.")
@click.option("-y", "--yes", is_flag=True, default=False, help="Do not ask before acting on several jobs.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Trace HTTP requests and responses.")
@click.pass_context
def cli(ctx, config_path, base_uri, user, jobs, views, stoplight, color, stuck, yes, verbose):
    """jenkinsctl: list, start, stop and follow jobs on a CI server."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        Console(color=color).print_error("Invalid configuration", str(e))
        sys.exit(1)

    config = config.override(
        base_uri=base_uri,
        user=user,
        jobs=list(jobs) or None,
        views=list(views) or None,
        stoplight=stoplight,
        color=color,
        show_stuck=stuck,
        auto_confirm=True if yes else None,
        verbose=True if verbose else None,
    )
    set_console(Console(color=config.color, stoplight=config.stoplight, verbose=config.verbose))
    ctx.obj = build_context(config)


@cli.command("list")
@click.argument("pattern", required=False)
@click.pass_context
def list_jobs(ctx, pattern):
    """List jobs and their status (* building, ? aborted, + queued)."""
    console = get_console()
    with _run_session(ctx) as run:
        for job in run.jobs.resolve(pattern):
            console.print_job(job)


def _action_command(name: str, help_text: str) -> click.Command:
    @click.command(name, help=help_text)
    @click.argument("pattern")
    @click.pass_context
    def command(ctx, pattern):
        with _run_session(ctx) as run:
            matches = run.jobs.resolve(pattern)
            run_action(run.client, name, matches, auto_confirm=run.config.auto_confirm)

    return command


for _name, _help in (
    ("start", "Start a build of the matching jobs."),
    ("stop", "Stop the running build of the matching jobs."),
    ("enable", "Enable the matching jobs."),
    ("disable", "Disable the matching jobs."),
    ("wipeout", "Wipe out the workspace of the matching jobs."),
):
    cli.add_command(_action_command(_name, _help))


@cli.command()
@click.argument("pattern")
@click.pass_context
def tail(ctx, pattern):
    """Follow the console log of a job's last build."""
    with _run_session(ctx) as run:
        job = run.jobs.resolve_one(ctx.info_name, pattern)
        tail_job(run.client, job)


@cli.command()
@click.pass_context
def queue(ctx):
    """Show the pending build queue."""
    with _run_session(ctx) as run:
        render_queue(fetch_queue(run.client), show_stuck=run.config.show_stuck)


@cli.command()
@click.argument("pattern")
@click.pass_context
def history(ctx, pattern):
    """List recent builds of a job."""
    with _run_session(ctx) as run:
        job = run.jobs.resolve_one(ctx.info_name, pattern)
        show_history(run.client, job, depth=run.config.history_depth)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()

# actions.py
from __future__ import annotations

from typing import Callable, Dict, Sequence

import click

from .client.api_client import APIError, JenkinsClient, LoginError
from .client.models import Job
from .ui.console import get_console


class ActionError(Exception):
    """A single job's action could not be carried out."""
    pass


def _start(client: JenkinsClient, job: Job) -> None:
    client.start_build(job.name)


def _stop(client: JenkinsClient, job: Job) -> None:
    if not job.is_building:
        return
    build = client.get_last_build(job)
    if build is None:
        raise ActionError("job has never been built")
    client.stop_build(build)


def _enable(client: JenkinsClient, job: Job) -> None:
    client.enable_job(job.name)


def _disable(client: JenkinsClient, job: Job) -> None:
    client.disable_job(job.name)


def _wipeout(client: JenkinsClient, job: Job) -> None:
    client.wipeout_workspace(job.name)


ACTIONS: Dict[str, Callable[[JenkinsClient, Job], None]] = {
    "start": _start,
    "stop": _stop,
    "enable": _enable,
    "disable": _disable,
    "wipeout": _wipeout,
}


def confirm(command: str, jobs: Sequence[Job]) -> bool:
    """
    Ask before acting on several jobs.

    Re-asks until the answer starts with y or n. End of input counts as no.
    """
    console = get_console()
    console.print_info(f"'{command}' matches {len(jobs)} jobs:")
    for job in jobs:
        console.print_info(f"  {console.format_job(job)}")
    while True:
        try:
            answer = click.prompt(
                f"{command.capitalize()} all of them? [y/N]",
                default="",
                show_default=False,
                err=True,
            )
        except click.Abort:
            return False
        answer = answer.strip().lower()
        if answer.startswith("y"):
            return True
        if answer.startswith("n"):
            return False


def run_action(
    client: JenkinsClient,
    command: str,
    jobs: Sequence[Job],
    auto_confirm: bool = False,
) -> Dict[str, str | None]:
    """
    Run ``command`` against every job, isolating failures per job.

    Returns:
        Mapping of job name to None (OK) or an error message. Empty if the
        user declined the confirmation.
    """
    action = ACTIONS[command]
    console = get_console()

    if len(jobs) > 1 and not auto_confirm and not confirm(command, jobs):
        console.print_info("Aborted, nothing was done.")
        return {}

    results: Dict[str, str | None] = {}
    for job in jobs:
        try:
            action(client, job)
        except LoginError:
            raise
        except (APIError, ActionError) as e:
            results[job.name] = str(e)
        else:
            results[job.name] = None
        console.print_result(job.name, results[job.name])
    return results
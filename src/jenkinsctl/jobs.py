# jobs.py
from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence

from .client.api_client import JenkinsClient
from .client.models import Job
from .ui.console import get_console

MATCH_ALL = ".*"


class ResolutionError(Exception):
    """Base class for job selection failures."""
    pass


class NoMatchesError(ResolutionError):
    def __init__(self, pattern: str):
        self.pattern = pattern
        super().__init__(f"No jobs match {pattern!r}")


class AmbiguousTargetError(ResolutionError):
    def __init__(self, command: str, pattern: str, matches: Sequence[Job]):
        self.command = command
        self.pattern = pattern
        self.matches = list(matches)
        super().__init__(
            f"'{command}' needs exactly one job but {pattern!r} matches {len(self.matches)}"
        )


def expand_views(client: JenkinsClient, view: str) -> List[Job]:
    """
    Jobs of a view and, recursively, of all of its child views.

    Child views are addressed as "parent/view/child".
    """
    data = client.get_view(view)
    jobs = [Job.from_dict(j) for j in data.get("jobs", [])]
    for child in data.get("views") or []:
        jobs.extend(expand_views(client, f"{view}/view/{child['name']}"))
    return jobs


def dedupe(jobs: Iterable[Job]) -> List[Job]:
    """Drop later jobs whose name was already seen."""
    seen = set()
    unique = []
    for job in jobs:
        if job.name not in seen:
            seen.add(job.name)
            unique.append(job)
    return unique


def fetch_jobs(
    client: JenkinsClient,
    job_names: Sequence[str] = (),
    view_names: Sequence[str] = (),
) -> List[Job]:
    """Configured jobs then views' jobs; every top-level job if none are configured."""
    if not job_names and not view_names:
        return dedupe(client.get_all_jobs())
    jobs: List[Job] = [client.get_job(name) for name in job_names]
    for view in view_names:
        jobs.extend(expand_views(client, view))
    return dedupe(jobs)


def filter_jobs(jobs: Sequence[Job], pattern: Optional[str] = None) -> List[Job]:
    """
    Jobs whose name matches ``pattern`` (a regular expression, searched).

    An exact name match wins: if any name equals the pattern, only the
    exact matches are returned, even when the pattern is not a valid regex.

    Raises:
        re.error: If the pattern is not a valid regular expression
        NoMatchesError: If nothing matches
    """
    pattern = pattern or MATCH_ALL
    exact = [job for job in jobs if job.name == pattern]
    if exact:
        return exact
    regex = re.compile(pattern)
    matches = [job for job in jobs if regex.search(job.name)]
    if not matches:
        raise NoMatchesError(pattern)
    return matches


def resolve_jobs(
    client: JenkinsClient,
    pattern: Optional[str] = None,
    job_names: Sequence[str] = (),
    view_names: Sequence[str] = (),
) -> List[Job]:
    """Fetch the configured jobs and select those ``pattern`` matches."""
    return filter_jobs(fetch_jobs(client, job_names, view_names), pattern)


class JobCache:
    """The job list for one run: fetched on first use, then reused."""

    def __init__(
        self,
        client: JenkinsClient,
        job_names: Sequence[str] = (),
        view_names: Sequence[str] = (),
    ):
        self.client = client
        self.job_names = list(job_names)
        self.view_names = list(view_names)
        self._jobs: Optional[List[Job]] = None

    @property
    def jobs(self) -> List[Job]:
        if self._jobs is None:
            self._jobs = fetch_jobs(self.client, self.job_names, self.view_names)
            get_console().print_debug(f"fetched {len(self._jobs)} job(s)")
        return self._jobs

    def resolve(self, pattern: Optional[str] = None) -> List[Job]:
        # same selection as resolve_jobs, over the memoized list
        return filter_jobs(self.jobs, pattern)

    def resolve_one(self, command: str, pattern: str) -> Job:
        """The single job ``pattern`` selects for ``command``."""
        matches = self.resolve(pattern)
        if len(matches) > 1:
            raise AmbiguousTargetError(command, pattern, matches)
        return matches[0]

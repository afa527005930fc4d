# history.py
from __future__ import annotations

from datetime import datetime
from typing import List

from .client.api_client import JenkinsClient
from .client.models import Build, BuildRef, Job
from .ui.console import ERROR, MUTED, SUCCESS, Console, get_console

# Build result -> status color used for the derived history entry
RESULT_COLORS = {
    "SUCCESS": "blue",
    "ABORTED": "aborted",
    "FAILURE": "red",
}
RESULT_STYLES = {
    "SUCCESS": SUCCESS,
    "ABORTED": ERROR,
    "FAILURE": ERROR,
}


def result_style(result: str | None, console: Console) -> dict:
    """Display style for a build result; unknown results are warned about."""
    if result in RESULT_STYLES:
        return RESULT_STYLES[result]
    if result is not None:
        console.print_warning(f"unrecognized build result {result!r}")
    return MUTED


def history_entries(job: Job, builds: List[Build]) -> List[Job]:
    """One copy of ``job`` per build, with that build as its last build."""
    entries = []
    for build in builds:
        color = RESULT_COLORS.get(build.result or "", "notbuilt")
        if build.building:
            color += "_anime"
        entries.append(job.derive(
            color=color,
            in_queue=False,
            last_build=BuildRef(
                number=build.number,
                url=build.url,
                timestamp=build.timestamp,
                duration=build.duration,
                building=build.building,
                result=build.result,
            ),
        ))
    return entries


def format_entry(entry: Job, console: Console) -> str:
    build = entry.last_build
    started = datetime.fromtimestamp(build.timestamp / 1000).strftime("%Y-%m-%d %H:%M:%S")
    markers = console.job_markers(entry)
    line = f"#{build.number:<6} {started}  {markers:<2} {build.duration / 1000:.3f}s"
    return console.styled(line, result_style(build.result, console))


def show_history(client: JenkinsClient, job: Job, depth: int = 20) -> None:
    console = get_console()
    builds = client.get_builds(job.name, depth=depth)
    if not builds:
        console.print_info(f"{job.name} has no builds")
        return
    console.print_header(job.name)
    for entry in history_entries(job, builds):
        console.echo(format_entry(entry, console))

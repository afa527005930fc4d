# tail.py
from __future__ import annotations

import time
from typing import Callable, Iterator, Optional

from .client.api_client import JenkinsClient
from .client.models import Job
from .ui.console import get_console

POLL_INTERVAL = 2.0


class LogStream:
    """
    Iterator over the console output of a job's last build.

    Each step fetches the text after the current offset. Iteration ends
    after the first response without the "more data" flag. Transport
    errors propagate.
    """

    def __init__(
        self,
        client: JenkinsClient,
        job_name: str,
        interval: float = POLL_INTERVAL,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.client = client
        self.job_name = job_name
        self.interval = interval
        self.sleep = sleep or time.sleep
        self.offset = 0
        self.done = False
        self._polled = False

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        if self.done:
            raise StopIteration
        if self._polled:
            self.sleep(self.interval)
        chunk = self.client.get_log_chunk(self.job_name, self.offset)
        self._polled = True
        self.offset = chunk.next_offset
        self.done = not chunk.more
        return chunk.text


def tail_job(client: JenkinsClient, job: Job, interval: float = POLL_INTERVAL) -> None:
    """Print a job's last build log as it grows, until the build finishes."""
    console = get_console()
    console.print_debug(f"tailing {job.url}lastBuild/console")
    for text in LogStream(client, job.name, interval=interval):
        if text:
            console.echo(text, nl=False)

# build_queue.py
from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

from .client.api_client import JenkinsClient
from .client.models import QueueItem, QueueSnapshot
from .ui.console import get_console

HOST_WIDTH = 40
ELLIPSIS = "..."
# header for items that can run on any executor
ANY_HOST = "(any)"

# why-text patterns; the host group names the executor or label
BLOCKED_RE = re.compile(r"^Waiting for next available executor(?:(?: on)? (?P<host>.+?))?\.?$")
STUCK_RES = [
    re.compile(r"^(?P<host>.+?) is offline\.?$"),
    re.compile(r"^All nodes of label [‘'](?P<host>.+?)[’'] are offline\.?$"),
    re.compile(r"^There are no nodes with the label [‘'](?P<host>.+?)[’']\.?$"),
]
RUNNING_RE = re.compile(r"^Build #\d+ is already in progress")
QUIET_RE = re.compile(r"^In the quiet period")


def classify(item: QueueItem) -> Tuple[str, Optional[str]]:
    """
    Section and host for one queue item.

    Returns:
        ("blocked" | "stuck" | "running" | "quieted" | "unknown", host or None)
    """
    why = item.why.strip()
    match = BLOCKED_RE.match(why)
    if match:
        host = match.group("host")
        host = host.strip("‘’'") if host else ANY_HOST
        return ("stuck" if item.stuck else "blocked"), host
    for regex in STUCK_RES:
        match = regex.match(why)
        if match:
            return "stuck", match.group("host")
    if RUNNING_RE.match(why):
        return "running", None
    if QUIET_RE.match(why):
        return "quieted", None
    return "unknown", None


def build_snapshot(items: Iterable[QueueItem]) -> QueueSnapshot:
    """Group queue items by why they wait. Unknown reasons are warned about and dropped."""
    console = get_console()
    snapshot = QueueSnapshot()
    for item in items:
        section, host = classify(item)
        if section == "blocked":
            snapshot.blocked.setdefault(host, []).append(item)
        elif section == "stuck":
            snapshot.stuck.setdefault(host, []).append(item)
        elif section == "running":
            snapshot.running.append(item)
        elif section == "quieted":
            snapshot.quieted.append(item)
        else:
            console.print_warning(f"{item.name}: unrecognized queue reason {item.why!r}")
    return snapshot


def fetch_queue(client: JenkinsClient) -> QueueSnapshot:
    return build_snapshot(client.get_queue())


def truncate_middle(text: str, width: int = HOST_WIDTH) -> str:
    """Shorten ``text`` to ``width`` by eliding its middle."""
    if len(text) <= width:
        return text
    keep = width - len(ELLIPSIS)
    head = (keep + 1) // 2
    tail = keep - head
    return text[:head] + ELLIPSIS + (text[-tail:] if tail else "")


def _print_items(items: List[QueueItem], indent: str) -> None:
    console = get_console()
    for item in items:
        console.echo(indent + console.format_job(item.as_job()))


def render_queue(snapshot: QueueSnapshot, show_stuck: bool = False) -> None:
    console = get_console()
    if snapshot.is_empty():
        console.print_info("Queue is empty")
        return

    sections = [("Blocked", snapshot.blocked)]
    if show_stuck:
        sections.append(("Stuck", snapshot.stuck))
    for title, by_host in sections:
        if not by_host:
            continue
        console.print_header(f"{title}:")
        for host, items in by_host.items():
            console.echo(f"  {truncate_middle(host)}:")
            _print_items(items, "    ")

    for title, items in (("Already running:", snapshot.running), ("Quiet period:", snapshot.quieted)):
        if items:
            console.print_header(title)
            _print_items(items, "  ")

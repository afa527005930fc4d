# client/models.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

BUILDING_SUFFIX = "_anime"


@dataclass(frozen=True)
class BuildRef:
    """Reference to a job's most recent build, as embedded in job JSON."""
    number: int
    url: str
    timestamp: Optional[int] = None
    duration: Optional[int] = None
    building: bool = False
    result: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional[BuildRef]:
        if not data or "number" not in data:
            return None
        return cls(
            number=int(data["number"]),
            url=data.get("url", ""),
            timestamp=data.get("timestamp"),
            duration=data.get("duration"),
            building=bool(data.get("building", False)),
            result=data.get("result"),
        )


@dataclass(frozen=True)
class Job:
    """A named, independently buildable unit on the CI server."""
    name: str
    url: str
    color: str = "notbuilt"
    in_queue: bool = False
    last_build: Optional[BuildRef] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Job:
        """Create Job from a job (or view job entry) API response."""
        return cls(
            name=data["name"],
            url=data.get("url", ""),
            color=data.get("color") or "notbuilt",
            in_queue=bool(data.get("inQueue", False)),
            last_build=BuildRef.from_dict(data.get("lastBuild")),
        )

    def derive(self, **changes: Any) -> Job:
        """Copy of this job with some fields overridden."""
        return replace(self, **changes)

    @property
    def base_color(self) -> str:
        if self.color.endswith(BUILDING_SUFFIX):
            return self.color[: -len(BUILDING_SUFFIX)]
        return self.color

    @property
    def is_building(self) -> bool:
        return BUILDING_SUFFIX in self.color

    @property
    def was_aborted(self) -> bool:
        return self.base_color == "aborted"


@dataclass(frozen=True)
class Build:
    """One entry of a job's build history."""
    number: int
    url: str
    result: Optional[str]
    building: bool
    timestamp: int
    duration: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Build:
        return cls(
            number=int(data["number"]),
            url=data.get("url", ""),
            result=data.get("result"),
            building=bool(data.get("building", False)),
            timestamp=int(data.get("timestamp") or 0),
            duration=int(data.get("duration") or 0),
        )

    @property
    def aborted(self) -> bool:
        return self.result == "ABORTED"


@dataclass(frozen=True)
class QueueItem:
    """A pending build in the CI queue."""
    name: str
    url: str
    why: str
    color: str = "notbuilt"
    stuck: bool = False
    blocked: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> QueueItem:
        task = data.get("task") or {}
        return cls(
            name=task.get("name", "?"),
            url=task.get("url", ""),
            why=data.get("why") or "",
            color=task.get("color") or "notbuilt",
            stuck=bool(data.get("stuck", False)),
            blocked=bool(data.get("blocked", False)),
        )

    def as_job(self) -> Job:
        return Job(name=self.name, url=self.url, color=self.color, in_queue=True)


@dataclass
class QueueSnapshot:
    """Queue items grouped by the reason they are waiting."""
    blocked: Dict[str, List[QueueItem]] = field(default_factory=dict)
    stuck: Dict[str, List[QueueItem]] = field(default_factory=dict)
    running: List[QueueItem] = field(default_factory=list)
    quieted: List[QueueItem] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.blocked or self.stuck or self.running or self.quieted)


@dataclass(frozen=True)
class LogChunk:
    """One increment of progressive console output."""
    text: str
    more: bool
    next_offset: int

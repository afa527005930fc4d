# client/api_client.py
from __future__ import annotations

import json
import os
import urllib.error
import urllib.request
from http.cookiejar import LoadError, MozillaCookieJar
from pathlib import Path
from typing import Callable, Dict, List, Optional
from urllib.parse import quote, urlencode

from .models import Build, BuildRef, Job, LogChunk, QueueItem
from jenkinsctl.ui.console import get_console

JOB_TREE = "name,url,color,inQueue,lastBuild[number,url,timestamp,duration,building,result]"
BUILD_TREE = "number,url,result,building,timestamp,duration"
LOGIN_MARKER = "log in"


class APIError(Exception):
    """Raised when API requests fail. ``status`` is the HTTP code, if there was a response."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class LoginError(APIError):
    """Raised when the server rejects the supplied credentials."""
    pass


def job_path(name: str) -> str:
    """URL path of a job; folder names ("a/b") become nested job segments."""
    return "/".join(f"job/{quote(part, safe='')}" for part in name.split("/"))


def view_path(name: str) -> str:
    """URL path of a (possibly nested) view, e.g. "parent/view/child"."""
    parts = [p for p in name.strip("/").split("/view/") if p]
    return "/".join(f"view/{quote(part, safe='')}" for part in parts)


class JenkinsClient:
    """HTTP client for the CI server's REST API."""

    def __init__(
        self,
        base_url: str,
        user: Optional[str] = None,
        cookie_file: Optional[Path] = None,
        credentials: Optional[Callable[[str], str]] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize API client.

        Args:
            base_url: Base URL of the server (e.g., "https://ci.example.com")
            user: User name used when a login is required
            cookie_file: Mozilla-format cookie store shared between runs
            credentials: Called with the user name to obtain a password
            timeout: Socket timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.user = user
        self.cookie_file = cookie_file
        self.credentials = credentials
        self.timeout = timeout
        self.cookies = MozillaCookieJar(str(cookie_file) if cookie_file else None)
        self._load_cookies()
        self._opener = urllib.request.build_opener(urllib.request.HTTPCookieProcessor(self.cookies))
        self._logged_in = False
        self._crumb: Optional[Dict[str, str]] = None

    def _load_cookies(self) -> None:
        if self.cookie_file is None or not self.cookie_file.exists():
            return
        try:
            self.cookies.load(ignore_discard=True, ignore_expires=True)
        except (LoadError, OSError) as e:
            get_console().print_warning(f"ignoring unreadable cookie file {self.cookie_file}: {e}")

    def save_cookies(self) -> None:
        if self.cookie_file is None:
            return
        self.cookie_file.parent.mkdir(parents=True, exist_ok=True)
        self.cookies.save(ignore_discard=True, ignore_expires=True)
        os.chmod(self.cookie_file, 0o600)

    def url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _open(
        self,
        method: str,
        path: str,
        data: Optional[bytes] = None,
        headers: Optional[dict] = None,
    ):
        """
        Make an HTTP request and return the open response.

        Raises:
            APIError: If the request fails
        """
        console = get_console()
        url = self.url(path)
        req = urllib.request.Request(url, data=data, headers=headers or {}, method=method)
        console.print_debug(f"> {method} {url}")
        for name, value in req.header_items():
            console.print_debug(f">   {name}: {value}")
        try:
            response = self._opener.open(req, timeout=self.timeout)
        except urllib.error.HTTPError as e:
            error_body = e.read().decode("utf-8", "replace") if e.fp else ""
            console.print_debug(f"< {e.code} {e.reason}")
            raise APIError(
                f"{method} {url} failed: {e.code} {e.reason}. {error_body[:200]}".rstrip(),
                status=e.code,
            ) from e
        except urllib.error.URLError as e:
            raise APIError(f"Network error: {e.reason}") from e
        console.print_debug(f"< {response.status} {response.geturl()}")
        for name, value in response.getheaders():
            console.print_debug(f"<   {name}: {value}")
        return response

    def request(
        self,
        method: str,
        path: str,
        data: Optional[bytes] = None,
        headers: Optional[dict] = None,
    ) -> tuple[str, dict, str]:
        """
        Make an HTTP request to the API.

        Returns:
            (body, headers, final url) of the response
        """
        with self._open(method, path, data=data, headers=headers) as response:
            body = response.read().decode("utf-8", "replace")
            return body, dict(response.getheaders()), response.geturl()

    def get_json(self, path: str, **params: str) -> dict:
        url = f"{path.rstrip('/')}/api/json"
        if params:
            url += "?" + urlencode(params, safe="[],{}")
        body, _, _ = self.request("GET", url)
        try:
            return json.loads(body) if body else {}
        except json.JSONDecodeError as e:
            raise APIError(f"Invalid JSON response from {self.url(url)}: {e}") from e

    def post(self, path: str, form: Optional[dict] = None) -> str:
        """POST a form (or an empty body) to an action endpoint."""
        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        headers.update(self._get_crumb())
        data = urlencode(form or {}).encode("utf-8")
        body, _, _ = self.request("POST", path, data=data, headers=headers)
        return body

    def _get_crumb(self) -> Dict[str, str]:
        """CSRF crumb header, or nothing when the server does not issue one."""
        if self._crumb is None:
            try:
                info = self.get_json("crumbIssuer")
                self._crumb = {info["crumbRequestField"]: info["crumb"]}
            except APIError as e:
                if e.status != 404:
                    raise
                get_console().print_debug("no crumb issuer, posting without a crumb")
                self._crumb = {}
            except KeyError:
                get_console().print_debug("crumb issuer gave no crumb, posting without one")
                self._crumb = {}
        return self._crumb

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def needs_login(self) -> bool:
        body, _, _ = self.request("GET", "/")
        return LOGIN_MARKER in body.lower()

    def ensure_login(self) -> None:
        """Log in once per run, if the server asks for it."""
        if self._logged_in:
            return
        self._logged_in = True
        if not self.needs_login():
            return
        if not self.user:
            raise LoginError("Server requires a login but no user is configured")
        if self.credentials is None:
            raise LoginError("Server requires a login but no password is available")
        password = self.credentials(self.user)
        form = {
            "j_username": self.user,
            "j_password": password,
            "remember_me": "on",
            "from": "/",
            "json": json.dumps({
                "j_username": self.user,
                "j_password": password,
                "remember_me": True,
                "from": "/",
            }),
            "Submit": "log in",
        }
        _, _, final_url = self.request(
            "POST",
            "j_acegi_security_check",
            data=urlencode(form).encode("utf-8"),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        if "loginError" in final_url:
            raise LoginError(f"Login as {self.user} rejected by {self.base_url}")
        # a new session invalidates any crumb fetched anonymously
        self._crumb = None
        self.save_cookies()
        get_console().print_debug(f"logged in as {self.user}, session saved to {self.cookie_file}")

    # ------------------------------------------------------------------
    # Read endpoints
    # ------------------------------------------------------------------

    def get_job(self, name: str) -> Job:
        return Job.from_dict(self.get_json(job_path(name), tree=JOB_TREE))

    def get_all_jobs(self) -> List[Job]:
        data = self.get_json("", tree=f"jobs[{JOB_TREE}]")
        return [Job.from_dict(j) for j in data.get("jobs", [])]

    def get_view(self, name: str) -> dict:
        """Raw view detail: its jobs and the names of its child views."""
        return self.get_json(view_path(name), tree=f"name,views[name],jobs[{JOB_TREE}]")

    def get_last_build(self, job: Job) -> Optional[BuildRef]:
        """The job's last build, fetched if the listing did not include it."""
        if job.last_build is not None:
            return job.last_build
        return self.get_job(job.name).last_build

    def get_builds(self, name: str, depth: int = 20) -> List[Build]:
        data = self.get_json(job_path(name), tree=f"builds[{BUILD_TREE}]{{0,{depth}}}")
        return [Build.from_dict(b) for b in data.get("builds", [])]

    def get_queue(self) -> List[QueueItem]:
        data = self.get_json("queue", tree="items[why,stuck,blocked,task[name,url,color]]")
        return [QueueItem.from_dict(item) for item in data.get("items", [])]

    def get_log_chunk(self, name: str, offset: int) -> LogChunk:
        path = f"{job_path(name)}/lastBuild/logText/progressiveText?start={offset}"
        body, headers, _ = self.request("GET", path)
        headers = {k.lower(): v for k, v in headers.items()}
        more = headers.get("x-more-data", "").lower() == "true"
        next_offset = int(headers.get("x-text-size", offset + len(body.encode("utf-8"))))
        return LogChunk(text=body, more=more, next_offset=next_offset)

    # ------------------------------------------------------------------
    # Write endpoints
    # ------------------------------------------------------------------

    def start_build(self, name: str) -> None:
        self.ensure_login()
        self.post(f"{job_path(name)}/build")

    def stop_build(self, build: BuildRef) -> None:
        self.ensure_login()
        self.post(f"{build.url.rstrip('/')}/stop")

    def enable_job(self, name: str) -> None:
        self.ensure_login()
        self.post(f"{job_path(name)}/enable")

    def disable_job(self, name: str) -> None:
        self.ensure_login()
        self.post(f"{job_path(name)}/disable")

    def wipeout_workspace(self, name: str) -> None:
        self.ensure_login()
        self.post(f"{job_path(name)}/doWipeOutWorkspace")

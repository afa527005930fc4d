from .client.api_client import APIError, JenkinsClient, LoginError
from .client.models import Build, Job, QueueSnapshot
from .config import Config, load_config
from .jobs import JobCache, resolve_jobs

__version__ = "0.1.0"

__all__ = ["APIError", "JenkinsClient", "LoginError", "Build", "Job", "QueueSnapshot",
           "Config", "load_config", "JobCache", "resolve_jobs"]

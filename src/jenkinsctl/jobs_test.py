"""Tests for job fetching, filtering and per-run memoization."""

import re
from unittest.mock import MagicMock

import pytest

from jenkinsctl.client.api_client import JenkinsClient
from jenkinsctl.client.models import Job
from jenkinsctl.jobs import (
    AmbiguousTargetError,
    JobCache,
    NoMatchesError,
    dedupe,
    expand_views,
    fetch_jobs,
    filter_jobs,
    resolve_jobs,
)


def _job(name, color="blue"):
    return {"name": name, "url": f"http://ci/job/{name}/", "color": color}


def _jobs(*names):
    return [Job.from_dict(_job(n)) for n in names]


@pytest.fixture
def client():
    client = MagicMock(spec=JenkinsClient)
    views = {
        "team": {"jobs": [_job("api"), _job("web")], "views": [{"name": "backend"}]},
        "team/view/backend": {"jobs": [_job("db"), _job("api", color="red")], "views": []},
        "ops": {"jobs": [_job("deploy"), _job("web")]},
    }
    client.get_view.side_effect = lambda name: views[name]
    client.get_job.side_effect = lambda name: Job.from_dict(_job(name, color="yellow"))
    client.get_all_jobs.return_value = _jobs("a", "b", "a")
    return client


class TestFetch:
    def test_nested_views_are_expanded(self, client):
        jobs = expand_views(client, "team")
        assert [j.name for j in jobs] == ["api", "web", "db", "api"]
        client.get_view.assert_any_call("team/view/backend")

    def test_dedupe_keeps_first(self):
        first, *_ = jobs = [Job(name="x", url="1"), Job(name="y", url="2"), Job(name="x", url="3")]
        assert dedupe(jobs) == [first, jobs[1]]

    def test_jobs_before_views_first_wins(self, client):
        jobs = fetch_jobs(client, ["web"], ["team", "ops"])
        assert [j.name for j in jobs] == ["web", "api", "db", "deploy"]
        # the explicitly named job is the one kept
        assert jobs[0].color == "yellow"
        # the first view occurrence of "api" wins over the nested one
        assert jobs[1].color == "blue"

    def test_everything_when_nothing_configured(self, client):
        assert [j.name for j in fetch_jobs(client)] == ["a", "b"]
        client.get_view.assert_not_called()


class TestFilter:
    def test_default_matches_everything(self):
        assert len(filter_jobs(_jobs("a", "b", "c"))) == 3

    def test_regex_search(self):
        assert [j.name for j in filter_jobs(_jobs("deploy-prod", "deploy-dev", "test"), "^deploy")] == \
            ["deploy-prod", "deploy-dev"]

    def test_exact_match_wins(self):
        jobs = _jobs("deploy", "deploy-prod", "redeploy")
        assert [j.name for j in filter_jobs(jobs, "deploy")] == ["deploy"]

    @pytest.mark.parametrize("name", ["a+b", "foo[1]", "job(x"])
    def test_exact_name_with_regex_characters(self, name):
        jobs = _jobs(name, "aab", "foo1", "other")
        assert [j.name for j in filter_jobs(jobs, name)] == [name]

    def test_no_matches(self):
        with pytest.raises(NoMatchesError, match="nothing"):
            filter_jobs(_jobs("a"), "nothing")

    def test_no_jobs_at_all(self):
        with pytest.raises(NoMatchesError):
            filter_jobs([])

    def test_invalid_regex(self):
        with pytest.raises(re.error):
            filter_jobs(_jobs("a"), "(")

    def test_resolve_jobs(self, client):
        assert [j.name for j in resolve_jobs(client, "^a$")] == ["a"]


class TestJobCache:
    def test_fetches_once(self, client):
        cache = JobCache(client)
        cache.resolve("a")
        cache.resolve("b")
        assert client.get_all_jobs.call_count == 1

    def test_resolve_one(self, client):
        cache = JobCache(client, view_names=["ops"])
        assert cache.resolve_one("tail", "dep").name == "deploy"

    def test_resolve_one_ambiguous(self, client):
        cache = JobCache(client, view_names=["ops"])
        with pytest.raises(AmbiguousTargetError) as exc_info:
            cache.resolve_one("tail", "e")
        assert exc_info.value.command == "tail"
        assert [j.name for j in exc_info.value.matches] == ["deploy", "web"]
        assert "tail" in str(exc_info.value)

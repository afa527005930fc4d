from datetime import datetime
from unittest.mock import MagicMock

import click
import pytest

from jenkinsctl.client.api_client import JenkinsClient
from jenkinsctl.client.models import Build, Job
from jenkinsctl.history import format_entry, history_entries, result_style, show_history
from jenkinsctl.ui.console import ERROR, MUTED, SUCCESS, Console

JOB = Job(name="deploy", url="http://ci/job/deploy/", color="red", in_queue=True)
TS = int(datetime(2024, 3, 1, 12, 30, 5).timestamp() * 1000)


def _build(number, result, building=False, duration=1234):
    return Build(number=number, url=f"http://ci/job/deploy/{number}/", result=result,
                 building=building, timestamp=TS, duration=duration)


class TestResultStyle:
    @pytest.mark.parametrize("result, style", [
        ("SUCCESS", SUCCESS),
        ("ABORTED", ERROR),
        ("FAILURE", ERROR),
    ])
    def test_known_results(self, result, style, capsys):
        assert result_style(result, Console(color=False)) == style
        assert capsys.readouterr().err == ""

    def test_unknown_result_warns(self, capsys):
        assert result_style("UNSTABLE", Console(color=False)) == MUTED
        assert "unrecognized build result 'UNSTABLE'" in capsys.readouterr().err

    def test_running_build_is_muted_silently(self, capsys):
        assert result_style(None, Console(color=False)) == MUTED
        assert capsys.readouterr().err == ""


class TestEntries:
    def test_entries_derive_from_job(self):
        entries = history_entries(JOB, [_build(2, "SUCCESS"), _build(1, "ABORTED")])
        assert [e.name for e in entries] == ["deploy", "deploy"]
        assert [e.last_build.number for e in entries] == [2, 1]
        assert entries[1].was_aborted
        assert not entries[0].in_queue
        # parent untouched
        assert JOB.color == "red"

    def test_running_entry(self):
        entry, = history_entries(JOB, [_build(3, None, building=True)])
        assert entry.is_building

    def test_format_entry(self):
        console = Console(color=False)
        entry, = history_entries(JOB, [_build(12, "ABORTED", duration=61005)])
        line = click.unstyle(format_entry(entry, console))
        started = datetime.fromtimestamp(TS / 1000).strftime("%Y-%m-%d %H:%M:%S")
        assert line.startswith("#12 ")
        assert started in line
        assert "?" in line
        assert line.endswith("61.005s")


def test_show_history(capsys):
    client = MagicMock(spec=JenkinsClient)
    client.get_builds.return_value = [_build(2, "SUCCESS", building=False), _build(1, "FAILURE")]
    show_history(client, JOB, depth=5)
    client.get_builds.assert_called_once_with("deploy", depth=5)
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "deploy"
    assert lines[1].startswith("#2")
    assert lines[2].startswith("#1")


def test_show_history_empty(capsys):
    client = MagicMock(spec=JenkinsClient)
    client.get_builds.return_value = []
    show_history(client, JOB)
    assert "no builds" in capsys.readouterr().out

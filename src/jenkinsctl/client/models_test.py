from jenkinsctl.client.models import Build, Job, QueueItem


def test_job_from_dict():
    job = Job.from_dict({
        "name": "deploy",
        "url": "http://ci/job/deploy/",
        "color": "red_anime",
        "inQueue": True,
        "lastBuild": {"number": 7, "url": "http://ci/job/deploy/7/", "timestamp": 1000, "duration": 2500},
    })
    assert job.name == "deploy"
    assert job.in_queue
    assert job.is_building
    assert job.base_color == "red"
    assert job.last_build.number == 7
    assert job.last_build.duration == 2500


def test_job_without_builds():
    job = Job.from_dict({"name": "fresh", "url": "u", "color": None, "lastBuild": None})
    assert job.color == "notbuilt"
    assert job.last_build is None
    assert not job.is_building


def test_aborted():
    assert Job(name="a", url="u", color="aborted").was_aborted
    assert Job(name="a", url="u", color="aborted_anime").was_aborted
    assert not Job(name="a", url="u", color="red").was_aborted


def test_derive_keeps_original():
    job = Job(name="a", url="u", color="blue")
    derived = job.derive(color="red")
    assert derived.color == "red"
    assert derived.name == "a"
    assert job.color == "blue"


def test_build_from_dict():
    build = Build.from_dict({"number": 3, "url": "u", "result": "ABORTED", "building": False,
                             "timestamp": 5, "duration": None})
    assert build.aborted
    assert build.duration == 0


def test_queue_item_from_dict():
    item = QueueItem.from_dict({
        "why": "In the quiet period. Expires in 4 sec",
        "stuck": False,
        "task": {"name": "nightly", "url": "http://ci/job/nightly/", "color": "blue"},
    })
    assert item.name == "nightly"
    job = item.as_job()
    assert job.in_queue
    assert job.color == "blue"

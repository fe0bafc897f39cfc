import json

import pytest

from runner.payload import parse_request
from sqlrestore.errors import PayloadError
from sqlrestore.services.poller import PollPolicy

SOURCE = {"project": "proj", "instance": "db1", "private_key": "{}"}


def test_minimal_check_input_with_null_version():
    request = parse_request(json.dumps({"source": SOURCE, "version": None}))

    assert request.source.project == "proj"
    assert request.operation_id == ""
    assert request.source.poll == PollPolicy()


def test_out_params_default_to_target_instance():
    request = parse_request(json.dumps({"source": SOURCE, "params": {"source_backup": "nightly"}}))

    params = request.out_params()

    assert params.source_project == "proj"
    assert params.source_instance == "db1"
    assert params.source_backup == "nightly"


def test_out_params_explicit_source():
    request = parse_request(
        json.dumps({"source": SOURCE, "params": {"source_project": "prod", "source_instance": "db-prod"}})
    )

    params = request.out_params()

    assert (params.source_project, params.source_instance, params.source_backup) == ("prod", "db-prod", "")


def test_poll_policy_from_source():
    request = parse_request(
        json.dumps({"source": {**SOURCE, "poll": {"interval": 10, "timeout": 3600, "retries": 50}}})
    )

    assert request.source.poll == PollPolicy(interval=10, timeout=3600, retries=50)


@pytest.mark.parametrize(
    "poll",
    [{"interval": 0}, {"timeout": -1}, {"retries": "3"}, {"retries": 2.5}, {"interval": True}, "30"],
)
def test_invalid_poll_policy(poll):
    with pytest.raises(PayloadError):
        parse_request(json.dumps({"source": {**SOURCE, "poll": poll}}))


@pytest.mark.parametrize(
    "raw",
    [
        "pas du json",
        "[]",
        json.dumps({"version": {}}),
        json.dumps({"source": {**SOURCE, "project": ""}}),
        json.dumps({"source": {"project": "proj", "instance": "db1"}}),
        json.dumps({"source": SOURCE, "version": "op-1"}),
        json.dumps({"source": SOURCE, "version": {"operation_id": 42}}),
    ],
)
def test_invalid_input(raw):
    with pytest.raises(PayloadError):
        parse_request(raw)

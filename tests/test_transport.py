"""
Tests for transport.py - HTTP requests against the Batch service.
"""

import json
from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlparse

import pytest
import requests

from batchjobs.auth import SharedKeyAuth, string_to_sign
from batchjobs.behaviors import client_request_id, max_results, server_timeout
from batchjobs.context import BatchAccountContext
from batchjobs.errors import RemoteCommitError, RemoteError, RemoteQueryError
from batchjobs.odata import DetailLevel
from batchjobs.query import JobFilterOptions, JobQueryResolver
from batchjobs.transport import JSON_CONTENT_TYPE, BatchServiceClient
from batchjobs.wire import CloudJob, MetadataItem

ACCOUNT_URL = "https://acct.westus.batch.azure.com"
API_VERSION = "2024-07-01.20.0"


def make_response(status: int, body=None, headers=None, reason: str = "OK") -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp.reason = reason
    resp._content = json.dumps(body).encode("utf-8") if body is not None else b""
    resp.encoding = "utf-8"
    resp.headers["Content-Type"] = "application/json"
    for k, v in (headers or {}).items():
        resp.headers[k] = v
    return resp


def sent_requests(session) -> list:
    return [c.args[0] for c in session.send.call_args_list]


def query_of(prepared) -> dict:
    return parse_qs(urlparse(prepared.url).query)


@pytest.fixture
def session():
    s = requests.Session()
    s.send = MagicMock()
    return s


@pytest.fixture
def client(session, recording_logger):
    return BatchServiceClient(ACCOUNT_URL, session=session, logger=recording_logger)


JOB_BODY = {
    "id": "job-1",
    "displayName": "Render",
    "priority": 10,
    "state": "active",
    "creationTime": "2026-01-02T03:04:05.000Z",
    "eTag": "0x8D",
    "poolInfo": {"poolId": "pool-a"},
    "constraints": {"maxWallClockTime": "PT1H", "maxTaskRetryCount": 2},
    "metadata": [{"name": "team", "value": "render"}],
    "commonEnvironmentSettings": [{"name": "MODE", "value": "fast"}],
    "jobManagerTask": {
        "id": "jm",
        "commandLine": "python manage.py",
        "resourceFiles": [{"httpUrl": "https://store/manage.py", "filePath": "manage.py"}],
    },
}


class TestGetJob:
    """Test single job lookups."""

    def test_parses_job(self, client, session):
        """The service body is parsed into a CloudJob."""
        session.send.return_value = make_response(200, JOB_BODY)

        job = client.jobs.get_job("job-1")

        assert job.id == "job-1"
        assert job.display_name == "Render"
        assert job.pool_info.pool_id == "pool-a"
        assert job.e_tag == "0x8D"
        assert job.metadata == (MetadataItem(name="team", value="render"),)
        assert job.job_manager_task.resource_files[0].file_path == "manage.py"
        assert job.constraints.max_task_retry_count == 2

    def test_request_url(self, client, session):
        """GET /jobs/{id} with the api-version."""
        session.send.return_value = make_response(200, JOB_BODY)

        client.jobs.get_job("job-1")

        prepared = sent_requests(session)[0]
        assert prepared.method == "GET"
        assert urlparse(prepared.url).path == "/jobs/job-1"
        assert query_of(prepared)["api-version"] == [API_VERSION]

    def test_job_id_quoted(self, client, session):
        """Ids are quoted into the path."""
        session.send.return_value = make_response(200, JOB_BODY)

        client.jobs.get_job("my job")

        assert "/jobs/my%20job" in sent_requests(session)[0].url

    def test_detail_level(self, client, session):
        """Select and expand become OData query options."""
        session.send.return_value = make_response(200, JOB_BODY)

        client.jobs.get_job("job-1", detail_level=DetailLevel(select_clause="id,state", expand_clause="stats"))

        query = query_of(sent_requests(session)[0])
        assert query["$select"] == ["id,state"]
        assert query["$expand"] == ["stats"]

    def test_not_found(self, client, session, recording_logger):
        """A 404 raises RemoteQueryError with the service's code and message."""
        session.send.return_value = make_response(
            404,
            {"code": "JobNotFound", "message": {"lang": "en-US", "value": "The specified job does not exist."}},
            headers={"request-id": "rid-1"},
            reason="Not Found",
        )

        with pytest.raises(RemoteQueryError) as exc:
            client.jobs.get_job("missing")

        assert exc.value.status_code == 404
        assert exc.value.code == "JobNotFound"
        assert exc.value.message == "The specified job does not exist."
        assert exc.value.request_id == "rid-1"
        metrics = recording_logger.get_metrics()
        assert metrics["requests_failed"] == 1
        assert metrics["errors_by_type"]["JobNotFound"] == 1

    def test_error_without_body(self, client, session):
        """An error with no JSON body falls back to the HTTP reason."""
        session.send.return_value = make_response(503, reason="Service Unavailable")

        with pytest.raises(RemoteQueryError) as exc:
            client.jobs.get_job("job-1")

        assert exc.value.code is None
        assert exc.value.message == "Service Unavailable"

    def test_connection_error_propagates(self, client, session, recording_logger):
        """Transport failures are re-raised unchanged."""
        error = requests.exceptions.ConnectionError("refused")
        session.send.side_effect = error

        with pytest.raises(requests.exceptions.ConnectionError) as exc:
            client.jobs.get_job("job-1")

        assert exc.value is error
        assert recording_logger.get_metrics()["errors_by_type"]["RequestException"] == 1

    def test_no_retry(self, client, session):
        """A failing request is sent exactly once."""
        session.send.return_value = make_response(500, {"code": "InternalError"}, reason="Server Error")

        with pytest.raises(RemoteQueryError):
            client.jobs.get_job("job-1")

        assert session.send.call_count == 1


class TestListJobs:
    """Test paged listings."""

    def test_follows_next_link(self, client, session, recording_logger):
        """Pages are requested one after another through odata.nextLink."""
        next_link = f"{ACCOUNT_URL}/jobs?api-version={API_VERSION}&$skiptoken=abc"
        session.send.side_effect = [
            make_response(200, {"value": [{"id": "a"}, {"id": "b"}], "odata.nextLink": next_link}),
            make_response(200, {"value": [{"id": "c"}]}),
        ]

        cursor = client.jobs.list_jobs()
        assert session.send.call_count == 0

        jobs = list(cursor)

        assert [j.id for j in jobs] == ["a", "b", "c"]
        first, second = sent_requests(session)
        assert urlparse(first.url).path == "/jobs"
        assert "skiptoken=abc" in second.url
        assert recording_logger.get_metrics()["pages_fetched"] == 2

    def test_filter_sent(self, client, session):
        """The OData filter is sent as $filter."""
        session.send.return_value = make_response(200, {"value": []})

        list(client.jobs.list_jobs(detail_level=DetailLevel(filter_clause="state eq 'active'")))

        assert query_of(sent_requests(session)[0])["$filter"] == ["state eq 'active'"]

    def test_schedule_listing_path(self, client, session):
        """Schedule-scoped listings go to /jobschedules/{id}/jobs."""
        session.send.return_value = make_response(200, {"value": [{"id": "a"}]})

        jobs = list(client.job_schedules.list_jobs("sched1"))

        assert [j.id for j in jobs] == ["a"]
        assert urlparse(sent_requests(session)[0].url).path == "/jobschedules/sched1/jobs"

    def test_behaviors_on_every_page(self, client, session):
        """Behaviors apply to continuation requests too."""
        session.send.side_effect = [
            make_response(200, {"value": [{"id": "a"}], "odata.nextLink": f"{ACCOUNT_URL}/jobs?page=2"}),
            make_response(200, {"value": [{"id": "b"}]}),
        ]

        list(client.jobs.list_jobs(behaviors=[client_request_id("fixed"), max_results(1)]))

        for prepared in sent_requests(session):
            assert prepared.headers["client-request-id"] == "fixed"
            assert prepared.headers["return-client-request-id"] == "true"
            assert query_of(prepared)["maxresults"] == ["1"]

    def test_next_link_params_not_repeated(self, client, session):
        """Behaviors replace query options the continuation link already carries."""
        next_link = f"{ACCOUNT_URL}/jobs?api-version={API_VERSION}&maxresults=2&timeout=20&$skiptoken=abc"
        session.send.side_effect = [
            make_response(200, {"value": [{"id": "a"}, {"id": "b"}], "odata.nextLink": next_link}),
            make_response(200, {"value": [{"id": "c"}]}),
        ]

        list(client.jobs.list_jobs(behaviors=[max_results(2), server_timeout(20)]))

        second = query_of(sent_requests(session)[1])
        assert second["maxresults"] == ["2"]
        assert second["timeout"] == ["20"]
        assert second["api-version"] == [API_VERSION]
        assert second["$skiptoken"] == ["abc"]

    def test_next_link_signed_once_per_key(self, session, recording_logger):
        """The signed resource lists each continuation option a single time."""
        next_link = f"{ACCOUNT_URL}/jobs?api-version={API_VERSION}&maxresults=2&$skiptoken=abc"
        session.send.side_effect = [
            make_response(200, {"value": [{"id": "a"}], "odata.nextLink": next_link}),
            make_response(200, {"value": []}),
        ]
        client = BatchServiceClient(
            ACCOUNT_URL, auth=SharedKeyAuth("acct", "c2VjcmV0LWtleQ=="), session=session, logger=recording_logger
        )

        list(client.jobs.list_jobs(behaviors=[max_results(2)]))

        signed = string_to_sign(sent_requests(session)[1], "acct")
        assert signed.endswith("\nmaxresults:2")
        assert "maxresults:2,2" not in signed

    def test_select_without_id(self, client, session):
        """A $select that leaves out id still yields records."""
        session.send.return_value = make_response(200, {"value": [{"displayName": "Render", "state": "active"}]})
        context = BatchAccountContext("acct", ACCOUNT_URL, account_key="c2VjcmV0", client=client)

        jobs = list(JobQueryResolver(client.logger).resolve(
            JobFilterOptions(context=context, select="displayName,state")
        ))

        assert len(jobs) == 1
        assert jobs[0].id is None
        assert jobs[0].display_name == "Render"
        assert jobs[0].state == "active"
        assert query_of(sent_requests(session)[0])["$select"] == ["displayName,state"]

    def test_bad_filter(self, client, session):
        """A rejected filter raises RemoteQueryError when the page is fetched."""
        session.send.return_value = make_response(
            400, {"code": "InvalidQueryParameterValue", "message": {"value": "bad filter"}}, reason="Bad Request"
        )

        cursor = client.jobs.list_jobs(detail_level=DetailLevel(filter_clause="nonsense"))

        with pytest.raises(RemoteQueryError) as exc:
            cursor.next_page()
        assert exc.value.code == "InvalidQueryParameterValue"


class TestAddAndDelete:
    """Test mutations."""

    def test_add_job_body(self, client, session):
        """The job is posted as camelCase JSON without unset fields."""
        session.send.return_value = make_response(201, reason="Created")
        job = CloudJob(id="new", priority=3, metadata=(MetadataItem(name="k", value="v"),))

        client.jobs.add_job(job)

        prepared = sent_requests(session)[0]
        assert prepared.method == "POST"
        assert urlparse(prepared.url).path == "/jobs"
        assert prepared.headers["Content-Type"] == JSON_CONTENT_TYPE
        assert json.loads(prepared.body) == {"id": "new", "priority": 3, "metadata": [{"name": "k", "value": "v"}]}

    def test_add_job_conflict(self, client, session):
        """A duplicate id raises RemoteCommitError."""
        session.send.return_value = make_response(
            409, {"code": "JobExists", "message": {"value": "The specified job already exists."}}, reason="Conflict"
        )

        with pytest.raises(RemoteCommitError) as exc:
            client.jobs.add_job(CloudJob(id="job-1"))
        assert exc.value.code == "JobExists"

    def test_delete_job(self, client, session):
        """DELETE /jobs/{id}."""
        session.send.return_value = make_response(202, reason="Accepted")

        client.jobs.delete_job("job-1")

        prepared = sent_requests(session)[0]
        assert prepared.method == "DELETE"
        assert urlparse(prepared.url).path == "/jobs/job-1"

    def test_delete_error_is_remote_error(self, client, session):
        """Delete failures are plain RemoteErrors."""
        session.send.return_value = make_response(404, {"code": "JobNotFound"}, reason="Not Found")

        with pytest.raises(RemoteError) as exc:
            client.jobs.delete_job("gone")
        assert type(exc.value) is RemoteError


class TestSigning:
    """Test that the session's auth signs requests."""

    def test_shared_key_applied(self, session, recording_logger):
        """Requests carry ocp-date and a SharedKey authorization header."""
        session.send.return_value = make_response(200, JOB_BODY)
        client = BatchServiceClient(
            ACCOUNT_URL, auth=SharedKeyAuth("acct", "c2VjcmV0LWtleQ=="), session=session, logger=recording_logger
        )

        client.jobs.get_job("job-1")

        prepared = sent_requests(session)[0]
        assert "ocp-date" in prepared.headers
        assert prepared.headers["Authorization"].startswith("SharedKey acct:")

"""
HTTP client for the Batch service job endpoints.

Requests go through one `requests.Session`. Request behaviors run on each
outgoing request (continuation pages included) before it is prepared and
signed. Failures are logged, counted, and raised without retry.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple, Type
from urllib.parse import parse_qsl, quote, urlsplit, urlunsplit

import requests
from requests.auth import AuthBase

from .behaviors import RequestBehavior, apply_behaviors
from .env import DEFAULT_API_VERSION, DEFAULT_TIMEOUT
from .errors import RemoteCommitError, RemoteError, RemoteQueryError
from .logger import StructuredLogger, get_logger
from .odata import DetailLevel
from .paging import PagedCursor
from .wire import CloudJob

JSON_CONTENT_TYPE = "application/json; odata=minimalmetadata; charset=utf-8"


def error_from_response(resp: requests.Response, error_cls: Type[RemoteError]) -> RemoteError:
    """Build a RemoteError from the service's OData error body."""
    try:
        body = resp.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = body.get("message")
    if isinstance(message, dict):
        message = message.get("value")
    return error_cls(
        status_code=resp.status_code,
        code=body.get("code"),
        message=message or resp.reason,
        request_id=resp.headers.get("request-id"),
    )


def split_next_link(next_link: str) -> Tuple[str, Dict[str, str]]:
    """Split a continuation link into its base URL and query parameters.

    Behaviors then set keys the link already carries instead of repeating them.
    """
    parts = urlsplit(next_link)
    params = dict(parse_qsl(parts.query, keep_blank_values=True))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", parts.fragment)), params


class BatchServiceClient:
    """Low-level access to one Batch account."""

    def __init__(
        self,
        account_url: str,
        auth: Optional[AuthBase] = None,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self.account_url = account_url.rstrip("/")
        self.api_version = api_version
        self.timeout = timeout
        self.session = session or requests.Session()
        if auth is not None:
            self.session.auth = auth
        self.logger = logger or get_logger()
        self.jobs = JobOperations(self)
        self.job_schedules = JobScheduleOperations(self)

    def url_for(self, path: str) -> str:
        return f"{self.account_url}{path}"

    def send(
        self,
        operation: str,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        behaviors: Optional[Iterable[RequestBehavior]] = None,
        error_cls: Type[RemoteError] = RemoteError,
    ) -> requests.Response:
        """
        Send one request and return the response on a 2xx status.

        Raises:
            error_cls: The service answered with a non-success status
            requests.exceptions.RequestException: The request never completed
        """
        headers = {}
        if json_body is not None:
            headers["Content-Type"] = JSON_CONTENT_TYPE
        request = requests.Request(method, url, params=dict(params or {}), headers=headers, json=json_body)
        apply_behaviors(request, behaviors)
        prepared = self.session.prepare_request(request)

        self.logger.record_api_call(operation)
        self.logger.debug(f"{method} {prepared.url}")
        try:
            resp = self.session.send(prepared, timeout=self.timeout)
        except requests.exceptions.Timeout:
            self.logger.record_api_failure(operation, "Timeout")
            self.logger.warning("Batch request timed out", operation=operation, url=prepared.url)
            raise
        except requests.exceptions.RequestException as e:
            self.logger.record_api_failure(operation, "RequestException")
            self.logger.error("Batch request error", operation=operation, url=prepared.url, error=str(e))
            raise

        if not resp.ok:
            error = error_from_response(resp, error_cls)
            self.logger.record_api_failure(operation, error.code or f"HTTPError_{resp.status_code}")
            self.logger.error(
                "Batch service rejected request",
                operation=operation,
                status=resp.status_code,
                code=error.code,
                request_id=error.request_id,
            )
            raise error

        self.logger.record_api_success(operation)
        return resp

    def paged(
        self,
        operation: str,
        path: str,
        params: Dict[str, Any],
        behaviors: Optional[Iterable[RequestBehavior]] = None,
    ) -> PagedCursor[CloudJob]:
        """Cursor over a job listing; the first request is sent on first use."""
        behaviors = list(behaviors or ())

        def fetch(next_link: Optional[str]) -> Tuple[List[CloudJob], Optional[str]]:
            if next_link is None:
                resp = self.send(operation, "GET", self.url_for(path), params=params,
                                 behaviors=behaviors, error_cls=RemoteQueryError)
            else:
                url, link_params = split_next_link(next_link)
                resp = self.send(operation, "GET", url, params=link_params,
                                 behaviors=behaviors, error_cls=RemoteQueryError)
            body = resp.json()
            self.logger.record_page_fetched()
            jobs = [CloudJob.model_validate(item) for item in body.get("value", [])]
            return jobs, body.get("odata.nextLink")

        return PagedCursor(fetch)

    def query_params(self, detail_level: Optional[DetailLevel] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {"api-version": self.api_version}
        if detail_level is not None:
            params.update(detail_level.to_params())
        return params


class JobOperations:
    """Operations on /jobs."""

    def __init__(self, client: BatchServiceClient):
        self.client = client

    def get_job(
        self,
        job_id: str,
        detail_level: Optional[DetailLevel] = None,
        behaviors: Optional[Iterable[RequestBehavior]] = None,
    ) -> CloudJob:
        resp = self.client.send(
            "get_job",
            "GET",
            self.client.url_for(f"/jobs/{quote(job_id, safe='')}"),
            params=self.client.query_params(detail_level),
            behaviors=behaviors,
            error_cls=RemoteQueryError,
        )
        return CloudJob.model_validate(resp.json())

    def list_jobs(
        self,
        detail_level: Optional[DetailLevel] = None,
        behaviors: Optional[Iterable[RequestBehavior]] = None,
    ) -> PagedCursor[CloudJob]:
        return self.client.paged("list_jobs", "/jobs", self.client.query_params(detail_level), behaviors)

    def add_job(self, job: CloudJob, behaviors: Optional[Iterable[RequestBehavior]] = None) -> None:
        self.client.send(
            "add_job",
            "POST",
            self.client.url_for("/jobs"),
            params=self.client.query_params(),
            json_body=job.to_wire(),
            behaviors=behaviors,
            error_cls=RemoteCommitError,
        )

    def delete_job(self, job_id: str, behaviors: Optional[Iterable[RequestBehavior]] = None) -> None:
        self.client.send(
            "delete_job",
            "DELETE",
            self.client.url_for(f"/jobs/{quote(job_id, safe='')}"),
            params=self.client.query_params(),
            behaviors=behaviors,
            error_cls=RemoteError,
        )


class JobScheduleOperations:
    """Operations on /jobschedules."""

    def __init__(self, client: BatchServiceClient):
        self.client = client

    def list_jobs(
        self,
        job_schedule_id: str,
        detail_level: Optional[DetailLevel] = None,
        behaviors: Optional[Iterable[RequestBehavior]] = None,
    ) -> PagedCursor[CloudJob]:
        return self.client.paged(
            "list_job_schedule_jobs",
            f"/jobschedules/{quote(job_schedule_id, safe='')}/jobs",
            self.client.query_params(detail_level),
            behaviors,
        )

"""
Pytest configuration and shared fixtures.
"""

import pytest
from typing import List, Optional

from batchjobs.context import BatchAccountContext
from batchjobs.errors import RemoteCommitError, RemoteQueryError
from batchjobs.logger import StructuredLogger, get_logger, reset_logger
from batchjobs.paging import PagedCursor
from batchjobs.wire import CloudJob, MetadataItem, PoolInformation

ACCOUNT_URL = "https://testacct.westus.batch.azure.com"


class RecordingLogger(StructuredLogger):
    """StructuredLogger that keeps every message in memory."""

    def __init__(self):
        super().__init__(name="batchjobs-test", level="DEBUG", enable_file=False, enable_console=False)
        self.records = []

    def _log(self, level: int, message: str, context: dict):
        self.records.append((level, message, context))

    @property
    def messages(self) -> List[str]:
        return [message for _, message, _ in self.records]


def make_cursor(pages: List[List[CloudJob]], fetched: List[int]) -> PagedCursor:
    """Cursor over in-memory pages; `fetched` collects the page numbers requested."""
    def fetch(next_link: Optional[str]):
        index = 0 if next_link is None else int(next_link)
        fetched.append(index)
        next_index = index + 1
        return pages[index], str(next_index) if next_index < len(pages) else None
    return PagedCursor(fetch)


class SpyJobOperations:
    def __init__(self, calls: list, jobs: List[CloudJob], pages: List[List[CloudJob]]):
        self.calls = calls
        self.jobs = {job.id: job for job in jobs}
        self.pages = pages
        self.fetched: List[int] = []
        self.added: List[CloudJob] = []
        self.add_error: Optional[Exception] = None

    def get_job(self, job_id, detail_level=None, behaviors=None):
        self.calls.append(("get_job", job_id, detail_level, behaviors))
        if job_id not in self.jobs:
            raise RemoteQueryError(404, "JobNotFound", "The specified job does not exist.")
        return self.jobs[job_id]

    def list_jobs(self, detail_level=None, behaviors=None):
        self.calls.append(("list_jobs", detail_level, behaviors))
        return make_cursor(self.pages, self.fetched)

    def add_job(self, job, behaviors=None):
        self.calls.append(("add_job", job.id, behaviors))
        if self.add_error is not None:
            raise self.add_error
        self.added.append(job)

    def delete_job(self, job_id, behaviors=None):
        self.calls.append(("delete_job", job_id, behaviors))


class SpyJobScheduleOperations:
    def __init__(self, calls: list, pages: List[List[CloudJob]]):
        self.calls = calls
        self.pages = pages
        self.fetched: List[int] = []

    def list_jobs(self, job_schedule_id, detail_level=None, behaviors=None):
        self.calls.append(("list_schedule_jobs", job_schedule_id, detail_level, behaviors))
        return make_cursor(self.pages, self.fetched)


class SpyBatchClient:
    """Stands in for BatchServiceClient and records every call made to it."""

    def __init__(self, jobs: List[CloudJob], pages: List[List[CloudJob]]):
        self.calls: list = []
        self.jobs = SpyJobOperations(self.calls, jobs, pages)
        self.job_schedules = SpyJobScheduleOperations(self.calls, pages)


@pytest.fixture
def cloud_jobs() -> List[CloudJob]:
    """Five jobs as the service would return them."""
    return [
        CloudJob(
            id=f"job-{i}",
            display_name=f"Job {i}",
            priority=i,
            state="active",
            pool_info=PoolInformation(pool_id="pool-a"),
            metadata=(MetadataItem(name="team", value="render"),),
        )
        for i in range(1, 6)
    ]


@pytest.fixture
def job_pages(cloud_jobs) -> List[List[CloudJob]]:
    """The five jobs split over three pages."""
    return [cloud_jobs[0:2], cloud_jobs[2:4], cloud_jobs[4:5]]


@pytest.fixture
def spy_client(cloud_jobs, job_pages) -> SpyBatchClient:
    return SpyBatchClient(cloud_jobs, job_pages)


@pytest.fixture
def batch_context(spy_client) -> BatchAccountContext:
    return BatchAccountContext("testacct", ACCOUNT_URL, account_key="c2VjcmV0", client=spy_client)


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def duplicate_job_error() -> RemoteCommitError:
    return RemoteCommitError(409, "JobExists", "The specified job already exists.", "req-1")


@pytest.fixture
def cursor_factory():
    """Build in-memory cursors: cursor_factory(pages, fetched)."""
    return make_cursor


@pytest.fixture(autouse=True)
def quiet_global_logger():
    """Keep the shared logger off disk and off the console during tests."""
    reset_logger()
    get_logger(enable_file=False, enable_console=False)
    yield
    reset_logger()

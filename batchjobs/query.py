"""
Job listing.

JobQueryResolver turns a set of filter options into exactly one remote query
and returns its results as JobRecords:

- a job id wins over everything else and yields a one-element list;
- otherwise the listing is scoped to a job schedule when one is given (a
  schedule reference takes precedence over a bare schedule id), and narrowed
  by an OData filter when one is given;
- listings are lazy and stop at `max_count` without fetching more pages.
"""

from typing import Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .behaviors import RequestBehavior
from .context import BatchAccountContext
from .errors import InvalidArgumentError
from .logger import StructuredLogger, get_logger
from .models import JobRecord, JobSchedule
from .odata import build_detail_level
from .paging import BoundedPager
from .validation import blank_as_none


class JobFilterOptions(BaseModel):
    """Options for listing jobs. Blank strings are treated as not given."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    context: BatchAccountContext
    job_id: Optional[str] = None
    job_schedule_id: Optional[str] = None
    job_schedule: Optional[JobSchedule] = None
    filter: Optional[str] = None
    select: Optional[str] = None
    expand: Optional[str] = None
    max_count: Optional[int] = Field(default=None, ge=0)
    additional_behaviors: Tuple[RequestBehavior, ...] = ()

    @field_validator("job_id", "job_schedule_id", "filter", "select", "expand", mode="before")
    @classmethod
    def _blank_as_absent(cls, v):
        return blank_as_none(v)

    @property
    def effective_job_schedule_id(self) -> Optional[str]:
        if self.job_schedule is not None:
            return self.job_schedule.id or None
        return self.job_schedule_id


class JobQueryResolver:

    def __init__(self, logger: Optional[StructuredLogger] = None):
        self.logger = logger or get_logger()

    def resolve(self, options: JobFilterOptions) -> Iterable[JobRecord]:
        """
        Run the single query the options call for.

        Raises:
            InvalidArgumentError: options is None
            RemoteQueryError: The service rejected the id, schedule or filter
        """
        if options is None:
            raise InvalidArgumentError("options")

        behaviors = list(options.additional_behaviors)

        if options.job_id is not None:
            self.logger.debug(f"Getting job matching id: {options.job_id}")
            detail_level = build_detail_level(select_clause=options.select, expand_clause=options.expand)
            job = options.context.batch_client.jobs.get_job(
                options.job_id, detail_level=detail_level, behaviors=behaviors
            )
            return [JobRecord.from_cloud_job(job)]

        job_schedule_id = options.effective_job_schedule_id
        filter_by_job_schedule = job_schedule_id is not None

        if options.filter is not None:
            if filter_by_job_schedule:
                message = f"Getting jobs under job schedule '{job_schedule_id}' matching the specified OData filter"
            else:
                message = "Getting jobs matching the specified OData filter"
        else:
            if filter_by_job_schedule:
                message = f"Getting all jobs under job schedule '{job_schedule_id}'"
            else:
                message = "Getting all jobs"
        self.logger.debug(message)

        detail_level = build_detail_level(options.filter, options.select, options.expand)
        client = options.context.batch_client
        if filter_by_job_schedule:
            cursor = client.job_schedules.list_jobs(job_schedule_id, detail_level=detail_level, behaviors=behaviors)
        else:
            cursor = client.jobs.list_jobs(detail_level=detail_level, behaviors=behaviors)

        max_count = options.max_count
        return BoundedPager(
            cursor,
            JobRecord.from_cloud_job,
            max_count=max_count,
            on_max_count=lambda: self.logger.debug(
                f"Only the first {max_count} jobs will be returned. Use max_count to change the limit."
            ),
        )

from typing import Iterable, Optional

from .assembler import JobCreationParameters, JobRequestAssembler
from .behaviors import RequestBehavior
from .context import BatchAccountContext
from .logger import StructuredLogger, get_logger
from .models import JobRecord
from .query import JobFilterOptions, JobQueryResolver
from .validation import require, require_non_blank


class BatchClient:
    """Job operations against a Batch account: list, create, delete."""

    def __init__(self, logger: Optional[StructuredLogger] = None):
        self.logger = logger or get_logger()
        self.resolver = JobQueryResolver(self.logger)
        self.assembler = JobRequestAssembler(self.logger)

    def list_jobs(self, options: JobFilterOptions) -> Iterable[JobRecord]:
        """Lists the jobs matching the specified filter options."""
        return self.resolver.resolve(options)

    def create_job(self, parameters: JobCreationParameters) -> None:
        """Creates a new job."""
        self.assembler.create(parameters)

    def delete_job(
        self,
        context: BatchAccountContext,
        job_id: str,
        additional_behaviors: Optional[Iterable[RequestBehavior]] = None,
    ) -> None:
        """
        Deletes the specified job.

        Raises:
            InvalidArgumentError: job_id is None, empty or whitespace
            RemoteError: The service refused the delete (e.g. JobNotFound)
        """
        require_non_blank(job_id, "job_id")
        require(context, "context")
        self.logger.debug(f"Deleting job with id: {job_id}")
        context.batch_client.jobs.delete_job(job_id, behaviors=list(additional_behaviors or ()))

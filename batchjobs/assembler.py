"""
Job creation.

JobRequestAssembler builds the job posted to the service from a
JobCreationParameters bag. Only fields the caller set are carried over;
nested task specs are synchronized into their wire form on the way.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from .behaviors import RequestBehavior
from .context import BatchAccountContext
from .errors import InvalidArgumentError
from .logger import StructuredLogger, get_logger
from .models import JobManagerTaskSpec, JobPreparationTaskSpec, JobReleaseTaskSpec
from .sync import synchronize
from .validation import require_non_blank
from .wire import CloudJob, EnvironmentSetting, JobConstraints, MetadataItem, PoolInformation


class JobCreationParameters(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    context: BatchAccountContext
    job_id: Optional[str] = None
    display_name: Optional[str] = None
    priority: Optional[int] = None
    common_environment_settings: Optional[Dict[str, Any]] = None
    constraints: Optional[JobConstraints] = None
    job_manager_task: Optional[JobManagerTaskSpec] = None
    job_preparation_task: Optional[JobPreparationTaskSpec] = None
    job_release_task: Optional[JobReleaseTaskSpec] = None
    metadata: Optional[Dict[str, Any]] = None
    pool_information: Optional[PoolInformation] = None
    additional_behaviors: List[RequestBehavior] = []


class JobRequestAssembler:

    def __init__(self, logger: Optional[StructuredLogger] = None):
        self.logger = logger or get_logger()

    def assemble(self, parameters: JobCreationParameters) -> CloudJob:
        """
        Build the job to submit. Does not contact the service.

        Raises:
            InvalidArgumentError: parameters is None or job_id is blank
        """
        if parameters is None:
            raise InvalidArgumentError("parameters")
        require_non_blank(parameters.job_id, "job_id")

        fields: Dict[str, Any] = {
            "id": parameters.job_id,
            "display_name": parameters.display_name,
            "priority": parameters.priority,
        }

        if parameters.common_environment_settings is not None:
            fields["common_environment_settings"] = tuple(
                EnvironmentSetting(name=str(k), value=str(v))
                for k, v in parameters.common_environment_settings.items()
            )

        if parameters.constraints is not None:
            fields["constraints"] = parameters.constraints

        if parameters.job_manager_task is not None:
            fields["job_manager_task"] = synchronize(parameters.job_manager_task)

        if parameters.job_preparation_task is not None:
            fields["job_preparation_task"] = synchronize(parameters.job_preparation_task)

        if parameters.job_release_task is not None:
            fields["job_release_task"] = synchronize(parameters.job_release_task)

        if parameters.metadata is not None:
            fields["metadata"] = tuple(
                MetadataItem(name=str(k), value=str(v)) for k, v in parameters.metadata.items()
            )

        if parameters.pool_information is not None:
            fields["pool_info"] = parameters.pool_information

        return CloudJob(**fields)

    def create(self, parameters: JobCreationParameters) -> CloudJob:
        """
        Assemble the job and add it to the account.

        Raises:
            InvalidArgumentError: parameters is None or job_id is blank
            RemoteCommitError: The service refused the job
        """
        job = self.assemble(parameters)
        self.logger.debug(f"Creating job with id: {parameters.job_id}")
        parameters.context.batch_client.jobs.add_job(job, behaviors=list(parameters.additional_behaviors))
        return job

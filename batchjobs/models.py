"""
User-facing job models.

Task specs are the editable side of a job's nested tasks: plain lists and
mappings that a caller can build or change freely. `sync.synchronize` turns a
spec into the immutable wire task that is attached to a job. A JobRecord is
the read-only projection of a job returned by a listing.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, PrivateAttr

from .wire import (
    CloudJob,
    EnvironmentSetting,
    JobConstraints,
    JobManagerTask,
    JobPreparationTask,
    JobReleaseTask,
    MetadataItem,
    PoolInformation,
    ResourceFile,
    TaskConstraints,
    UserIdentity,
)


class JobSchedule(BaseModel):
    """Reference to a job schedule, as handed back by a schedule listing."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: Optional[str] = None
    url: Optional[str] = None


def _settings_to_dict(settings: Optional[Tuple[EnvironmentSetting, ...]]) -> Optional[Dict[str, str]]:
    if settings is None:
        return None
    return {s.name: s.value if s.value is not None else "" for s in settings}


class TaskSpec(BaseModel):
    """Fields shared by every editable task spec."""

    model_config = ConfigDict(validate_assignment=True)

    resource_files: Optional[List[ResourceFile]] = None
    environment_settings: Optional[Dict[str, str]] = None
    user_identity: Optional[UserIdentity] = None

    # Wire task this spec was loaded from; collections left unset here are
    # carried over from it on synchronization.
    _wire: Optional[BaseModel] = PrivateAttr(default=None)

    @property
    def wire_form(self):
        return self._wire

    @classmethod
    def from_wire(cls, task):
        values = task.model_dump(exclude={"resource_files", "environment_settings"})
        spec = cls(
            **values,
            resource_files=list(task.resource_files) if task.resource_files is not None else None,
            environment_settings=_settings_to_dict(task.environment_settings),
        )
        spec._wire = task
        return spec


class JobManagerTaskSpec(TaskSpec):
    id: str
    command_line: str
    display_name: Optional[str] = None
    constraints: Optional[TaskConstraints] = None
    required_slots: Optional[int] = None
    kill_job_on_completion: Optional[bool] = None
    run_exclusive: Optional[bool] = None


class JobPreparationTaskSpec(TaskSpec):
    command_line: str
    id: Optional[str] = None
    constraints: Optional[TaskConstraints] = None
    wait_for_success: Optional[bool] = None
    rerun_on_node_reboot_after_success: Optional[bool] = None


class JobReleaseTaskSpec(TaskSpec):
    command_line: str
    id: Optional[str] = None
    max_wall_clock_time: Optional[timedelta] = None
    retention_time: Optional[timedelta] = None


class JobRecord(BaseModel):
    """Snapshot of a job at the time it was queried."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    display_name: Optional[str] = None
    priority: Optional[int] = None
    common_environment_settings: Optional[Tuple[EnvironmentSetting, ...]] = None
    constraints: Optional[JobConstraints] = None
    job_manager_task: Optional[JobManagerTask] = None
    job_preparation_task: Optional[JobPreparationTask] = None
    job_release_task: Optional[JobReleaseTask] = None
    metadata: Optional[Tuple[MetadataItem, ...]] = None
    pool_information: Optional[PoolInformation] = None

    url: Optional[str] = None
    e_tag: Optional[str] = None
    last_modified: Optional[datetime] = None
    creation_time: Optional[datetime] = None
    state: Optional[str] = None
    state_transition_time: Optional[datetime] = None
    previous_state: Optional[str] = None
    previous_state_transition_time: Optional[datetime] = None

    @classmethod
    def from_cloud_job(cls, job: CloudJob) -> "JobRecord":
        return cls(
            id=job.id,
            display_name=job.display_name,
            priority=job.priority,
            common_environment_settings=job.common_environment_settings,
            constraints=job.constraints,
            job_manager_task=job.job_manager_task,
            job_preparation_task=job.job_preparation_task,
            job_release_task=job.job_release_task,
            metadata=job.metadata,
            pool_information=job.pool_info,
            url=job.url,
            e_tag=job.e_tag,
            last_modified=job.last_modified,
            creation_time=job.creation_time,
            state=job.state,
            state_transition_time=job.state_transition_time,
            previous_state=job.previous_state,
            previous_state_transition_time=job.previous_state_transition_time,
        )

    def metadata_dict(self) -> Dict[str, str]:
        return {m.name: m.value for m in self.metadata or ()}

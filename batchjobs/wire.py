"""Models for the Batch service job resource, as sent and received on the wire."""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Immutable record serialized with the service's camelCase names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    def to_wire(self) -> Dict[str, Any]:
        """JSON body for the service; unset fields are left out entirely."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class EnvironmentSetting(WireModel):
    name: str
    value: Optional[str] = None


class MetadataItem(WireModel):
    name: str
    value: str


class ResourceFile(WireModel):
    file_path: Optional[str] = None
    http_url: Optional[str] = None
    storage_container_url: Optional[str] = None
    auto_storage_container_name: Optional[str] = None
    blob_prefix: Optional[str] = None
    file_mode: Optional[str] = None


class AutoUserSpecification(WireModel):
    scope: Optional[str] = None  # task | pool
    elevation_level: Optional[str] = None  # nonadmin | admin


class UserIdentity(WireModel):
    user_name: Optional[str] = None
    auto_user: Optional[AutoUserSpecification] = None


class TaskConstraints(WireModel):
    max_wall_clock_time: Optional[timedelta] = None
    retention_time: Optional[timedelta] = None
    max_task_retry_count: Optional[int] = None


class JobConstraints(WireModel):
    max_wall_clock_time: Optional[timedelta] = None
    max_task_retry_count: Optional[int] = None


class JobManagerTask(WireModel):
    id: str
    command_line: str
    display_name: Optional[str] = None
    resource_files: Optional[Tuple[ResourceFile, ...]] = None
    environment_settings: Optional[Tuple[EnvironmentSetting, ...]] = None
    constraints: Optional[TaskConstraints] = None
    required_slots: Optional[int] = None
    kill_job_on_completion: Optional[bool] = None
    user_identity: Optional[UserIdentity] = None
    run_exclusive: Optional[bool] = None


class JobPreparationTask(WireModel):
    command_line: str
    id: Optional[str] = None
    resource_files: Optional[Tuple[ResourceFile, ...]] = None
    environment_settings: Optional[Tuple[EnvironmentSetting, ...]] = None
    constraints: Optional[TaskConstraints] = None
    wait_for_success: Optional[bool] = None
    user_identity: Optional[UserIdentity] = None
    rerun_on_node_reboot_after_success: Optional[bool] = None


class JobReleaseTask(WireModel):
    command_line: str
    id: Optional[str] = None
    resource_files: Optional[Tuple[ResourceFile, ...]] = None
    environment_settings: Optional[Tuple[EnvironmentSetting, ...]] = None
    max_wall_clock_time: Optional[timedelta] = None
    retention_time: Optional[timedelta] = None
    user_identity: Optional[UserIdentity] = None


class AutoPoolSpecification(WireModel):
    pool_lifetime_option: str  # jobschedule | job
    auto_pool_id_prefix: Optional[str] = None
    keep_alive: Optional[bool] = None
    # Pool body is passed through as-is; this layer does not model pools.
    pool: Optional[Dict[str, Any]] = None


class PoolInformation(WireModel):
    pool_id: Optional[str] = None
    auto_pool_specification: Optional[AutoPoolSpecification] = None


class CloudJob(WireModel):
    """A job as the service returns it, or as it is posted to /jobs."""

    # Absent when a $select clause leaves it out
    id: Optional[str] = None
    display_name: Optional[str] = None
    priority: Optional[int] = None
    constraints: Optional[JobConstraints] = None
    job_manager_task: Optional[JobManagerTask] = None
    job_preparation_task: Optional[JobPreparationTask] = None
    job_release_task: Optional[JobReleaseTask] = None
    common_environment_settings: Optional[Tuple[EnvironmentSetting, ...]] = None
    pool_info: Optional[PoolInformation] = None
    metadata: Optional[Tuple[MetadataItem, ...]] = None

    # Read-only, populated by the service
    url: Optional[str] = None
    e_tag: Optional[str] = None
    last_modified: Optional[datetime] = None
    creation_time: Optional[datetime] = None
    state: Optional[str] = None
    state_transition_time: Optional[datetime] = None
    previous_state: Optional[str] = None
    previous_state_transition_time: Optional[datetime] = None

"""
Collection synchronization for nested task specs.

A task spec keeps its collections in editable form (a list of resource files,
a mapping of environment settings). Before a task can be attached to a job
those collections are copied into the wire task. Synchronization never
mutates the spec and always yields the same wire task for the same spec.
"""

from typing import Dict, List, Optional, Tuple, Union

from .models import JobManagerTaskSpec, JobPreparationTaskSpec, JobReleaseTaskSpec, TaskSpec
from .wire import EnvironmentSetting, JobManagerTask, JobPreparationTask, JobReleaseTask, ResourceFile

WireTask = Union[JobManagerTask, JobPreparationTask, JobReleaseTask]

_WIRE_TYPES = {
    JobManagerTaskSpec: JobManagerTask,
    JobPreparationTaskSpec: JobPreparationTask,
    JobReleaseTaskSpec: JobReleaseTask,
}

_COLLECTIONS = ("resource_files", "environment_settings")


def sync_environment_settings(
    settings: Optional[Dict[str, str]],
    previous: Optional[Tuple[EnvironmentSetting, ...]] = None,
) -> Optional[Tuple[EnvironmentSetting, ...]]:
    """Convert an editable mapping into ordered wire settings.

    An unset mapping keeps whatever the previous wire form held.
    """
    if settings is None:
        return previous
    return tuple(EnvironmentSetting(name=str(k), value=str(v)) for k, v in settings.items())


def sync_resource_files(
    files: Optional[List[ResourceFile]],
    previous: Optional[Tuple[ResourceFile, ...]] = None,
) -> Optional[Tuple[ResourceFile, ...]]:
    if files is None:
        return previous
    return tuple(files)


def synchronize(spec: TaskSpec) -> WireTask:
    """Build the wire task for a job manager, preparation or release task spec."""
    wire_type = None
    for spec_type, candidate in _WIRE_TYPES.items():
        if isinstance(spec, spec_type):
            wire_type = candidate
            break
    if wire_type is None:
        raise TypeError(f"Cannot synchronize {type(spec).__name__}")

    previous = spec.wire_form
    values = {
        name: getattr(spec, name)
        for name in type(spec).model_fields
        if name not in _COLLECTIONS
    }
    values["resource_files"] = sync_resource_files(
        spec.resource_files, previous.resource_files if previous is not None else None
    )
    values["environment_settings"] = sync_environment_settings(
        spec.environment_settings, previous.environment_settings if previous is not None else None
    )
    return wire_type(**values)

"""
Job definition registry.

The registry is populated once at process start and frozen before
polling begins; lookups during polling never mutate it.
"""

import logging
from typing import TypeVar

from queue_worker.exceptions import DuplicateDefinitionError, RegistryFrozenError
from queue_worker.jobs.definition import JobDefinition
from queue_worker.types.job import JobTypeKey

logger = logging.getLogger(__name__)

DefinitionT = TypeVar("DefinitionT", bound=type[JobDefinition])


class JobRegistry:
    """
    Maps (type, version) keys to job definition classes.

    Example:
        registry = JobRegistry()

        @registry.register
        class SendEmail(JobDefinition):
            job_type = "send_email"
            ...

        registry.freeze()
    """

    def __init__(self) -> None:
        self._definitions: dict[JobTypeKey, type[JobDefinition]] = {}
        self._frozen = False

    def register(self, definition: DefinitionT) -> DefinitionT:
        """
        Register a job definition class. Usable as a class decorator.

        Raises:
            RegistryFrozenError: If the registry has been frozen.
            DuplicateDefinitionError: If the key is already registered.
        """
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register {definition.__name__}: registry is frozen"
            )

        key = definition.type_key()
        if key in self._definitions:
            raise DuplicateDefinitionError(key)

        self._definitions[key] = definition
        logger.info(f"Registered job definition: {key}")
        return definition

    def freeze(self) -> None:
        """Stop accepting registrations."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def lookup(self, job_type: str, version: int) -> type[JobDefinition] | None:
        """
        Get the definition class for a job type and version.

        Returns:
            The definition class or None if not registered.
        """
        return self._definitions.get(JobTypeKey(job_type, version))

    def keys(self) -> list[JobTypeKey]:
        """List all registered keys."""
        return list(self._definitions.keys())

    def __contains__(self, key: object) -> bool:
        return key in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

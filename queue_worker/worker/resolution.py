"""
Job definition resolution and the attempt ceiling.
"""

from queue_worker.exceptions import AttemptLimitExceeded, DefinitionNotFound
from queue_worker.jobs.definition import JobDefinition
from queue_worker.jobs.registry import JobRegistry
from queue_worker.types.job import JobTypeKey


class JobResolutionPolicy:
    """Resolves the definition class for a message and enforces its attempt ceiling."""

    def __init__(self, registry: JobRegistry):
        self._registry = registry

    def resolve(self, type_key: JobTypeKey, receive_count: int | None) -> type[JobDefinition]:
        """
        Resolve the definition class for a job type and version.

        Args:
            type_key: The message's job type and version.
            receive_count: How many times the message has been delivered,
                or None if the transport did not report it.

        Returns:
            The registered definition class.

        Raises:
            DefinitionNotFound: If nothing is registered for the key.
            AttemptLimitExceeded: If the class declares a ceiling and the
                receive count is above it.
        """
        definition_class = self._registry.lookup(type_key.type, type_key.version)
        if definition_class is None:
            raise DefinitionNotFound(type_key.type, type_key.version)

        max_attempt_count = definition_class.max_attempt_count
        if (
            max_attempt_count is not None
            and receive_count is not None
            and receive_count > max_attempt_count
        ):
            raise AttemptLimitExceeded(type_key.type, receive_count, max_attempt_count)

        return definition_class

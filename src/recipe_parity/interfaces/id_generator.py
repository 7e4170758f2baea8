"""Interface for run identifier generators."""

import abc

# pylint: disable=too-few-public-methods


class IdGenerator(abc.ABC):
    """Contract for generating harness run identifiers."""

    @abc.abstractmethod
    def new_id(self) -> str:
        """Generate a new unique run identifier."""

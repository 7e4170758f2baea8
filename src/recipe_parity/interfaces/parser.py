"""Parser port: the capability every backend under test exposes."""

import abc
from typing import Any


class Parser(abc.ABC):
    """Contract for a parser/AST backend.

    Recipe contracts only ever talk to this interface; they never name a
    concrete backend. The tree handle returned by `parse` is opaque to the
    harness.

    Implementations are shared across every scenario bound to their identity,
    so anything they mutate while parsing must be discarded by `reset`.
    """

    @abc.abstractmethod
    def parse(self, source: str) -> Any:
        """Parse source text into a tree handle.

        Args:
            source: The source text.

        Returns:
            An opaque tree handle understood by `print` and `apply_recipe`.
        """

    @abc.abstractmethod
    def print(self, tree: Any) -> str:
        """Render a tree handle back into source text."""

    @abc.abstractmethod
    def apply_recipe(self, tree: Any, recipe: Any) -> Any:
        """Run a recipe over a tree handle and return the resulting tree.

        Args:
            tree: A tree handle produced by `parse`.
            recipe: The recipe configuration from the scenario.

        Returns:
            The transformed tree handle. The input handle must not be mutated.
        """

    def reset(self) -> None:
        """Drop state accumulated by previous parses.

        Called before every scenario replay. The harness never calls `reset`,
        `parse`, `apply_recipe` or `print` on one backend from two threads at
        once. The default does nothing.
        """

    def diagnostics(self, tree: Any) -> tuple[str, ...]:  # pylint: disable=unused-argument
        """Return diagnostics attached to a tree, in a stable order.

        The default reports none.
        """
        return ()

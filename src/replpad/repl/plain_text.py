"""
Plain-text store - the source text that last defined each binding.

Lets a value be re-edited as it was written instead of as its repr.
"""

import logging
from collections.abc import Callable, Iterator, Mapping
from typing import Any

logger = logging.getLogger(__name__)


def changed_bindings(before: Mapping[str, Any], after: Mapping[str, Any]) -> set[str]:
    """
    Names whose binding differs between two environment snapshots.

    Values are compared by identity. Added, rebound and deleted names all count.
    """
    changed = {name for name, value in after.items() if name not in before or before[name] is not value}
    changed.update(name for name in before if name not in after)
    return changed


class PlainTextStore:
    """Mapping from binding name to the exact source text that defined it."""

    def __init__(self) -> None:
        self._texts: dict[str, str] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._texts

    def __len__(self) -> int:
        return len(self._texts)

    def __iter__(self) -> Iterator[str]:
        return iter(self._texts)

    def get(self, name: str) -> str | None:
        return self._texts.get(name)

    def record(self, name: str, text: str) -> None:
        self._texts[name] = text

    def reconcile(
        self,
        before: Mapping[str, Any],
        after: Mapping[str, Any],
        source: str,
        is_callable: Callable[[Any], bool],
    ) -> str | None:
        """
        Attribute one execution to the binding it changed.

        Only an execution that changed exactly one binding is recorded.
        Callable bindings are only recorded when the name already has an
        entry.

        Args:
            before: Snapshot taken before execution
            after: Snapshot taken after execution
            source: Source text exactly as it was submitted
            is_callable: Capability query from the execution engine

        Returns:
            The recorded name, or None if nothing was recorded
        """
        changed = changed_bindings(before, after)
        if len(changed) != 1:
            logger.debug("Not recording source: %d bindings changed", len(changed))
            return None

        name = changed.pop()
        if name not in after:
            logger.debug("Not recording source: %s was deleted", name)
            return None
        if is_callable(after[name]) and name not in self._texts:
            logger.debug("Not recording source: %s is callable", name)
            return None

        self.record(name, source)
        logger.debug("Recorded source for %s", name)
        return name

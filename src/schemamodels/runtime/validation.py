"""Validation issue records and the per-instance collections holding them."""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Literal, Optional, Sequence
from .events import Events

ErrorLevel = Literal["error", "warn", "info"]

# Numeric severity per level
ERROR_LEVELS: Dict[str, int] = {"error": 3, "warn": 2, "info": 1}

_PLACEHOLDER = re.compile(r"%\((\w+)\)")


def most_severe(levels: Iterable[Optional[str]]) -> Optional[str]:
    """The highest-ranked level name among ``levels``, ignoring None."""
    ranked = [level for level in levels if level is not None]
    return max(ranked, key=lambda level: ERROR_LEVELS.get(level, 0), default=None)


@dataclass
class ValidationIssue:
    """A failed constraint on one attribute or collection."""

    rule: str  # e.g., "required", "maxLength", "minItems"
    message: str  # Template with %(name) placeholders filled from values
    level: ErrorLevel = "error"
    values: dict = field(default_factory=dict)

    @property
    def severity(self) -> int:
        return ERROR_LEVELS.get(self.level, 0)

    def render(self) -> str:
        """Substitute ``%(name)`` placeholders with the recorded values."""

        def substitute(match: re.Match) -> str:
            name = match.group(1)
            if name not in self.values:
                return match.group(0)
            return str(self.values[name])

        return _PLACEHOLDER.sub(substitute, self.message)


class ValidationErrors(Events):
    """
    Ordered issues for one attribute or collection.

    Fires ``change:max_level`` with the new level name whenever the highest
    severity changes, and ``dispose`` when discarded.
    """

    def __init__(self, issues: Optional[Iterable[ValidationIssue]] = None):
        self._issues: List[ValidationIssue] = list(issues or [])
        self._max_level = self._compute_max_level()

    def __len__(self) -> int:
        return len(self._issues)

    def __iter__(self) -> Iterator[ValidationIssue]:
        return iter(self._issues)

    def __bool__(self) -> bool:
        return bool(self._issues)

    @property
    def issues(self) -> List[ValidationIssue]:
        return list(self._issues)

    def at(self, index: int) -> ValidationIssue:
        return self._issues[index]

    def add(self, issue: ValidationIssue) -> None:
        self._issues.append(issue)
        self._refresh_max_level()

    def reset(self, issues: Optional[Sequence[ValidationIssue]] = None) -> None:
        self._issues = list(issues or [])
        self._refresh_max_level()

    def max_level(self) -> Optional[str]:
        """Name of the most severe level recorded, or None when empty."""
        return self._max_level

    def messages(self) -> List[str]:
        return [issue.render() for issue in self._issues]

    def dispose(self) -> None:
        self.trigger("dispose", self)
        self.off()

    def _compute_max_level(self) -> Optional[str]:
        return most_severe(issue.level for issue in self._issues)

    def _refresh_max_level(self) -> None:
        level = self._compute_max_level()
        if level != self._max_level:
            self._max_level = level
            self.trigger("change:max_level", self, level)


class ValidationIndex:
    """Per-attribute issue collections for one model."""

    def __init__(self, keys: Iterable[str]):
        self.keys: List[str] = list(keys)
        self._errors: Dict[str, ValidationErrors] = {}

    def get(self, key: str) -> Optional[ValidationErrors]:
        return self._errors.get(key)

    def set_error(self, key: str, issues: Sequence[ValidationIssue]) -> ValidationErrors:
        """
        Replace the issues recorded for ``key``, disposing the previous ones.

        Raises:
            KeyError: If ``key`` is not one of the index keys
        """
        if key not in self.keys:
            available = ", ".join(self.keys)
            raise KeyError(f"Unknown validation key '{key}'. Available keys: {available}")
        previous = self._errors.pop(key, None)
        if previous is not None:
            previous.dispose()
        errors = ValidationErrors(issues)
        self._errors[key] = errors
        return errors

    def clear(self) -> None:
        for errors in self._errors.values():
            errors.dispose()
        self._errors.clear()

    def items(self):
        return self._errors.items()

    def max_level(self) -> Optional[str]:
        return most_severe(errors.max_level() for errors in self._errors.values())

    def __contains__(self, key: str) -> bool:
        return key in self._errors

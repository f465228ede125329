"""
Task normalization for the Smart Task Analyzer.

Raw task records arrive loosely typed (form values, pasted JSON, API
payloads). This module coerces every field into a well-formed Task without
ever raising: malformed values fall back to safe defaults so that a
best-effort priority can always be computed.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Union


DEFAULT_IMPORTANCE = 5
DEFAULT_ESTIMATED_HOURS = 1
MIN_IMPORTANCE = 1
MAX_IMPORTANCE = 10

_DATE_PREFIX = re.compile(r'^(\d{4})-(\d{2})-(\d{2})')


@dataclass
class Task:
    """A normalized work item with scheduling-relevant attributes."""
    id: Optional[Union[str, int, float]]
    title: str
    due_date: Optional[date] = None
    importance: int = DEFAULT_IMPORTANCE
    estimated_hours: float = DEFAULT_ESTIMATED_HOURS
    dependencies: List[Optional[str]] = field(default_factory=list)
    done: bool = False
    blocked: bool = False
    low_priority: bool = False


class SequentialIdGenerator:
    """
    Deterministic source of suffixes for synthesized task titles.

    Each call returns the next value of a counter, optionally prefixed.
    Callers create one per batch so results are reproducible.
    """

    def __init__(self, prefix: str = '', start: int = 1):
        self.prefix = prefix
        self._next = start

    def __call__(self) -> str:
        value = f"{self.prefix}{self._next}"
        self._next += 1
        return value


def to_key_string(value: Any) -> str:
    """Render a value the way JSON clients spell it, for key comparison."""
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def task_key(task: Task) -> str:
    """Graph identity of a task: its id if present, else its title."""
    return to_key_string(task.id if task.id is not None else task.title)


def _to_number(value: Any) -> Optional[float]:
    """Coerce to float, returning None for anything non-numeric."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            number = math.inf if value > 0 else -math.inf
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
        # "inf", "infinity" and "1e400" are not numbers to a JSON client
        if not math.isfinite(number):
            return None
    else:
        return None
    if math.isnan(number):
        return None
    return number


def parse_date_safe(value: Any) -> Optional[date]:
    """
    Parse a due date leniently.

    Accepts date objects as-is and any value whose string form starts with
    a valid YYYY-MM-DD prefix. Everything else yields None.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    match = _DATE_PREFIX.match(str(value).strip())
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_importance(value: Any) -> int:
    number = _to_number(value) if value else None
    if not number:
        number = DEFAULT_IMPORTANCE
    return int(min(MAX_IMPORTANCE, max(MIN_IMPORTANCE, number)))


def parse_estimated_hours(value: Any) -> float:
    # 0 is treated the same as "not given"; hours must stay JSON-serializable
    number = _to_number(value) if value else None
    if not number or not math.isfinite(number):
        number = DEFAULT_ESTIMATED_HOURS
    return max(0.0, number)


def parse_dependencies(value: Any) -> List[Optional[str]]:
    """
    Normalize a dependency field into a list of key strings.

    "2,3" -> ["2", "3"], 4 -> ["4"], [1, None] -> ["1", None].
    """
    if not value:
        return []
    if isinstance(value, str) and value.strip():
        value = [part.strip() for part in value.split(',') if part.strip()]
    if not isinstance(value, (list, tuple)):
        value = [value]
    return [dep if dep is None else to_key_string(dep) for dep in value]


def normalize_task(
    raw: Dict[str, Any],
    fallback_id: Optional[Union[str, int]] = None,
    id_generator: Optional[Callable[[], str]] = None
) -> Task:
    """
    Convert a raw task record into a Task.

    Args:
        raw: Loosely-typed task mapping; unknown keys are ignored.
        fallback_id: Id to use when the record has none.
        id_generator: Supplies a suffix for the synthesized title when the
            record has neither a title nor a usable id.

    Returns:
        A fully populated Task. Never raises for malformed field values.
    """
    task_id = raw.get('id')
    if task_id is None:
        task_id = fallback_id

    title = str(raw.get('title') or '').strip()
    if not title:
        if id_generator is None:
            id_generator = SequentialIdGenerator()
        title = f"Untitled-{to_key_string(task_id) if task_id else id_generator()}"

    return Task(
        id=task_id,
        title=title,
        due_date=parse_date_safe(raw.get('due_date')),
        importance=parse_importance(raw.get('importance')),
        estimated_hours=parse_estimated_hours(raw.get('estimated_hours')),
        dependencies=parse_dependencies(raw.get('dependencies')),
        done=bool(raw.get('done')),
        blocked=bool(raw.get('blocked')),
        low_priority=bool(raw.get('low_priority')),
    )


def normalize_tasks(
    raw_tasks: List[Dict[str, Any]],
    id_generator: Optional[Callable[[], str]] = None
) -> List[Task]:
    """Normalize a batch, giving id-less records the fallback id auto<n>."""
    if id_generator is None:
        id_generator = SequentialIdGenerator()
    return [
        normalize_task(raw, f"auto{position}", id_generator)
        for position, raw in enumerate(raw_tasks, 1)
    ]

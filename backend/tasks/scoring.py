"""
Priority Scoring Algorithm for Smart Task Analyzer.

This module ranks a batch of tasks by an additive priority score built from
each task's own attributes, its position in the dependency graph, and a
caller-selected strategy.

Scoring Pipeline:
----------------
For every normalized task in a batch:

    score = base_score            (due date, importance, effort, flags)
          + dependency_adjustment (dependents bonus, unresolved penalty)
          + strategy_adjustment   (smart / fastest / impact / deadline)

The sum is rounded half-up to an integer. Each applied rule appends a
human-readable reason, in a fixed order, so the ranking can be explained.
Circular dependencies are detected once per batch and attached to every
result; they never abort the ranking.

The scorer is a pure function of (tasks, strategy, today). It reads no clock
and keeps no state between calls.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .graph import Cycle, detect_cycles
from .normalizer import Task, normalize_tasks, task_key, to_key_string


logger = logging.getLogger(__name__)


# ==================== Error Codes ====================

class ErrorCode(Enum):
    """Error codes for API responses."""
    SUCCESS = "SUCCESS"
    ERR_INVALID_PAYLOAD = "ERR_INVALID_PAYLOAD"
    ERR_INVALID_STRATEGY = "ERR_INVALID_STRATEGY"
    ERR_INVALID_COUNT = "ERR_INVALID_COUNT"


# ==================== Strategies ====================

class Strategy(Enum):
    """Additional weighting pass selected once per ranking call."""
    SMART = "smart"
    FASTEST = "fastest"
    IMPACT = "impact"
    DEADLINE = "deadline"


DEFAULT_STRATEGY = Strategy.SMART.value

STRATEGY_DESCRIPTIONS = {
    'smart': 'Balanced ranking from due date, importance, effort and dependencies',
    'fastest': 'Boosts quick tasks of two hours or less',
    'impact': 'Adds extra weight proportional to importance',
    'deadline': 'Boosts overdue tasks and tasks due within three days',
}

# Priority bands for presentation
HIGH_PRIORITY_THRESHOLD = 150
MEDIUM_PRIORITY_THRESHOLD = 60


@dataclass
class ScoreParts:
    """A score delta together with the reasons that produced it."""
    score: float = 0.0
    parts: List[str] = field(default_factory=list)


@dataclass
class PriorityResult:
    """A task with its final priority score and explanation trace."""
    task: Task
    score: int
    reason: List[str]
    cycles: List[Cycle]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class TaskPriorityScorer:
    """
    Calculates priority scores for a batch of tasks.

    Features:
    - Due-date urgency bands with overdue escalation
    - Importance weighting and effort banding (quick wins vs large tasks)
    - Blocked, low-priority and done adjustments
    - Dependents bonus and unresolved-dependency penalty
    - Strategy-specific boosts
    - Circular dependency detection
    - Human-readable reason traces
    """

    # Due date bonuses
    OVERDUE_BASE_BONUS = 200
    OVERDUE_PER_DAY_BONUS = 5
    DUE_WITHIN_1_DAY_BONUS = 120
    DUE_WITHIN_3_DAYS_BONUS = 70
    DUE_WITHIN_7_DAYS_BONUS = 30
    DUE_LATER_MAX_BONUS = 10

    IMPORTANCE_MULTIPLIER = 10

    # Effort banding
    QUICK_WIN_HOURS = 2
    MEDIUM_EFFORT_HOURS = 5
    QUICK_WIN_BONUS = 25
    MEDIUM_EFFORT_BONUS = 5
    MAX_LARGE_TASK_PENALTY = 15

    BLOCKED_PENALTY = 40
    LOW_PRIORITY_PENALTY = 20
    DONE_PENALTY = 1000

    # Dependency adjustment
    DEPENDENT_BONUS = 20
    MAX_DEPENDENTS_BONUS = 50
    UNRESOLVED_DEPENDENCY_PENALTY = 30

    # Strategy adjustment
    FASTEST_BONUS = 50
    IMPACT_MULTIPLIER = 15
    DEADLINE_OVERDUE_BONUS = 150
    DEADLINE_SOON_BONUS = 80
    DEADLINE_SOON_DAYS = 3

    def __init__(self, strategy: str = DEFAULT_STRATEGY):
        """
        Initialize the scorer with a strategy.

        Args:
            strategy: One of 'smart', 'fastest', 'impact', 'deadline'.
                Unknown names apply no strategy adjustment.
        """
        self.strategy = strategy

    def days_until_due(self, task: Task, today: date) -> Optional[int]:
        """Whole days from today to the due date; negative when overdue."""
        if task.due_date is None:
            return None
        return (task.due_date - today).days

    def base_score(self, task: Task, today: date) -> ScoreParts:
        """
        Score a task from its own attributes only.

        Rules are applied in a fixed order and each contributes one reason:
        due date band, importance, effort band, then the blocked,
        low-priority and done flags.
        """
        result = ScoreParts()

        days = self.days_until_due(task, today)
        if days is None:
            result.parts.append('no due date')
        elif days < 0:
            result.score += self.OVERDUE_BASE_BONUS + abs(days) * self.OVERDUE_PER_DAY_BONUS
            result.parts.append(f'OVERDUE ({days}d)')
        elif days <= 1:
            result.score += self.DUE_WITHIN_1_DAY_BONUS
            result.parts.append('due within 1 day')
        elif days <= 3:
            result.score += self.DUE_WITHIN_3_DAYS_BONUS
            result.parts.append('due within 3 days')
        elif days <= 7:
            result.score += self.DUE_WITHIN_7_DAYS_BONUS
            result.parts.append('due within 7 days')
        else:
            result.score += max(0, self.DUE_LATER_MAX_BONUS - days // 30)
            result.parts.append('due later')

        result.score += task.importance * self.IMPORTANCE_MULTIPLIER
        result.parts.append(f'importance {task.importance}')

        hours = max(1, task.estimated_hours or 1)
        if hours <= self.QUICK_WIN_HOURS:
            result.score += self.QUICK_WIN_BONUS
            result.parts.append('quick win boost')
        elif hours <= self.MEDIUM_EFFORT_HOURS:
            result.score += self.MEDIUM_EFFORT_BONUS
            result.parts.append('medium effort')
        else:
            result.score -= min(self.MAX_LARGE_TASK_PENALTY, hours - self.MEDIUM_EFFORT_HOURS)
            result.parts.append('large task penalty')

        if task.blocked:
            result.score -= self.BLOCKED_PENALTY
            result.parts.append('blocked')
        if task.low_priority:
            result.score -= self.LOW_PRIORITY_PENALTY
            result.parts.append('low priority')
        if task.done:
            result.score -= self.DONE_PENALTY
            result.parts.append('done')

        return result

    def count_dependents(self, task: Task, tasks: List[Task]) -> int:
        """Count tasks in the batch whose dependency list contains this task's key."""
        key = task_key(task)
        return sum(
            1 for other in tasks
            if any(to_key_string(dep) == key for dep in other.dependencies)
        )

    def count_unresolved(self, task: Task, index: Dict[str, Task]) -> int:
        """
        Count unresolved dependencies of a task.

        A dependency that exists but is not done and a dependency that does
        not exist each add one. The two checks are independent.
        """
        unresolved = 0
        for dependency in task.dependencies:
            dep_task = index.get(to_key_string(dependency))
            if dep_task is not None and not dep_task.done:
                unresolved += 1
            if dep_task is None:
                unresolved += 1
        return unresolved

    def dependency_adjustment(
        self,
        task: Task,
        tasks: List[Task],
        index: Dict[str, Task]
    ) -> ScoreParts:
        """Bonus for blocking other tasks, penalty for unresolved dependencies."""
        result = ScoreParts()

        dependents = self.count_dependents(task, tasks)
        if dependents > 0:
            bonus = min(self.MAX_DEPENDENTS_BONUS, dependents * self.DEPENDENT_BONUS)
            result.score += bonus
            result.parts.append(f'blocks {dependents} task(s) +{bonus}')

        unresolved = self.count_unresolved(task, index)
        if unresolved > 0:
            penalty = unresolved * self.UNRESOLVED_DEPENDENCY_PENALTY
            result.score -= penalty
            result.parts.append(f'unresolved deps -{penalty}')

        return result

    def strategy_adjustment(self, task: Task, today: date) -> ScoreParts:
        """Apply the boost of the configured strategy."""
        result = ScoreParts()

        if self.strategy == Strategy.FASTEST.value:
            if task.estimated_hours <= self.QUICK_WIN_HOURS:
                result.score += self.FASTEST_BONUS
                result.parts.append('fastest strategy boost')
        elif self.strategy == Strategy.IMPACT.value:
            result.score += task.importance * self.IMPACT_MULTIPLIER
            result.parts.append('impact strategy boost')
        elif self.strategy == Strategy.DEADLINE.value:
            days = self.days_until_due(task, today)
            if days is not None:
                if days < 0:
                    result.score += self.DEADLINE_OVERDUE_BONUS
                elif days <= self.DEADLINE_SOON_DAYS:
                    result.score += self.DEADLINE_SOON_BONUS
                result.parts.append('deadline strategy boost')

        return result

    def score_task(
        self,
        task: Task,
        tasks: List[Task],
        index: Dict[str, Task],
        cycles: List[Cycle],
        today: date
    ) -> PriorityResult:
        """Combine all adjustments for one task into a PriorityResult."""
        adjustments = [
            self.base_score(task, today),
            self.dependency_adjustment(task, tasks, index),
            self.strategy_adjustment(task, today),
        ]
        total = sum(adjustment.score for adjustment in adjustments)
        reason = [part for adjustment in adjustments for part in adjustment.parts]
        return PriorityResult(
            task=task,
            score=round_half_up(total),
            reason=reason,
            cycles=cycles
        )

    def score_tasks(self, tasks: List[Task], today: date) -> List[PriorityResult]:
        """
        Score and rank already-normalized tasks.

        Returns:
            Results sorted by score, highest first. Ties keep input order.
        """
        index = {task_key(task): task for task in tasks}
        cycles = detect_cycles(tasks)

        results = [self.score_task(task, tasks, index, cycles, today) for task in tasks]
        results.sort(key=lambda result: result.score, reverse=True)
        return results

    def analyze_tasks(
        self,
        raw_tasks: List[Dict[str, Any]],
        reference_date: Optional[date] = None,
        id_generator: Optional[Callable[[], str]] = None
    ) -> List[PriorityResult]:
        """
        Normalize, score and rank a batch of raw task records.

        Args:
            raw_tasks: Loosely-typed task mappings
            reference_date: Date used as "today" (defaults to the current date)
            id_generator: Suffix source for synthesized titles

        Returns:
            List of PriorityResult objects, sorted by priority (highest first)
        """
        if reference_date is None:
            reference_date = date.today()

        logger.debug(
            "Ranking %d task(s) with strategy %r as of %s",
            len(raw_tasks), self.strategy, reference_date
        )
        tasks = normalize_tasks(raw_tasks, id_generator)
        return self.score_tasks(tasks, reference_date)

    def suggest_top_tasks(
        self,
        raw_tasks: List[Dict[str, Any]],
        count: int = 3,
        reference_date: Optional[date] = None
    ) -> List[PriorityResult]:
        """Return the highest ranked tasks, at most count of them."""
        return self.analyze_tasks(raw_tasks, reference_date)[:count]


def rank(
    raw_tasks: List[Dict[str, Any]],
    strategy: str = DEFAULT_STRATEGY,
    today: Optional[date] = None,
    id_generator: Optional[Callable[[], str]] = None
) -> List[PriorityResult]:
    """Rank raw task records under the given strategy."""
    scorer = TaskPriorityScorer(strategy=strategy)
    return scorer.analyze_tasks(raw_tasks, today, id_generator)


def priority_level(
    score: int,
    high_threshold: int = HIGH_PRIORITY_THRESHOLD,
    medium_threshold: int = MEDIUM_PRIORITY_THRESHOLD
) -> str:
    if score >= high_threshold:
        return "High"
    if score >= medium_threshold:
        return "Medium"
    return "Low"


def task_to_dict(task: Task) -> Dict:
    """Convert a Task to a dictionary for JSON serialization."""
    return {
        'id': task.id,
        'key': task_key(task),
        'title': task.title,
        'due_date': task.due_date.isoformat() if task.due_date else None,
        'importance': task.importance,
        'estimated_hours': task.estimated_hours,
        'dependencies': list(task.dependencies),
        'done': task.done,
        'blocked': task.blocked,
        'low_priority': task.low_priority,
    }


def result_to_dict(
    result: PriorityResult,
    high_threshold: int = HIGH_PRIORITY_THRESHOLD,
    medium_threshold: int = MEDIUM_PRIORITY_THRESHOLD
) -> Dict:
    """Convert a PriorityResult to a dictionary for JSON serialization."""
    return {
        'task': task_to_dict(result.task),
        'score': result.score,
        'priority_level': priority_level(result.score, high_threshold, medium_threshold),
        'reason': list(result.reason),
        'cycles': [list(cycle) for cycle in result.cycles],
    }

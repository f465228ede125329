"""
Unit Tests for the Smart Task Analyzer.

This module covers task normalization, cycle detection, every scoring
component, strategy adjustments, ranking order, and the API endpoints.
All date-dependent tests use a fixed reference date.
"""

from datetime import date, datetime, timedelta

from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from .conf import get_setting
from .graph import build_dependency_graph, detect_cycles
from .normalizer import (
    SequentialIdGenerator,
    Task,
    normalize_task,
    normalize_tasks,
    parse_date_safe,
    parse_dependencies,
    parse_estimated_hours,
    parse_importance,
    task_key
)
from .scoring import (
    ErrorCode,
    TaskPriorityScorer,
    priority_level,
    rank,
    result_to_dict
)


TODAY = date(2025, 1, 15)


def days_from_today(days):
    return TODAY + timedelta(days=days)


def make_task(**overrides):
    fields = {'id': 1, 'title': 'Task'}
    fields.update(overrides)
    return Task(**fields)


def scenario_tasks(first_done=False):
    return [
        {'id': 1, 'title': 'Fix login bug', 'importance': 8, 'estimated_hours': 3,
         'due_date': TODAY.isoformat(), 'done': first_done},
        {'id': 2, 'title': 'Write README', 'importance': 6, 'estimated_hours': 1,
         'due_date': None},
        {'id': 3, 'title': 'Payment API', 'importance': 9, 'estimated_hours': 6,
         'due_date': days_from_today(2).isoformat(), 'dependencies': [1]},
    ]


class NormalizerTests(TestCase):
    """Tests for lenient task normalization."""

    def test_importance_defaults_and_clamps(self):
        """Missing or non-numeric importance defaults to 5, others clamp to 1-10."""
        self.assertEqual(parse_importance(None), 5)
        self.assertEqual(parse_importance(0), 5)
        self.assertEqual(parse_importance('abc'), 5)
        self.assertEqual(parse_importance('7'), 7)
        self.assertEqual(parse_importance(15), 10)
        self.assertEqual(parse_importance(-4), 1)

    def test_importance_always_in_range(self):
        """Importance should land in 1-10 for any input."""
        for value in [None, 0, 1, 3.7, 10, 11, 100, -1, '', 'x', [], {}]:
            importance = parse_importance(value)
            self.assertGreaterEqual(importance, 1)
            self.assertLessEqual(importance, 10)

    def test_huge_integers_do_not_raise(self):
        """Integers too large for a float should clamp instead of raising."""
        self.assertEqual(parse_importance(10 ** 400), 10)
        self.assertEqual(parse_importance(-10 ** 400), 1)
        self.assertEqual(parse_estimated_hours(10 ** 400), 1)
        self.assertEqual(parse_estimated_hours(-10 ** 400), 1)

    def test_huge_integer_record_still_ranked(self):
        """A record with an oversized number should still be ranked."""
        results = rank(
            [{'id': 1, 'importance': 10 ** 400, 'estimated_hours': -10 ** 400}],
            'smart', TODAY
        )
        self.assertEqual(results[0].task.importance, 10)

    def test_non_finite_values_treated_as_missing(self):
        """Infinite hours and importance strings should fall back to the defaults."""
        for value in ['inf', '-inf', 'Infinity', '1e400', float('inf'), float('nan')]:
            self.assertEqual(parse_estimated_hours(value), 1)
        self.assertEqual(parse_importance('inf'), 5)
        self.assertEqual(parse_importance(float('inf')), 10)

    def test_zero_and_missing_hours_default_to_one(self):
        """Zero, falsy or non-numeric hours should default to 1."""
        for value in [0, None, '', 'abc', False, '0']:
            self.assertEqual(parse_estimated_hours(value), 1)

    def test_hours_kept_when_numeric(self):
        """Numeric hours and numeric strings should be kept."""
        self.assertEqual(parse_estimated_hours(2.5), 2.5)
        self.assertEqual(parse_estimated_hours('4'), 4)

    def test_negative_hours_clamp_to_zero(self):
        """Negative hours should clamp to 0."""
        self.assertEqual(parse_estimated_hours(-3), 0)

    def test_comma_separated_dependencies(self):
        """A comma-separated string should split into trimmed keys."""
        self.assertEqual(parse_dependencies('2,3'), ['2', '3'])
        self.assertEqual(parse_dependencies(' 2 , ,3 '), ['2', '3'])

    def test_scalar_dependency_wrapped(self):
        """A single scalar dependency should become a one-element list."""
        self.assertEqual(parse_dependencies(4), ['4'])
        self.assertEqual(parse_dependencies(2.0), ['2'])

    def test_dependency_list_stringified_with_null_preserved(self):
        """List elements should be stringified, except None."""
        self.assertEqual(parse_dependencies([1, 'b', None]), ['1', 'b', None])

    def test_missing_dependencies(self):
        """Missing or empty dependencies should give an empty list."""
        self.assertEqual(parse_dependencies(None), [])
        self.assertEqual(parse_dependencies(''), [])
        self.assertEqual(parse_dependencies([]), [])

    def test_date_prefix_parsing(self):
        """A leading YYYY-MM-DD prefix should parse to a date."""
        self.assertEqual(parse_date_safe('2025-03-04'), date(2025, 3, 4))
        self.assertEqual(parse_date_safe('2025-03-04T10:30:00Z'), date(2025, 3, 4))

    def test_invalid_dates_become_none(self):
        """Unparseable or impossible dates should become None."""
        for value in [None, '', 'tomorrow', '03/04/2025', '2025-02-30', 20250101]:
            self.assertIsNone(parse_date_safe(value))

    def test_date_objects_pass_through(self):
        """Date objects should pass through, datetimes reduce to their date."""
        self.assertEqual(parse_date_safe(TODAY), TODAY)
        self.assertEqual(parse_date_safe(datetime(2025, 1, 15, 9, 30)), TODAY)

    def test_fallback_id_used_when_missing(self):
        """Records without an id should take the fallback id."""
        task = normalize_task({'title': 'No id'}, 'auto1')
        self.assertEqual(task.id, 'auto1')
        self.assertEqual(task_key(task), 'auto1')

    def test_key_falls_back_to_title(self):
        """Without any id the key should be the trimmed title."""
        task = normalize_task({'title': ' Write docs '})
        self.assertIsNone(task.id)
        self.assertEqual(task.title, 'Write docs')
        self.assertEqual(task_key(task), 'Write docs')

    def test_numeric_id_key_is_string(self):
        """Numeric ids should key by their JSON spelling."""
        self.assertEqual(task_key(normalize_task({'id': 7, 'title': 'x'})), '7')
        self.assertEqual(task_key(normalize_task({'id': 7.0, 'title': 'x'})), '7')

    def test_empty_title_synthesized_from_id(self):
        """A blank title should be synthesized from the id."""
        task = normalize_task({'title': '   '}, 7)
        self.assertEqual(task.title, 'Untitled-7')

    def test_empty_title_without_id_uses_generator(self):
        """Without a usable id the injected generator should supply the suffix."""
        generator = SequentialIdGenerator(prefix='gen')
        first = normalize_task({}, None, generator)
        second = normalize_task({'id': 0}, None, generator)
        self.assertEqual(first.title, 'Untitled-gen1')
        self.assertEqual(second.title, 'Untitled-gen2')

    def test_flags_default_false(self):
        """Flags should be coerced to booleans, defaulting to False."""
        task = normalize_task({'title': 'x', 'done': 1, 'blocked': ''})
        self.assertTrue(task.done)
        self.assertFalse(task.blocked)
        self.assertFalse(task.low_priority)

    def test_batch_fallback_ids(self):
        """Batch normalization should assign auto<n> ids by position."""
        tasks = normalize_tasks([{'title': 'a'}, {'id': 9, 'title': 'b'}, {'title': 'c'}])
        self.assertEqual([t.id for t in tasks], ['auto1', 9, 'auto3'])

    def test_unknown_fields_ignored(self):
        """Unknown fields should be ignored."""
        task = normalize_task({'id': 1, 'title': 'x', 'colour': 'red'})
        self.assertEqual(task.title, 'x')


class CircularDependencyTests(TestCase):
    """Tests for dependency graph building and cycle detection."""

    def test_graph_includes_missing_dependency_nodes(self):
        """Referenced keys without a task should become leaf nodes."""
        tasks = normalize_tasks([
            {'id': 1, 'title': 'a', 'dependencies': [3, 'x']},
            {'id': 2, 'title': 'b'},
        ])
        graph = build_dependency_graph(tasks)
        self.assertEqual(list(graph), ['1', '2', '3', 'x'])
        self.assertEqual(graph['1'], ['3', 'x'])
        self.assertEqual(graph['x'], [])

    def test_no_circular_dependencies(self):
        """Tasks with linear dependencies should not be flagged."""
        tasks = normalize_tasks([
            {'id': 1, 'title': 'Task 1'},
            {'id': 2, 'title': 'Task 2', 'dependencies': [1]},
            {'id': 3, 'title': 'Task 3', 'dependencies': [2, 99]},
        ])
        self.assertEqual(detect_cycles(tasks), [])

    def test_simple_circular_dependency(self):
        """Simple A -> B -> A cycle should be detected."""
        tasks = normalize_tasks([
            {'id': 'A', 'dependencies': ['B']},
            {'id': 'B', 'dependencies': ['A']},
        ])
        self.assertEqual(detect_cycles(tasks), [['A', 'B', 'A']])

    def test_three_node_cycle_path(self):
        """A three-task cycle should be reported in traversal order."""
        tasks = normalize_tasks([
            {'id': 1, 'dependencies': [3]},
            {'id': 2, 'dependencies': [1]},
            {'id': 3, 'dependencies': [2]},
        ])
        self.assertEqual(detect_cycles(tasks), [['1', '3', '2', '1']])

    def test_self_referencing_task(self):
        """Task depending on itself should be flagged."""
        tasks = normalize_tasks([{'id': 1, 'dependencies': [1]}])
        self.assertEqual(detect_cycles(tasks), [['1', '1']])

    def test_cycle_only_covers_involved_tasks(self):
        """Only tasks in the cycle should appear in it."""
        tasks = normalize_tasks([
            {'id': 3, 'dependencies': [1]},
            {'id': 1, 'dependencies': [2]},
            {'id': 2, 'dependencies': [1]},
        ])
        self.assertEqual(detect_cycles(tasks), [['1', '2', '1']])

    def test_back_edges_reported_separately(self):
        """Each back edge into the same node should give its own entry."""
        tasks = normalize_tasks([
            {'id': 'A', 'dependencies': ['B', 'C']},
            {'id': 'B', 'dependencies': ['A']},
            {'id': 'C', 'dependencies': ['A']},
        ])
        self.assertEqual(detect_cycles(tasks), [['A', 'B', 'A'], ['A', 'C', 'A']])

    def test_duplicate_edges_not_deduplicated(self):
        """Duplicate dependency edges should report the cycle twice."""
        tasks = normalize_tasks([
            {'id': 'A', 'dependencies': ['B']},
            {'id': 'B', 'dependencies': ['A', 'A']},
        ])
        self.assertEqual(detect_cycles(tasks), [['A', 'B', 'A'], ['A', 'B', 'A']])

    def test_long_chain_does_not_overflow(self):
        """A very long cycle should be found without hitting recursion limits."""
        raw = [{'id': i, 'dependencies': [i + 1]} for i in range(5000)]
        raw.append({'id': 5000, 'dependencies': [0]})
        cycles = detect_cycles(normalize_tasks(raw))
        self.assertEqual(len(cycles), 1)
        self.assertEqual(len(cycles[0]), 5002)


class BaseScoreTests(TestCase):
    """Tests for the context-free base score."""

    def setUp(self):
        self.scorer = TaskPriorityScorer()

    def score(self, **overrides):
        return self.scorer.base_score(make_task(**overrides), TODAY)

    def test_no_due_date(self):
        """Tasks without a due date get no date bonus."""
        result = self.score()
        self.assertEqual(result.score, 75)
        self.assertEqual(result.parts, ['no due date', 'importance 5', 'quick win boost'])

    def test_overdue_escalates_per_day(self):
        """Overdue tasks get 200 plus 5 per day overdue."""
        result = self.score(due_date=days_from_today(-3))
        self.assertEqual(result.score, 215 + 50 + 25)
        self.assertEqual(result.parts[0], 'OVERDUE (-3d)')

    def test_due_date_bands(self):
        """Each due date band should add its bonus and reason."""
        expectations = [
            (0, 120, 'due within 1 day'),
            (1, 120, 'due within 1 day'),
            (3, 70, 'due within 3 days'),
            (7, 30, 'due within 7 days'),
            (8, 10, 'due later'),
            (65, 8, 'due later'),
            (400, 0, 'due later'),
        ]
        for days, bonus, reason in expectations:
            result = self.score(due_date=days_from_today(days))
            self.assertEqual(result.score, bonus + 75, days)
            self.assertEqual(result.parts[0], reason)

    def test_effort_bands(self):
        """Quick wins get a boost, large tasks a capped penalty."""
        self.assertEqual(self.score(estimated_hours=2).score, 75)
        self.assertEqual(self.score(estimated_hours=5).score, 55)
        self.assertEqual(self.score(estimated_hours=8).score, 47)
        self.assertEqual(self.score(estimated_hours=40).score, 35)
        self.assertEqual(self.score(estimated_hours=8).parts[-1], 'large task penalty')
        self.assertEqual(self.score(estimated_hours=4).parts[-1], 'medium effort')

    def test_zero_hours_scored_as_quick_win(self):
        """Zero hours should band as a quick win."""
        self.assertEqual(self.score(estimated_hours=0).parts[-1], 'quick win boost')

    def test_flag_penalties_in_order(self):
        """Blocked, low priority and done penalties apply in that order."""
        result = self.score(blocked=True, low_priority=True, done=True)
        self.assertEqual(result.score, 75 - 40 - 20 - 1000)
        self.assertEqual(result.parts[-3:], ['blocked', 'low priority', 'done'])

    def test_overdue_beats_far_deadline(self):
        """An overdue task should outscore one due in over a week."""
        overdue = self.score(due_date=days_from_today(-1))
        later = self.score(due_date=days_from_today(10))
        self.assertGreater(overdue.score, later.score)

    def test_done_sinks_task(self):
        """A done task should score below any open task."""
        done = self.score(due_date=days_from_today(-30), importance=10, done=True)
        idle = self.score(importance=1, estimated_hours=20, blocked=True, low_priority=True)
        self.assertLess(done.score, idle.score)


class DependencyAdjustmentTests(TestCase):
    """Tests for the dependents bonus and unresolved-dependency penalty."""

    def setUp(self):
        self.scorer = TaskPriorityScorer()

    def adjust(self, raw_tasks, position=0):
        tasks = normalize_tasks(raw_tasks)
        index = {task_key(t): t for t in tasks}
        return self.scorer.dependency_adjustment(tasks[position], tasks, index)

    def test_dependents_bonus(self):
        """Each dependent task adds 20."""
        result = self.adjust([
            {'id': 'T'},
            {'id': 'a', 'dependencies': ['T']},
            {'id': 'b', 'dependencies': 'T'},
        ])
        self.assertEqual(result.score, 40)
        self.assertEqual(result.parts, ['blocks 2 task(s) +40'])

    def test_dependents_bonus_capped(self):
        """The dependents bonus should never exceed 50."""
        def bonus(count):
            raw = [{'id': 'T', 'done': True}]
            raw += [{'id': f'd{i}', 'dependencies': ['T']} for i in range(count)]
            return self.adjust(raw).score

        self.assertEqual(bonus(3), 50)
        self.assertEqual(bonus(5), 50)

    def test_numeric_id_matches_string_reference(self):
        """A numeric id should match a string reference."""
        result = self.adjust([{'id': 1}, {'id': 2, 'dependencies': '1'}])
        self.assertEqual(result.score, 20)

    def test_dependent_counted_once(self):
        """A task listing the same dependency twice counts once."""
        result = self.adjust([{'id': 1}, {'id': 2, 'dependencies': [1, 1]}])
        self.assertEqual(result.parts, ['blocks 1 task(s) +20'])

    def test_unresolved_existing_dependency(self):
        """An open dependency costs 30."""
        result = self.adjust([{'id': 1, 'dependencies': [2]}, {'id': 2}])
        self.assertEqual(result.score, -30)
        self.assertEqual(result.parts, ['unresolved deps -30'])

    def test_missing_dependency_counts_as_unresolved(self):
        """A dependency on an unknown task costs 30."""
        result = self.adjust([{'id': 1, 'dependencies': [99]}])
        self.assertEqual(result.score, -30)

    def test_done_dependency_resolved(self):
        """A done dependency should not be penalized."""
        result = self.adjust([{'id': 1, 'dependencies': [2]}, {'id': 2, 'done': True}])
        self.assertEqual(result.score, 0)
        self.assertEqual(result.parts, [])

    def test_missing_and_pending_dependencies_add_up(self):
        """Missing and open dependencies should both count."""
        result = self.adjust([{'id': 1, 'dependencies': [2, 'ghost']}, {'id': 2}])
        self.assertEqual(result.score, -60)

    def test_self_dependency_counts_both_ways(self):
        """A self-dependency is both a dependent and an unresolved dependency."""
        result = self.adjust([{'id': 1, 'dependencies': [1]}])
        self.assertEqual(result.parts, ['blocks 1 task(s) +20', 'unresolved deps -30'])

    def test_duplicate_keys_resolve_to_last_task(self):
        """Duplicate keys should resolve to the last task with that key."""
        result = self.adjust([
            {'id': 3, 'dependencies': [1]},
            {'id': 1, 'done': True},
            {'id': 1, 'done': False},
        ])
        self.assertEqual(result.score, -30)


class StrategyTests(TestCase):
    """Tests for the per-call strategy adjustment."""

    def adjust(self, strategy, **overrides):
        scorer = TaskPriorityScorer(strategy=strategy)
        return scorer.strategy_adjustment(make_task(**overrides), TODAY)

    def test_smart_adds_nothing(self):
        """The smart strategy applies no adjustment."""
        result = self.adjust('smart', due_date=TODAY)
        self.assertEqual((result.score, result.parts), (0, []))

    def test_unknown_strategy_behaves_like_smart(self):
        """Unknown strategies apply no adjustment."""
        result = self.adjust('bogus', importance=10)
        self.assertEqual((result.score, result.parts), (0, []))

    def test_fastest_boosts_quick_tasks(self):
        """Fastest adds 50 to tasks of two hours or less."""
        self.assertEqual(self.adjust('fastest', estimated_hours=2).score, 50)
        slow = self.adjust('fastest', estimated_hours=3)
        self.assertEqual((slow.score, slow.parts), (0, []))

    def test_impact_scales_importance(self):
        """Impact adds 15 per importance point."""
        result = self.adjust('impact', importance=4)
        self.assertEqual(result.score, 60)
        self.assertEqual(result.parts, ['impact strategy boost'])

    def test_deadline_bonuses(self):
        """Deadline boosts overdue and soon-due tasks, noting any dated task."""
        self.assertEqual(self.adjust('deadline', due_date=days_from_today(-1)).score, 150)
        self.assertEqual(self.adjust('deadline', due_date=days_from_today(3)).score, 80)
        later = self.adjust('deadline', due_date=days_from_today(5))
        self.assertEqual(later.score, 0)
        self.assertEqual(later.parts, ['deadline strategy boost'])

    def test_deadline_ignores_undated_tasks(self):
        """Deadline adds nothing for tasks without a due date."""
        result = self.adjust('deadline')
        self.assertEqual((result.score, result.parts), (0, []))

    def test_strategies_change_ranking(self):
        """Different strategies should produce different orderings."""
        raw = [
            {'id': 'quick', 'importance': 3, 'estimated_hours': 1},
            {'id': 'big', 'importance': 7, 'estimated_hours': 3},
        ]
        self.assertEqual(rank(raw, 'smart', TODAY)[0].task.id, 'big')
        self.assertEqual(rank(raw, 'fastest', TODAY)[0].task.id, 'quick')
        self.assertEqual(rank(raw, 'impact', TODAY)[0].task.id, 'big')


class RankingTests(TestCase):
    """Tests for aggregation and ordering of results."""

    def test_scenario_ranking(self):
        """Due-today work outranks undated work; blocked work is penalized."""
        results = rank(scenario_tasks(), 'smart', TODAY)
        self.assertEqual([r.task.id for r in results], [1, 3, 2])
        self.assertEqual([r.score for r in results], [225, 129, 85])
        self.assertEqual(results[1].reason, [
            'due within 3 days', 'importance 9', 'large task penalty', 'unresolved deps -30'
        ])
        self.assertEqual(results[0].reason[-1], 'blocks 1 task(s) +20')

    def test_scenario_penalty_lifted_when_dependency_done(self):
        """Finishing a dependency should lift the dependent's penalty."""
        results = rank(scenario_tasks(first_done=True), 'smart', TODAY)
        payment = next(r for r in results if r.task.id == 3)
        self.assertEqual(payment.score, 159)
        self.assertNotIn('unresolved deps -30', payment.reason)
        self.assertEqual(results[-1].task.id, 1)

    def test_reason_order_across_components(self):
        """Reasons should list base, dependents, unresolved, then strategy."""
        raw = [
            {'id': 1, 'importance': 5, 'estimated_hours': 1, 'dependencies': [2]},
            {'id': 2, 'dependencies': [1]},
        ]
        results = rank(raw, 'impact', TODAY)
        first = next(r for r in results if r.task.id == 1)
        self.assertEqual(first.reason, [
            'no due date', 'importance 5', 'quick win boost',
            'blocks 1 task(s) +20', 'unresolved deps -30', 'impact strategy boost'
        ])

    def test_ties_keep_input_order(self):
        """Equal scores should keep their input order."""
        raw = [{'id': name, 'importance': 5} for name in ['a', 'b', 'c']]
        raw.insert(1, {'id': 'top', 'importance': 9})
        results = rank(raw, 'smart', TODAY)
        self.assertEqual([r.task.id for r in results], ['top', 'a', 'b', 'c'])

    def test_scores_descending(self):
        """Results should be sorted by score, highest first."""
        raw = [
            {'id': i, 'importance': (i * 7) % 10, 'estimated_hours': i % 9,
             'due_date': days_from_today(i * 3 - 10).isoformat()}
            for i in range(12)
        ]
        scores = [r.score for r in rank(raw, 'deadline', TODAY)]
        self.assertEqual(scores, sorted(scores, reverse=True))

    def test_score_rounds_half_up(self):
        """Fractional totals should round half up to an integer."""
        results = rank([{'id': 1, 'estimated_hours': 6.5}], 'smart', TODAY)
        self.assertEqual(results[0].score, 49)
        self.assertIsInstance(results[0].score, int)

    def test_cycles_shared_across_results(self):
        """Every result should carry the same batch cycle list."""
        raw = [{'id': 'A', 'dependencies': 'B'}, {'id': 'B', 'dependencies': 'A'}, {'id': 'C'}]
        results = rank(raw, 'smart', TODAY)
        self.assertEqual(results[0].cycles, [['A', 'B', 'A']])
        self.assertTrue(all(r.cycles is results[0].cycles for r in results))

    def test_empty_batch(self):
        """Empty task list should return empty results."""
        self.assertEqual(rank([], 'smart', TODAY), [])

    def test_malformed_records_still_ranked(self):
        """Malformed records should be normalized and ranked, not rejected."""
        raw = [
            {'id': None, 'title': None, 'importance': 'high', 'estimated_hours': 'lots',
             'due_date': 'someday', 'dependencies': 42},
            {},
        ]
        results = rank(raw, 'smart', TODAY)
        self.assertEqual(len(results), 2)
        self.assertEqual({r.task.title for r in results}, {'Untitled-auto1', 'Untitled-auto2'})

    def test_suggest_top_tasks(self):
        """Suggestions should be the top ranked tasks."""
        scorer = TaskPriorityScorer()
        suggested = scorer.suggest_top_tasks(scenario_tasks(), count=2, reference_date=TODAY)
        self.assertEqual([r.task.id for r in suggested], [1, 3])

    def test_result_to_dict(self):
        """Serialized results should carry ISO dates, key and priority level."""
        data = result_to_dict(rank(scenario_tasks(), 'smart', TODAY)[0])
        self.assertEqual(data['score'], 225)
        self.assertEqual(data['priority_level'], 'High')
        self.assertEqual(data['task']['due_date'], '2025-01-15')
        self.assertEqual(data['task']['key'], '1')
        self.assertEqual(data['cycles'], [])

    def test_priority_levels(self):
        """Scores should map to High, Medium and Low bands."""
        self.assertEqual(priority_level(150), 'High')
        self.assertEqual(priority_level(149), 'Medium')
        self.assertEqual(priority_level(60), 'Medium')
        self.assertEqual(priority_level(59), 'Low')
        self.assertEqual(priority_level(100, high_threshold=90), 'High')


class SettingsTests(TestCase):
    """Tests for TASK_ANALYZER settings access."""

    @override_settings(TASK_ANALYZER={'DEFAULT_STRATEGY': 'impact'})
    def test_configured_strategy_used(self):
        """A valid configured default strategy should be returned."""
        self.assertEqual(get_setting('DEFAULT_STRATEGY'), 'impact')

    @override_settings(TASK_ANALYZER={'DEFAULT_STRATEGY': 'random'})
    def test_unknown_default_strategy_falls_back(self):
        """An unknown configured default strategy should fall back to smart."""
        self.assertEqual(get_setting('DEFAULT_STRATEGY'), 'smart')

    @override_settings(TASK_ANALYZER={})
    def test_missing_settings_use_defaults(self):
        """Missing settings should use the built-in defaults."""
        self.assertEqual(get_setting('SUGGEST_COUNT'), 3)


class APIEndpointTests(APITestCase):
    """Tests for the API endpoints."""

    def test_analyze_endpoint_success(self):
        """POST /api/tasks/analyze/ should return sorted tasks."""
        response = self.client.post(
            '/api/tasks/analyze/',
            {'tasks': scenario_tasks(), 'strategy': 'smart', 'today': TODAY.isoformat()},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual([t['score'] for t in response.data['tasks']], [225, 129, 85])
        self.assertEqual(response.data['summary']['high_priority_count'], 1)
        self.assertEqual(response.data['summary']['medium_priority_count'], 2)
        self.assertFalse(response.data['summary']['cycles_detected'])

    def test_analyze_accepts_bare_array(self):
        """A bare JSON array of tasks should be accepted."""
        response = self.client.post('/api/tasks/analyze/', scenario_tasks(), format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['strategy'], 'smart')
        self.assertEqual(response.data['count'], 3)

    def test_analyze_infinite_hours(self):
        """Infinite hour strings should not break the JSON response."""
        response = self.client.post(
            '/api/tasks/analyze/',
            [{'id': 1, 'title': 'x', 'estimated_hours': 'inf'}],
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['tasks'][0]['task']['estimated_hours'], 1)

    @override_settings(TASK_ANALYZER={'DEFAULT_STRATEGY': 'random'})
    def test_analyze_with_misconfigured_default_strategy(self):
        """An unknown configured default should not reject requests."""
        response = self.client.post('/api/tasks/analyze/', scenario_tasks(), format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['strategy'], 'smart')

    def test_analyze_reports_cycles(self):
        """Circular dependencies should be reported once per response."""
        response = self.client.post(
            '/api/tasks/analyze/',
            [{'id': 'A', 'dependencies': 'B'}, {'id': 'B', 'dependencies': 'A'}],
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['cycles'], [['A', 'B', 'A']])
        self.assertTrue(response.data['summary']['cycles_detected'])

    def test_analyze_empty_list(self):
        """An empty task list should return no results."""
        response = self.client.post('/api/tasks/analyze/', {'tasks': []}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 0)

    def test_analyze_rejects_non_array(self):
        """Tasks that are not an array should be rejected."""
        response = self.client.post('/api/tasks/analyze/', {'tasks': 'nope'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['error_code'], ErrorCode.ERR_INVALID_PAYLOAD.value)

    def test_analyze_rejects_non_object_tasks(self):
        """An array of non-objects should be rejected."""
        response = self.client.post('/api/tasks/analyze/', [1, 2], format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error_code'], ErrorCode.ERR_INVALID_PAYLOAD.value)

    def test_analyze_rejects_unknown_strategy(self):
        """An unknown requested strategy should be rejected."""
        response = self.client.post(
            '/api/tasks/analyze/',
            {'tasks': scenario_tasks(), 'strategy': 'random'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error_code'], ErrorCode.ERR_INVALID_STRATEGY.value)

    def test_suggest_endpoint_respects_count(self):
        """Suggest endpoint should limit results to requested count."""
        response = self.client.post(
            '/api/tasks/suggest/',
            {'tasks': scenario_tasks(), 'count': 2, 'today': TODAY.isoformat()},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([t['task']['id'] for t in response.data['suggested_tasks']], [1, 3])
        self.assertEqual(response.data['total_tasks'], 3)

    def test_suggest_defaults_to_three(self):
        """Suggest endpoint should return three tasks by default."""
        raw = [{'id': i, 'title': f'Task {i}'} for i in range(1, 10)]
        response = self.client.post('/api/tasks/suggest/', raw, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['suggested_tasks']), 3)

    def test_suggest_rejects_zero_count(self):
        """A count below one should be rejected."""
        response = self.client.post(
            '/api/tasks/suggest/',
            {'tasks': scenario_tasks(), 'count': 0},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error_code'], ErrorCode.ERR_INVALID_COUNT.value)

    def test_strategies_endpoint(self):
        """GET /api/tasks/strategies/ should list all strategies."""
        response = self.client.get('/api/tasks/strategies/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            set(response.data['strategies']),
            {'smart', 'fastest', 'impact', 'deadline'}
        )
        self.assertEqual(response.data['default'], 'smart')

    def test_api_info_endpoint(self):
        """GET /api/ should return API information."""
        response = self.client.get('/api/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('endpoints', response.data)
        self.assertIn('strategies', response.data)

    def test_schema_endpoint(self):
        """GET /api/schema/ should return the OpenAPI schema."""
        response = self.client.get('/api/schema/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)

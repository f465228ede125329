"""
Dependency graph construction and circular dependency detection.

Nodes are task keys plus every key referenced as a dependency, even when no
task carries that key. An edge task -> dep means the task depends on dep.
"""

import logging
from typing import Dict, Iterator, List, Set, Tuple

from .normalizer import Task, task_key, to_key_string


logger = logging.getLogger(__name__)

Cycle = List[str]


def build_dependency_graph(tasks: List[Task]) -> Dict[str, List[str]]:
    """
    Build an adjacency list keyed by task key, in insertion order.

    Task keys come first in batch order, then referenced keys in the order
    they are first seen. Duplicate edges are kept.
    """
    graph: Dict[str, List[str]] = {}
    for task in tasks:
        graph.setdefault(task_key(task), [])

    for task in tasks:
        source = task_key(task)
        for dependency in task.dependencies:
            target = to_key_string(dependency)
            graph[source].append(target)
            graph.setdefault(target, [])

    return graph


def detect_cycles(tasks: List[Task]) -> List[Cycle]:
    """
    Find circular dependency paths with a depth-first search.

    Every back edge into a node on the active path records the sub-path from
    that node to the back edge, closed by repeating the node. Entries are
    not deduplicated, so one cycle may be reported more than once when it is
    reached through different edges.

    Returns:
        List of cycles, each a list of keys whose first and last are equal.
    """
    graph = build_dependency_graph(tasks)
    visited: Set[str] = set()
    on_stack: Set[str] = set()
    cycles: List[Cycle] = []

    for root in graph:
        if root in visited:
            continue

        visited.add(root)
        on_stack.add(root)
        path = [root]
        frames: List[Tuple[str, Iterator[str]]] = [(root, iter(graph[root]))]

        while frames:
            node, children = frames[-1]
            for child in children:
                if child not in visited:
                    visited.add(child)
                    on_stack.add(child)
                    path.append(child)
                    frames.append((child, iter(graph[child])))
                    break
                if child in on_stack:
                    start = path.index(child)
                    cycles.append(path[start:] + [child])
            else:
                frames.pop()
                on_stack.discard(node)
                path.pop()

    if cycles:
        logger.warning("Detected %d circular dependency path(s): %s", len(cycles), cycles)
    return cycles

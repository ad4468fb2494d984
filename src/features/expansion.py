# src/features/expansion.py - v1
"""Feature group expansion.

Groups form a small directed graph (group -> included features). The graph
is checked for cycles with Kahn's algorithm, then every name is flattened
once into an ordered list of concrete features.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class ExpansionError(Exception):
    """Raised when group expansion fails (cycle, unknown include)."""


def check_acyclic(include_map: dict[str, list[str]]) -> list[str]:
    """Verify that the include graph has no cycle.

    Args:
        include_map: feature name -> names it includes.

    Returns:
        A topological order (included features before their groups).

    Raises:
        ExpansionError: If a cycle is detected or an include is missing.
    """
    all_names = set(include_map)
    for name, includes in include_map.items():
        for inc in includes:
            if inc not in all_names:
                raise ExpansionError(
                    f"Feature '{name}' includes '{inc}' which is not registered"
                )
            if inc == name:
                raise ExpansionError(f"Feature '{name}' includes itself")

    in_degree: dict[str, int] = {n: 0 for n in all_names}
    dependents: dict[str, list[str]] = {n: [] for n in all_names}
    for name, includes in include_map.items():
        for inc in set(includes):
            dependents[inc].append(name)
            in_degree[name] += 1

    order: list[str] = []
    queue = sorted(n for n, d in in_degree.items() if d == 0)
    while queue:
        order.extend(queue)
        next_queue: list[str] = []
        for name in queue:
            for dependent in dependents[name]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    next_queue.append(dependent)
        queue = sorted(next_queue)

    if len(order) != len(all_names):
        remaining = sorted(n for n in all_names if in_degree[n] > 0)
        raise ExpansionError(f"Cycle detected involving features: {remaining}")

    return order


def expand_all(
    include_map: dict[str, list[str]],
    is_concrete: Callable[[str], bool],
) -> dict[str, list[str]]:
    """Flatten every feature name into its ordered concrete feature list.

    A name contributes itself first when it is concrete, then each include
    in declared order, depth-first. Duplicates keep their first position.

    Raises:
        ExpansionError: Propagated from the acyclicity check.
    """
    check_acyclic(include_map)

    def _walk(name: str, out: list[str]) -> None:
        if is_concrete(name) and name not in out:
            out.append(name)
        for inc in include_map[name]:
            _walk(inc, out)

    expansions: dict[str, list[str]] = {}
    for name in include_map:
        flat: list[str] = []
        _walk(name, flat)
        expansions[name] = flat

    logger.debug("Feature expansions resolved: %s", expansions)
    return expansions

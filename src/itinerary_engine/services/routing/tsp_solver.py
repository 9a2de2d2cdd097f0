"""Visiting-order heuristics for small stop sets.

Nearest-neighbour construction from every start node followed by 2-opt local
search. Intended for roughly a dozen stops per day, where exhaustive
construction is cheap and near-optimal order matters more than scaling.
The solver is fully deterministic: ties always go to the lowest index.
"""

from __future__ import annotations

import math
from typing import List, Sequence

from .models import OrderingResult

IMPROVEMENT_EPSILON = 0.001


def route_cost(order: Sequence[int], cost_matrix: Sequence[Sequence[float]]) -> float:
    """Sum of consecutive directed edges along an open path."""
    return sum(cost_matrix[order[i]][order[i + 1]] for i in range(len(order) - 1))


def nearest_neighbor(cost_matrix: Sequence[Sequence[float]], start: int) -> List[int]:
    """Greedy walk that always moves to the cheapest unvisited node."""
    n = len(cost_matrix)
    visited = {start}
    order = [start]
    while len(visited) < n:
        current = order[-1]
        nearest = -1
        nearest_cost = math.inf
        for candidate in range(n):
            cost = cost_matrix[current][candidate]
            if candidate not in visited and cost < nearest_cost:
                nearest = candidate
                nearest_cost = cost
        if nearest == -1:
            break
        visited.add(nearest)
        order.append(nearest)
    return order


def _two_opt_delta(order: Sequence[int], cost_matrix: Sequence[Sequence[float]], i: int, j: int) -> float:
    a = order[i - 1]
    b = order[i]
    c = order[j]
    d = order[j + 1] if j + 1 < len(order) else order[0]
    return cost_matrix[a][c] + cost_matrix[b][d] - cost_matrix[a][b] - cost_matrix[c][d]


def two_opt(order: Sequence[int], cost_matrix: Sequence[Sequence[float]]) -> List[int]:
    """Reverse sub-paths while doing so lowers the cost; position 0 never moves."""
    best = list(order)
    n = len(best)
    improved = True
    while improved:
        improved = False
        for i in range(1, n - 1):
            for j in range(i + 1, n):
                if _two_opt_delta(best, cost_matrix, i, j) < -IMPROVEMENT_EPSILON:
                    best[i : j + 1] = reversed(best[i : j + 1])
                    improved = True
    return best


def solve_tsp(cost_matrix: Sequence[Sequence[float]], start_index: int = 0) -> OrderingResult:
    n = len(cost_matrix)
    if n <= 1:
        return OrderingResult(order=[0], total_cost=0)
    if n == 2:
        return OrderingResult(order=[0, 1], total_cost=cost_matrix[0][1])

    best_order = nearest_neighbor(cost_matrix, start_index)
    best_cost = route_cost(best_order, cost_matrix)
    for start in range(n):
        order = nearest_neighbor(cost_matrix, start)
        cost = route_cost(order, cost_matrix)
        if cost < best_cost:
            best_order = order
            best_cost = cost

    improved = two_opt(best_order, cost_matrix)
    improved_cost = route_cost(improved, cost_matrix)
    if improved_cost < best_cost:
        return OrderingResult(order=improved, total_cost=improved_cost)
    return OrderingResult(order=best_order, total_cost=best_cost)

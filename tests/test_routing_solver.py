import math
import random

from itinerary_engine.services.routing.tsp_solver import nearest_neighbor, route_cost, solve_tsp, two_opt


def _random_matrix(rng: random.Random, n: int) -> list[list[float]]:
    return [[0 if i == j else rng.randint(60, 3600) for j in range(n)] for i in range(n)]


def test_solve_tsp_trivial_sizes():
    single = solve_tsp([[0]])
    assert single.order == [0]
    assert single.total_cost == 0

    pair = solve_tsp([[0, 420], [515, 0]])
    assert pair.order == [0, 1]
    assert pair.total_cost == 420


def test_nearest_neighbor_follows_cheapest_edge():
    dist = [
        [0, 2, 9, 10],
        [1, 0, 6, 4],
        [15, 7, 0, 8],
        [6, 3, 12, 0],
    ]
    assert nearest_neighbor(dist, start=0) == [0, 1, 3, 2]


def test_nearest_neighbor_breaks_ties_by_lowest_index():
    dist = [
        [0, 5, 5],
        [1, 0, 9],
        [1, 9, 0],
    ]
    assert nearest_neighbor(dist, start=0) == [0, 1, 2]


def test_two_opt_removes_crossing():
    diagonal = math.sqrt(2)
    dist = [
        [0, diagonal, 1, 1],
        [diagonal, 0, 1, 1],
        [1, 1, 0, diagonal],
        [1, 1, diagonal, 0],
    ]
    improved = two_opt([0, 1, 2, 3], dist)

    assert improved == [0, 2, 1, 3]
    assert route_cost(improved, dist) < route_cost([0, 1, 2, 3], dist)


def test_solve_tsp_never_worse_than_best_construction():
    rng = random.Random(20240611)
    for _ in range(40):
        n = rng.randint(3, 9)
        matrix = _random_matrix(rng, n)
        best_construction = min(route_cost(nearest_neighbor(matrix, s), matrix) for s in range(n))

        result = solve_tsp(matrix)

        assert sorted(result.order) == list(range(n))
        assert result.total_cost <= best_construction
        assert result.total_cost == route_cost(result.order, matrix)


def test_solve_tsp_is_deterministic():
    rng = random.Random(7)
    matrix = _random_matrix(rng, 8)

    first = solve_tsp(matrix)
    second = solve_tsp(matrix)

    assert first.order == second.order
    assert first.total_cost == second.total_cost

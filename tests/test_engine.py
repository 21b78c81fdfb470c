"""Tests for the best-first search engine."""

import math
import random
import threading

import pytest

from layout_search.core.data_models import Layout, NoSolution, Solved
from layout_search.core.exceptions import DomainContractError
from layout_search.search import (
    BestFirstSearcher, SearchConfig, SearchStatistics, EvaluationStrategy,
    DuplicatePolicy, create_searcher, solve
)


class GraphLayout(Layout):
    """Vertex of an explicit weighted digraph."""

    def __init__(self, name, edges, estimates=None):
        self.name = name
        self.edges = edges
        self.estimates = estimates or {}

    def children(self):
        for target, cost in self.edges.get(self.name, ()):
            yield GraphLayout(target, self.edges, self.estimates), cost

    def heuristic(self, target):
        return self.estimates.get(self.name, 0.0)

    def __eq__(self, other):
        if not isinstance(other, GraphLayout):
            return NotImplemented
        return self.name == other.name

    def __hash__(self):
        return hash(self.name)

    def __repr__(self):
        return f"GraphLayout({self.name!r})"


class CounterLayout(Layout):
    """Unbounded chain 0 -> 1 -> 2 -> ..."""

    def __init__(self, value):
        self.value = value

    def children(self):
        return [(CounterLayout(self.value + 1), 1)]

    def __eq__(self, other):
        return isinstance(other, CounterLayout) and self.value == other.value

    def __hash__(self):
        return hash(self.value)


class PrefixGoalLayout(GraphLayout):
    """Any vertex whose name starts with the target's name is a goal."""

    def children(self):
        for target, cost in self.edges.get(self.name, ()):
            yield PrefixGoalLayout(target, self.edges), cost

    def is_goal(self, target):
        return self.name.startswith(target.name)


def graph(edges, estimates=None):
    """Build a vertex factory over an edge list [(source, target, cost), ...]."""
    adjacency = {}
    for source, target, cost in edges:
        adjacency.setdefault(source, []).append((target, cost))
    return lambda name: GraphLayout(name, adjacency, estimates)


def shortest_costs(edges, goal):
    """Cheapest cost from every vertex to ``goal`` (Bellman-Ford on the reversed graph)."""
    vertices = {v for edge in edges for v in edge[:2]} | {goal}
    distance = {v: math.inf for v in vertices}
    distance[goal] = 0.0
    for _ in range(len(vertices)):
        for source, target, cost in edges:
            if distance[target] + cost < distance[source]:
                distance[source] = distance[target] + cost
    return distance


def random_edges(rng, vertices=8, edge_count=20, max_cost=9):
    edges = []
    names = [f"v{i}" for i in range(vertices)]
    while len(edges) < edge_count:
        source, target = rng.sample(names, 2)
        edges.append((source, target, rng.randint(0, max_cost)))
    return edges


def assert_valid_path(outcome, edges):
    """Every step follows an edge and cumulative costs add up."""
    weights = {}
    for source, target, cost in edges:
        weights.setdefault((source, target), []).append(cost)

    steps = list(outcome)
    assert steps[0].cost == 0.0
    for previous, current in zip(steps, steps[1:]):
        step_cost = current.cost - previous.cost
        assert any(math.isclose(step_cost, c) for c in weights[(previous.state.name, current.state.name)])
    assert steps[-1].cost == outcome.total_cost


class TestBasicSearch:
    """Test basic solve behaviour."""

    @pytest.fixture
    def diamond(self):
        edges = [('A', 'B', 1), ('B', 'C', 1), ('A', 'C', 5)]
        return graph(edges)

    def test_finds_cheapest_path(self, diamond):
        """Test the cheaper two-step path wins over the direct edge."""
        outcome = BestFirstSearcher().solve(diamond('A'), diamond('C'))

        assert isinstance(outcome, Solved)
        assert outcome.success
        assert [state.name for state in outcome.states] == ['A', 'B', 'C']
        assert outcome.total_cost == 2.0
        assert [step.cost for step in outcome.path] == [0.0, 1.0, 2.0]
        assert outcome.termination_reason == "goal_reached"

    def test_start_is_goal(self, diamond):
        """Test a start that already satisfies the goal."""
        outcome = BestFirstSearcher().solve(diamond('A'), diamond('A'))

        assert outcome.success
        assert len(outcome) == 1
        assert outcome.total_cost == 0.0
        assert outcome.statistics['nodes_expanded'] == 0

    def test_unreachable_goal(self, diamond):
        """Test exhausting the reachable states."""
        outcome = BestFirstSearcher().solve(diamond('C'), diamond('A'))

        assert isinstance(outcome, NoSolution)
        assert not outcome
        assert outcome.termination_reason == "search_exhausted"

    def test_cycle_terminates(self):
        """Test a cyclic graph with an unreachable goal is exhausted."""
        vertex = graph([('A', 'B', 1), ('B', 'C', 1), ('C', 'A', 1), ('B', 'A', 1)])
        outcome = BestFirstSearcher().solve(vertex('A'), vertex('Z'))

        assert not outcome
        assert outcome.statistics['nodes_expanded'] == 3

    def test_parent_transition_skipped(self):
        """Test a node's predecessor is never pushed as its successor."""
        vertex = graph([('A', 'B', 1), ('B', 'A', 1), ('B', 'C', 1)])
        outcome = BestFirstSearcher().solve(vertex('A'), vertex('C'))

        assert outcome.total_cost == 2.0
        assert outcome.statistics['parent_transitions_skipped'] == 1

    def test_zero_cost_edges(self):
        """Test zero-cost transitions are allowed."""
        vertex = graph([('A', 'B', 0), ('B', 'C', 0), ('A', 'C', 1)])
        outcome = BestFirstSearcher().solve(vertex('A'), vertex('C'))

        assert outcome.total_cost == 0.0
        assert len(outcome) == 3

    def test_custom_goal_predicate(self):
        """Test goals decided by is_goal rather than equality."""
        adjacency = {'s': [('x1', 3), ('y', 1)], 'y': [('x2', 1)]}
        outcome = BestFirstSearcher().solve(
            PrefixGoalLayout('s', adjacency), PrefixGoalLayout('x', adjacency)
        )

        assert outcome.final_state.name == 'x2'
        assert outcome.total_cost == 2.0

    def test_ties_pop_in_insertion_order(self):
        """Test equal f scores are expanded first come first served."""
        vertex = graph([('A', 'B', 1), ('A', 'C', 1), ('B', 'D', 1), ('C', 'D', 1)])
        outcome = BestFirstSearcher().solve(vertex('A'), vertex('D'))

        assert [state.name for state in outcome.states] == ['A', 'B', 'D']

    def test_solve_is_repeatable(self, diamond):
        """Test the same searcher gives identical outcomes across calls."""
        searcher = BestFirstSearcher()
        first = searcher.solve(diamond('A'), diamond('C'))
        second = searcher.solve(diamond('A'), diamond('C'))

        assert first.states == second.states
        assert first.total_cost == second.total_cost
        assert first.statistics['nodes_expanded'] == second.statistics['nodes_expanded']

    def test_iter_solution(self, diamond):
        """Test lazily walking the solution nodes."""
        searcher = BestFirstSearcher()
        nodes = searcher.iter_solution(diamond('A'), diamond('C'))

        assert next(nodes).state.name == 'A'
        rest = list(nodes)
        assert [node.state.name for node in rest] == ['B', 'C']
        assert rest[-1].cost == 2.0
        # Consumed iterators stay empty
        assert list(nodes) == []

    def test_iter_solution_unsolved(self, diamond):
        """Test the iterator is empty without a solution."""
        assert list(BestFirstSearcher().iter_solution(diamond('C'), diamond('A'))) == []

    def test_outcome_to_dict(self, diamond):
        """Test outcome serialization."""
        result = BestFirstSearcher().solve(diamond('A'), diamond('C')).to_dict()

        assert result['success'] is True
        assert result['total_cost'] == 2.0
        assert result['path_length'] == 3
        assert result['path'][1] == {'state': "GraphLayout('B')", 'cost': 1.0}
        assert result['search_stats']['nodes_expanded'] == 2


class TestOptimality:
    """Compare against brute-force shortest paths on random graphs."""

    @pytest.mark.parametrize("seed", range(25))
    def test_uniform_cost_matches_brute_force(self, seed):
        rng = random.Random(seed)
        edges = random_edges(rng)
        expected = shortest_costs(edges, 'v7')
        vertex = graph(edges)

        outcome = BestFirstSearcher().solve(vertex('v0'), vertex('v7'))

        if math.isinf(expected.get('v0', math.inf)):
            assert not outcome
        else:
            assert outcome.total_cost == expected.get('v0')
            assert_valid_path(outcome, edges)

    @pytest.mark.parametrize("seed", range(25))
    def test_heuristic_matches_brute_force(self, seed):
        rng = random.Random(seed)
        edges = random_edges(rng)
        expected = shortest_costs(edges, 'v7')
        # Half the true distance is admissible and consistent
        estimates = {v: (d / 2 if not math.isinf(d) else 0.0) for v, d in expected.items()}
        vertex = graph(edges, estimates)

        outcome = BestFirstSearcher().solve(vertex('v0'), vertex('v7'), strategy='heuristic')

        if math.isinf(expected.get('v0', math.inf)):
            assert not outcome
        else:
            assert outcome.total_cost == expected.get('v0')
            assert_valid_path(outcome, edges)

    @pytest.mark.parametrize("seed", range(10))
    def test_paths_have_no_repeated_states(self, seed):
        rng = random.Random(seed)
        edges = random_edges(rng, edge_count=30)
        vertex = graph(edges)

        outcome = BestFirstSearcher().solve(vertex('v0'), vertex('v5'))

        if outcome:
            names = [state.name for state in outcome.states]
            assert len(names) == len(set(names))

    def test_perfect_heuristic_expands_less(self):
        """Test A* with a perfect estimate expands no more than uniform cost."""
        edges = [('s', 'a', 1), ('s', 'b', 1), ('a', 'c', 1), ('b', 'd', 1),
                 ('c', 'g', 1), ('d', 'e', 1), ('e', 'f', 1)]
        estimates = {'s': 3, 'a': 2, 'c': 1, 'g': 0, 'b': 10, 'd': 10, 'e': 10, 'f': 10}
        vertex = graph(edges, estimates)

        uniform = BestFirstSearcher().solve(vertex('s'), vertex('g'))
        guided = BestFirstSearcher().solve(vertex('s'), vertex('g'), strategy=EvaluationStrategy.HEURISTIC)

        assert uniform.total_cost == guided.total_cost == 3.0
        assert guided.statistics['nodes_expanded'] < uniform.statistics['nodes_expanded']


class TestDuplicatePolicy:
    """Test the two duplicate handling policies."""

    @pytest.fixture
    def shortcut(self):
        # The goal is first reached expensively, then cheaply while still queued
        return graph([('A', 'X', 10), ('A', 'B', 1), ('B', 'X', 1)])

    def test_closed_set_only_keeps_cheaper_copy(self, shortcut):
        outcome = BestFirstSearcher().solve(shortcut('A'), shortcut('X'))

        assert outcome.total_cost == 2.0

    def test_open_and_closed_drops_queued_layouts(self, shortcut):
        """Test a layout already in the frontier is not pushed again."""
        searcher = create_searcher(duplicate_policy=DuplicatePolicy.OPEN_AND_CLOSED)
        outcome = searcher.solve(shortcut('A'), shortcut('X'))

        assert outcome.total_cost == 10.0
        assert outcome.statistics['duplicate_states'] == 1

    def test_open_and_closed_optimal_with_unit_costs(self):
        """Test both policies agree when every transition costs the same."""
        rng = random.Random(7)
        edges = [(s, t, 1) for s, t, _ in random_edges(rng, vertices=10, edge_count=35)]
        vertex = graph(edges)

        closed = create_searcher(duplicate_policy='closed_set_only').solve(vertex('v0'), vertex('v9'))
        dedup = create_searcher(duplicate_policy='open_and_closed').solve(vertex('v0'), vertex('v9'))

        assert bool(closed) == bool(dedup)
        if closed:
            assert closed.total_cost == dedup.total_cost


class TestLimits:
    """Test node, depth, time and cancellation limits."""

    @pytest.fixture
    def chain(self):
        return graph([(str(i), str(i + 1), 1) for i in range(10)])

    def test_max_nodes_expanded(self, chain):
        searcher = create_searcher(max_nodes_expanded=2)
        outcome = searcher.solve(chain('0'), chain('10'))

        assert not outcome
        assert outcome.termination_reason == "max_nodes_reached"
        assert outcome.statistics['nodes_expanded'] == 2

    def test_max_depth_prunes(self, chain):
        outcome = create_searcher(max_depth=2).solve(chain('0'), chain('3'))

        assert not outcome
        assert outcome.termination_reason == "depth_limit_reached"
        assert outcome.statistics['nodes_pruned'] == 1

    def test_goal_at_max_depth_is_found(self, chain):
        outcome = create_searcher(max_depth=3).solve(chain('0'), chain('3'))

        assert outcome.total_cost == 3.0

    def test_pruned_layout_reached_again_shallower(self):
        """Test a layout cut off at the limit is still expanded from a shorter path."""
        vertex = graph([('S', 'a', 1), ('a', 'X', 1), ('S', 'X', 5), ('X', 'G', 1)])

        assert BestFirstSearcher().solve(vertex('S'), vertex('G')).total_cost == 3.0

        outcome = create_searcher(max_depth=2).solve(vertex('S'), vertex('G'))

        assert outcome, outcome.termination_reason
        assert outcome.total_cost == 6.0
        assert [v.name for v in outcome.states] == ['S', 'X', 'G']
        assert outcome.statistics['nodes_pruned'] == 1

    def test_expanded_layout_reopened_at_shallower_depth(self):
        """Test an expansion whose successors were pruned is redone closer to the start."""
        vertex = graph([
            ('S', 'a', 1), ('a', 'X', 1), ('S', 'X', 10),
            ('X', 'Y', 1), ('Y', 'G', 1),
        ])

        outcome = create_searcher(max_depth=3).solve(vertex('S'), vertex('G'))

        assert outcome.total_cost == 12.0
        assert [v.name for v in outcome.states] == ['S', 'X', 'Y', 'G']

    def test_max_depth_zero(self, chain):
        outcome = create_searcher(max_depth=0).solve(chain('0'), chain('1'))

        assert outcome.termination_reason == "depth_limit_reached"
        assert outcome.statistics['nodes_expanded'] == 0

    def test_timeout(self):
        """Test an unbounded space stops at the deadline."""
        outcome = create_searcher(max_computation_time=0.05).solve(CounterLayout(0), CounterLayout(-1))

        assert not outcome
        assert outcome.termination_reason == "timeout"
        assert outcome.computation_time >= 0.05

    def test_cancel_event(self, chain):
        cancel = threading.Event()
        cancel.set()

        outcome = BestFirstSearcher().solve(chain('0'), chain('10'), cancel_event=cancel)

        assert outcome.termination_reason == "cancelled"
        assert outcome.statistics['nodes_expanded'] == 0


class TestContractViolations:
    """Test domains breaking the layout contract are reported."""

    def test_negative_cost(self):
        vertex = graph([('A', 'B', -1)])
        with pytest.raises(DomainContractError, match="non-negative"):
            BestFirstSearcher().solve(vertex('A'), vertex('B'))

    def test_nan_cost(self):
        vertex = graph([('A', 'B', float('nan'))])
        with pytest.raises(DomainContractError):
            BestFirstSearcher().solve(vertex('A'), vertex('B'))

    def test_non_numeric_cost(self):
        vertex = graph([('A', 'B', 'cheap')])
        with pytest.raises(DomainContractError, match="number"):
            BestFirstSearcher().solve(vertex('A'), vertex('B'))

    def test_self_transition(self):
        vertex = graph([('A', 'A', 1), ('A', 'B', 1)])
        with pytest.raises(DomainContractError, match="itself") as excinfo:
            BestFirstSearcher().solve(vertex('A'), vertex('B'))
        assert excinfo.value.layout == vertex('A')

    def test_self_transition_unchecked(self):
        """Test cost validation can be switched off."""
        vertex = graph([('A', 'A', 1), ('A', 'B', 1)])
        outcome = create_searcher(validate_costs=False).solve(vertex('A'), vertex('B'))

        assert outcome.total_cost == 1.0

    def test_negative_heuristic(self):
        vertex = graph([('A', 'B', 1)], estimates={'A': -1.0})
        with pytest.raises(DomainContractError, match="heuristic"):
            BestFirstSearcher().solve(vertex('A'), vertex('B'), strategy='heuristic')

    def test_heuristic_ignored_under_uniform_cost(self):
        vertex = graph([('A', 'B', 1)], estimates={'A': -1.0})
        outcome = BestFirstSearcher().solve(vertex('A'), vertex('B'))

        assert outcome.total_cost == 1.0


class TestSearchConfig:
    """Test search configuration."""

    def test_defaults(self):
        config = SearchConfig()

        assert config.strategy is EvaluationStrategy.UNIFORM_COST
        assert config.duplicate_policy is DuplicatePolicy.CLOSED_SET_ONLY
        assert config.max_nodes_expanded is None
        assert config.validate_costs is True

    def test_string_values_are_parsed(self):
        config = SearchConfig(strategy='astar', duplicate_policy='dedup')

        assert config.strategy is EvaluationStrategy.HEURISTIC
        assert config.duplicate_policy is DuplicatePolicy.OPEN_AND_CLOSED

    @pytest.mark.parametrize("kwargs", [
        {'max_nodes_expanded': 0},
        {'max_depth': -1},
        {'max_computation_time': 0},
        {'strategy': 'greedy'},
        {'duplicate_policy': 'never'},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            SearchConfig(**kwargs)

    def test_from_config_mapping(self):
        config = SearchConfig.from_config({'search': {'strategy': 'heuristic', 'max_depth': 4}})

        assert config.strategy is EvaluationStrategy.HEURISTIC
        assert config.max_depth == 4
        assert config.max_nodes_expanded is None

    def test_from_config_none(self):
        assert SearchConfig.from_config(None) == SearchConfig()


class TestSearcherApi:
    """Test searcher helpers and module level functions."""

    def test_per_call_strategy(self):
        vertex = graph([('A', 'B', 1)], estimates={'A': 1.0})
        searcher = BestFirstSearcher()
        searcher.solve(vertex('A'), vertex('B'), strategy='heuristic')

        stats = searcher.get_search_stats()
        assert stats['config']['strategy'] == 'heuristic'
        assert searcher.config.strategy is EvaluationStrategy.UNIFORM_COST

    def test_module_solve(self):
        vertex = graph([('A', 'B', 2), ('B', 'C', 2)])
        outcome = solve(vertex('A'), vertex('C'), strategy='astar', max_nodes_expanded=100)

        assert outcome.total_cost == 4.0

    def test_statistics(self):
        vertex = graph([('A', 'B', 1), ('A', 'C', 1), ('B', 'D', 1)])
        outcome = BestFirstSearcher().solve(vertex('A'), vertex('D'))
        stats = outcome.statistics

        assert stats['nodes_expanded'] == 3
        assert stats['nodes_generated'] == 3
        assert stats['max_depth_reached'] == 2
        assert stats['max_frontier_size'] == 2
        assert stats['search_efficiency'] == 1.0

    def test_branching_factor(self):
        stats = SearchStatistics()
        stats.nodes_expanded = 1
        stats.update_branching_factor(4)
        stats.nodes_expanded = 2
        stats.update_branching_factor(2)

        assert stats.average_branching_factor == 3.0

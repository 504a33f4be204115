# tests/adapters/test_solver.py
import pytest

from ontogen.core.domain.constraints import FALSE, TRUE
from ontogen.core.domain.exceptions import SolverTimeoutError, UnsatisfiableError


@pytest.fixture
def problem(solver):
    return solver.new_problem("test")


class TestPropositions:
    def test_propositions_are_interned(self, problem):
        assert problem.proposition("fuzzy", "tom") is problem.proposition("fuzzy", "tom")
        assert problem.proposition("fuzzy", "tom") is not problem.proposition("fuzzy", "felix")

    def test_symmetric_propositions_ignore_argument_order(self, problem):
        a = problem.proposition("love", "a", "b", symmetric=True)
        b = problem.proposition("love", "b", "a", symmetric=True)

        assert a is b


class TestConstraints:
    def test_asserted_literals_hold(self, problem):
        p, q = problem.proposition("p"), problem.proposition("q")
        problem.assert_literal(p)
        problem.assert_literal(~q)

        solution = problem.solve()

        assert solution[p] is True
        assert solution[q] is False
        assert solution[~q] is True

    def test_implication_chain(self, problem):
        a, b, c = (problem.proposition(n) for n in "abc")
        problem.add_implication([a], b)
        problem.add_implication([b], c)
        problem.assert_literal(a)

        solution = problem.solve()

        assert solution[b] and solution[c]

    def test_cardinality_bounds_are_respected(self, problem):
        """
        Scenario: Six propositions constrained to between 2 and 3 true.
        Expected: Every solve lands inside the bounds.
        """
        props = [problem.proposition("p", i) for i in range(6)]
        problem.quantify(2, 3, props)

        for _ in range(10):
            solution = problem.solve()
            assert 2 <= sum(solution[p] for p in props) <= 3

    def test_exactly_and_unique(self, problem):
        props = [problem.proposition("p", i) for i in range(4)]
        problem.exactly(2, props)
        others = [problem.proposition("q", i) for i in range(3)]
        problem.unique(others)

        solution = problem.solve()

        assert sum(solution[p] for p in props) == 2
        assert sum(solution[q] for q in others) == 1

    def test_constants_are_folded(self, problem):
        p = problem.proposition("p")
        problem.add_clause([FALSE, p])
        problem.at_most(1, [TRUE, p, p])

        # The second constraint allows nothing beyond TRUE, yet the first forces p
        with pytest.raises(UnsatisfiableError):
            problem.solve()

    def test_constraint_that_can_never_hold(self, problem):
        problem.at_least(3, [problem.proposition("p"), problem.proposition("q")])

        with pytest.raises(UnsatisfiableError):
            problem.solve()
        assert problem.stats().failures == 1

    def test_unsatisfiable_search(self, problem):
        p, q = problem.proposition("p"), problem.proposition("q")
        problem.add_clause([p, q])
        problem.add_clause([~p, q])
        problem.add_clause([p, ~q])
        problem.add_clause([~p, ~q])

        with pytest.raises(UnsatisfiableError):
            problem.solve()

    def test_conflict_budget(self):
        from ontogen.adapters.solvers.backtracking import BacktrackingSolver

        # Pigeonhole: 6 pigeons, 5 holes. Far beyond one conflict.
        problem = BacktrackingSolver(max_conflicts=1, seed=7).new_problem("pigeons")
        holes = range(5)
        for pigeon in range(6):
            problem.unique([problem.proposition("in", pigeon, hole) for hole in holes])
        for hole in holes:
            problem.at_most(1, [problem.proposition("in", pigeon, hole) for pigeon in range(6)])

        with pytest.raises(SolverTimeoutError):
            problem.solve()


class TestVariables:
    def test_float_variable_only_defined_when_its_guard_holds(self, problem):
        on, off = problem.proposition("on"), problem.proposition("off")
        problem.assert_literal(on)
        problem.assert_literal(~off)
        age = problem.float_variable("age", 1, 20, on)
        weight = problem.float_variable("weight", 1, 5, off)

        solution = problem.solve()

        assert 1 <= solution[age] <= 20
        assert not solution.defines_variable(weight)

    def test_menu_variable_takes_a_menu_value(self, problem):
        owner = problem.proposition("owner")
        problem.assert_literal(owner)
        name = problem.menu_variable("name", owner)
        problem.assert_literal(problem.in_menu(name, "names", ["Tom", "Felix"]))

        solution = problem.solve()

        assert solution[name] in ("Tom", "Felix")


class TestDiagnostics:
    def test_stats_and_decompile(self, problem):
        p, q = problem.proposition("p"), problem.proposition("q")
        problem.add_clause([p, q])
        problem.at_most(1, [p, q])
        problem.solve()

        stats = problem.stats()

        assert (stats.propositions, stats.constraints, stats.solve_count) == (2, 2, 1)
        assert stats.mean_solve_ms is not None
        assert problem.decompile() == ["p | q", "at most 1 of [p, q]"]

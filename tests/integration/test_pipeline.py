"""End-to-end solve → extract → verify on small problems."""

import numpy as np
import pytest

from cashsdp.convexity import expected_value_curve
from cashsdp.extractor import CashThresholdCriterion
from cashsdp.problem import CashProblem, PolicyReport
from tests.helpers.factories import make_problem
from tests.helpers.invariants import assert_policy_invariants, assert_table_invariants

pytestmark = pytest.mark.integration


def test_run_small_problem(small_problem: CashProblem) -> None:
    report = small_problem.run()

    assert isinstance(report, PolicyReport)
    assert report.final_cash == pytest.approx(small_problem.config.ini_cash + report.value)
    assert report.value > 0
    assert isinstance(report.mismatches, int)
    assert report.mismatches >= 0

    assert_table_invariants(report.table, small_problem.config)
    assert_policy_invariants(report.extraction.policy, 3, report.table)


def test_first_period_row_is_the_initial_decision(small_problem: CashProblem) -> None:
    report = small_problem.run()
    row = report.extraction.policy[1]
    cfg = small_problem.config

    assert report.action > 0
    assert row == (1, report.action + 1.0, cfg.min_cash_required, report.action)
    assert report.extraction.cache[(1, 0.0)] == row.C
    spare = cfg.ini_cash - cfg.min_cash_required - cfg.fix_order_cost
    affordable = spare / cfg.vari_order_cost
    quantity = report.extraction.policy.order_quantity(
        1,
        cfg.ini_inventory,
        cfg.ini_cash,
        affordable=affordable,
        max_order_quantity=cfg.max_order_quantity,
        cache=report.extraction.cache,
    )
    assert quantity == report.action


def test_other_period_one_solves_leave_first_row_alone() -> None:
    problem = make_problem(mean_demand=[4, 4, 4], ini_inventory=3)
    expected_value_curve(problem.solver, range(6), 20.0)
    assert len(problem.opt_table().for_period(1)) == 6

    report = problem.run()
    row = report.extraction.policy[1]

    # the start (x=3, R=20) waits, the curve's x=0 start would order
    assert report.action == 0.0
    assert row == (1, 3.0, 0.0, 3.0)
    assert (1, 0.0) not in report.extraction.cache
    assert report.extraction.cache[(1, 3.0)] == 0.0


def test_final_cash_matches_solve(small_problem: CashProblem) -> None:
    value, _ = small_problem.solve()
    assert small_problem.final_cash() == pytest.approx(20.0 + value)


@pytest.mark.parametrize("criterion", list(CashThresholdCriterion))
def test_every_criterion(solved_problem: CashProblem, criterion) -> None:
    extraction = solved_problem.extract(criterion)
    mismatches = solved_problem.verify(extraction)

    assert_policy_invariants(extraction.policy, 3, solved_problem.opt_table())
    assert mismatches >= 0


def test_criterion_defaults_to_config() -> None:
    problem = make_problem(mean_demand=[4, 4, 4], criterion="min")
    default = problem.extract()
    explicit = problem.extract("min")
    np.testing.assert_array_equal(default.policy.to_array(), explicit.policy.to_array())


def test_deterministic_across_instances() -> None:
    a = make_problem(mean_demand=[4, 4, 4]).run()
    b = make_problem(mean_demand=[4, 4, 4]).run()

    assert a.table == b.table
    assert a.value == b.value
    assert a.mismatches == b.mismatches
    np.testing.assert_array_equal(
        a.extraction.policy.to_array(), b.extraction.policy.to_array()
    )
    np.testing.assert_array_equal(a.extraction.cache.to_array(), b.extraction.cache.to_array())


def test_more_cash_never_hurts() -> None:
    poor = make_problem(mean_demand=[4, 4], ini_cash=12).solve()[0]
    rich = make_problem(mean_demand=[4, 4], ini_cash=40).solve()[0]
    assert rich >= poor


def test_no_cash_no_order() -> None:
    value, action = make_problem(mean_demand=[4, 4], ini_cash=5).solve()
    # 5 < K; the retailer waits but can never afford an order
    assert action == 0.0
    assert value == 0.0


def test_normal_demand_pipeline() -> None:
    problem = make_problem(mean_demand=[5, 5], demand_distribution="normal")
    report = problem.run()
    assert_table_invariants(report.table, problem.config)
    assert_policy_invariants(report.extraction.policy, 2)


def test_table_exports(small_problem: CashProblem) -> None:
    pd = pytest.importorskip("pandas")
    report = small_problem.run()
    df = report.table.to_dataframe()
    assert isinstance(df, pd.DataFrame)
    assert len(df) == small_problem.solver.n_states

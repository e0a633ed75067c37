"""Pytest configuration and fixtures for cashsdp tests."""

import os

import pytest

from cashsdp import logging
from cashsdp.config import Config
from cashsdp.problem import CashProblem
from tests.helpers.factories import make_config, make_problem


@pytest.fixture
def small_config() -> Config:
    """Two-period Poisson(4) problem on a narrow cash lattice."""
    return make_config()


@pytest.fixture
def small_problem() -> CashProblem:
    """A three-period problem that solves in well under a second."""
    return make_problem(mean_demand=[4, 4, 4])


@pytest.fixture
def solved_problem(small_problem: CashProblem) -> CashProblem:
    small_problem.solve()
    return small_problem


@pytest.fixture(autouse=True)
def mute_cashsdp_logs(caplog):
    # COVERAGE_RUN=true runs every log statement for accurate coverage
    if os.environ.get("COVERAGE_RUN") == "true":
        level = logging.DEBUG
    else:
        level = logging.ERROR

    # Set both caplog level (for capture) and actual logger level
    caplog.set_level(level, logger="cashsdp")
    logging.getLogger("cashsdp").setLevel(level)

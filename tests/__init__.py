# tests/__init__.py

from tests.helpers.factories import make_config, make_problem, make_recursion
from tests.helpers.invariants import assert_policy_invariants, assert_table_invariants

__all__ = [
    "make_config",
    "make_problem",
    "make_recursion",
    "assert_table_invariants",
    "assert_policy_invariants",
]

"""
Planning package: pure construction of conditional update plans.
"""

from fieldguard.planning.plan_builder import build_plan, condition_clause, encode_value

__all__ = ["build_plan", "condition_clause", "encode_value"]

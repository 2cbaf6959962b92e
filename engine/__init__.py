"""Klassenbildungs-Engine (Greedy-Balancing)."""

from .balancer import BalanceResult, ClassBalancer, PoolTotals, make_permuter
from .generator import ClassGenerator
from .partition import PartitionPlan, PoolPartitioner, apportion_classes
from .reassignment import ReassignmentError, ReassignmentHandler, move_student
from .requests import find_student_by_name, resolve_requests, split_request_text

__all__ = [
    "BalanceResult",
    "ClassBalancer",
    "PoolTotals",
    "make_permuter",
    "ClassGenerator",
    "PartitionPlan",
    "PoolPartitioner",
    "apportion_classes",
    "ReassignmentError",
    "ReassignmentHandler",
    "move_student",
    "find_student_by_name",
    "resolve_requests",
    "split_request_text",
]

from models.student import Category, StudentRecord, normalize_ranking, year_of
from models.request import Request, RequestKind, RequestLedger
from models.class_group import ClassGroup, ClassStatistics
from models.generation import (
    FallbackEvent,
    GeneratedClasses,
    GenerationResult,
    UnseededPair,
)
from models.cohort import Cohort, FeasibilityReport

__all__ = [
    "Category",
    "StudentRecord",
    "normalize_ranking",
    "year_of",
    "Request",
    "RequestKind",
    "RequestLedger",
    "ClassGroup",
    "ClassStatistics",
    "FallbackEvent",
    "GeneratedClasses",
    "GenerationResult",
    "UnseededPair",
    "Cohort",
    "FeasibilityReport",
]

"""Coverage report accessors."""

from covquest.adapters.coverage.base import (
    ClassDetails,
    CoverageReportAccessor,
    CoverageReportError,
    CoverageTag,
    SourceLine,
)
from covquest.adapters.coverage.jacoco import (
    JaCoCoReportAccessor,
    find_class_details,
    list_class_details,
)

__all__ = [
    "ClassDetails",
    "CoverageReportAccessor",
    "CoverageReportError",
    "CoverageTag",
    "JaCoCoReportAccessor",
    "SourceLine",
    "find_class_details",
    "list_class_details",
]

"""
Exceptions raised by the analysis run.

All of them are fatal: the run stops and the inputs have to be fixed.
"""

class AnalysisError(Exception):
    """Base class for analysis failures."""
    pass

class DataShapeError(AnalysisError):
    """Raised when the cleaned table has the wrong columns or types."""
    pass

class InvalidLabelCardinality(AnalysisError):
    """Raised when the label domain does not hold exactly two values."""
    pass

class EmptyCandidateSet(AnalysisError):
    """Raised when a threshold sweep receives no candidate thresholds."""
    pass

class ColumnMismatch(AnalysisError):
    """Raised when prediction matrix columns differ from the fit-time columns."""
    pass

# ============================================================================
# errors.py - Analysis Error Types
# ============================================================================
"""
Exceptions raised by the analysis pipeline. The report catches
AnalysisError once and stops the run.
"""


class AnalysisError(Exception):
    """Base class for every failure that abandons the run"""


class DataAvailabilityError(AnalysisError):
    """Series could not be retrieved, or too few observations remain"""


class SpecificationError(AnalysisError):
    """Invalid configuration or input that no estimator can work with"""


class EstimationError(AnalysisError):
    """A statistical estimator failed numerically"""

"""Matched case-control analysis of food exposures with conditional logistic regression."""

from .clogit import fit_all, fit_clogit, run
from .errors import SchemaError, StrataError
from .results import ConvergenceFailure, Fitted, Overridden

__version__ = "0.1.0"

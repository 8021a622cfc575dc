# -*- coding: utf-8 -*-
"""Exception types raised by geoanalysis operations.

Errors that describe bad caller input also derive from ValueError, so code that already guards
calls with ``except ValueError`` keeps working.
"""


class GeoAnalysisError(Exception):
    """Base class for every error raised by geoanalysis."""


class InvalidInputError(GeoAnalysisError, ValueError):
    """Malformed or empty geometry, unknown unit, non-numeric parameter."""


class InsufficientDataError(GeoAnalysisError, ValueError):
    """Too few values or points for the requested operation."""


class InsufficientPointsError(InsufficientDataError):
    """A hull needs at least three distinct, non-collinear points."""


class EmptyResultError(GeoAnalysisError):
    """The operation ran but legally produced nothing."""


class ExternalSamplingError(GeoAnalysisError, RuntimeError):
    """The elevation source failed, timed out or returned a mismatched batch."""

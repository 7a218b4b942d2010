"""
===========================================================
exceptions.py
Author: Veronica Scerra
Last Updated: 2026-10-18
===========================================================

Description:
    Error types raised by the simulation and calibration code.

Notes:
    - All of them subclass ValueError so callers that already
      guard model construction with `except ValueError` keep
      working.
-----------------------------------------------------------
License: MIT
===========================================================
"""


class InvalidParametersError(ValueError):
    """A parameter vector fails a precondition (e.g. N <= 0, rho outside (0, 1])."""


class InfeasibleParametersError(ValueError):
    """A candidate drove a rate or a compartment outside its valid domain
    during simulation. The cost evaluator turns this into a penalty."""


class MalformedSeriesError(ValueError):
    """Observation series with mismatched lengths or non-monotonic time."""

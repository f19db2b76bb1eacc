"""Exceptions raised by the estimation core and its boundary adapters."""

from __future__ import annotations

from typing import Optional


class SwapCoreError(Exception):
    """Base class for swap-core errors."""


class EstimationError(SwapCoreError):
    """Estimation could not produce a result."""

    def __init__(self, message: str, state: Optional[object] = None):
        self.state = state
        super().__init__(message)


class ValidationError(EstimationError, ValueError):
    """Bad amount, hop bound, coin or algorithm. Never retried."""


class NoPathFound(EstimationError):
    """No hop sequence connects the two coins through compliant pools."""


class NoProfitablePath(EstimationError):
    """Paths exist but none of them simulates to a positive output."""


class SimulationGuardError(SwapCoreError):
    """A single hop was rejected (zero reserve, dust amount, non-compliant pool)."""


class TransportError(SwapCoreError):
    """Connection, REST or timeout failure at the transport boundary."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)

from .worker import EstimateRequest, EstimationWorker, run_estimate_request

__all__ = [
    "EstimateRequest",
    "EstimationWorker",
    "run_estimate_request",
]

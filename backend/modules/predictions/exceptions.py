"""
Predictions module exceptions.
"""

from shared.exceptions import NotFoundError, ValidationError


class PredictionNotFoundError(NotFoundError):
    """Raised when a write targets a prediction that does not exist."""

    def __init__(self, prediction_id: str):
        super().__init__(
            f"Prediction not found: {prediction_id}",
            code="PREDICTION_NOT_FOUND",
            details={"prediction_id": prediction_id},
        )


class InvalidSettlementError(ValidationError):
    """Raised when a settlement does not move a pick to a final outcome."""

    def __init__(self, prediction_id: str, status: str):
        super().__init__(
            f"Cannot settle prediction {prediction_id} as '{status}'",
            code="INVALID_SETTLEMENT",
            details={"prediction_id": prediction_id, "status": status},
        )

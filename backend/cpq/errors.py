"""Domain exceptions raised by the pricing engine and the bulk-operation guard."""


class PricingError(Exception):
    """Base class for pricing engine failures."""


class MissingParametersError(PricingError):
    """Raised when a quotation is calculated without its QuotationParameters."""

    def __init__(self, message: str = "Quotation parameters are required for calculations"):
        super().__init__(message)


class BulkOperationError(Exception):
    """Base class for bulk-operation guard failures."""


class BulkOperationConflictError(BulkOperationError):
    """An unexpired marker with the same operation id already exists."""

    def __init__(self, operation_id: str, team_id: str | None = None):
        self.operation_id = operation_id
        self.team_id = team_id
        super().__init__(f"Bulk operation {operation_id} is already active")

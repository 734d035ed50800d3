from medstock.core.constants import MSG_ALREADY_PROCESSED


class StockError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StockValidationError(StockError):
    status_code = 400


class NotFoundError(StockError):
    status_code = 404


class ConflictError(StockError):
    status_code = 400

    def __init__(self, message: str = MSG_ALREADY_PROCESSED):
        super().__init__(message)


__all__ = ["ConflictError", "NotFoundError", "StockError", "StockValidationError"]

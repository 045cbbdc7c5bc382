class PaymentServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PaymentServiceError):
    status_code = 400


class ConflictError(PaymentServiceError):
    status_code = 500


class ProviderError(PaymentServiceError):
    # Raised before any ledger write, so the caller may retry
    status_code = 502


class AuthenticityError(PaymentServiceError):
    status_code = 400


class NotFoundError(PaymentServiceError):
    status_code = 404

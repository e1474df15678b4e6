"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Wallet
  3xxx: Checkout
  4xxx: Settlement
  5xxx: Subscription
  9xxx: System
"""

# Shown to end users for every verification-side rejection. The specific
# reason (amount, identity, provider status) is logged, never returned.
PAYMENT_VERIFICATION_FAILED_MESSAGE = (
    "Payment verification failed. Contact support if you were charged."
)


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class UsernameExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409)


class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid username or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class AdminRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1006, "Administrator access required", 403)


# --- 2xxx: Wallet ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(
            2001,
            f"Insufficient Knowledge Units: required {required} KU, available {available} KU",
            402,
        )


class InvalidCreditAmountError(AppError):
    def __init__(self, amount: int) -> None:
        super().__init__(2003, f"Credit and debit amounts must be positive, got {amount}", 400)


# --- 3xxx: Checkout ---

class DuplicateReferenceError(AppError):
    def __init__(self, reference: str) -> None:
        super().__init__(3001, f"Checkout reference already exists: {reference}", 409)


class CheckoutNotFoundError(AppError):
    def __init__(self, reference: str) -> None:
        super().__init__(3002, f"No checkout found for reference {reference}", 404)


class AlreadyTerminalError(AppError):
    def __init__(self, reference: str, status: str) -> None:
        self.status = status
        super().__init__(3003, f"Checkout {reference} is already {status}", 409)


class InvalidPackageError(AppError):
    def __init__(self, detail: str = "Invalid package or amount") -> None:
        super().__init__(3004, detail, 400)


class GroupIdRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(3005, "Group ID required for group purchase", 400)


class CheckoutNotPendingError(AppError):
    def __init__(self, reference: str, status: str) -> None:
        self.status = status
        super().__init__(3006, f"Checkout {reference} is {status}, not pending", 409)


class CheckoutRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(
            3007, "Custom-amount purchases must be settled against a registered checkout", 400
        )


class CheckoutMismatchError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3008, f"Request does not match the registered checkout: {detail}", 400)


# --- 4xxx: Settlement ---

class AmountMismatchError(AppError):
    def __init__(self, expected: int, confirmed: int) -> None:
        self.expected = expected
        self.confirmed = confirmed
        super().__init__(4001, PAYMENT_VERIFICATION_FAILED_MESSAGE, 400)


class IdentityMismatchError(AppError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(4002, PAYMENT_VERIFICATION_FAILED_MESSAGE, 401)


class VerificationFailedError(AppError):
    def __init__(self, provider_status: str) -> None:
        self.provider_status = provider_status
        super().__init__(4003, PAYMENT_VERIFICATION_FAILED_MESSAGE, 500)


class VerificationPendingError(AppError):
    def __init__(self, reference: str) -> None:
        super().__init__(
            4004,
            f"Payment {reference} is still being processed by the provider. "
            "Please retry shortly.",
            503,
        )


class PaymentAlreadyProcessedError(AppError):
    def __init__(self, reference: str) -> None:
        super().__init__(4005, f"Payment already processed: {reference}", 409)


class InvalidSignatureError(AppError):
    def __init__(self) -> None:
        super().__init__(4006, "Unauthorized", 401)


class PaymentProviderError(AppError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(4007, "Payment provider is unavailable. Please retry shortly.", 500)


# --- 5xxx: Subscription ---

class InvalidPlanError(AppError):
    def __init__(self, plan: str) -> None:
        super().__init__(5001, f"Unknown subscription plan: {plan}", 400)


class SubscriptionNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(5002, f"No subscription for user {user_id}", 404)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)

"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Account
  3xxx: Catalog / game configuration
  4xxx: Play
  9xxx: System
"""


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


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


class AdminRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Admin privileges required", 403)


class DepositNotAllowedError(AppError):
    def __init__(self) -> None:
        super().__init__(1006, "Deposits are credited by the payment service only", 403)


# --- 2xxx: Account ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} cents, available {available} cents",
            422,
        )
        self.required = required
        self.available = available


# --- 3xxx: Catalog ---

class CategoryNotFoundError(AppError):
    def __init__(self, category_id: int) -> None:
        super().__init__(3001, f"Category not found: {category_id}", 404)


# --- 4xxx: Play ---

class PlayNotFoundError(AppError):
    def __init__(self, play_id: str) -> None:
        super().__init__(4001, f"Play not found: {play_id}", 404)


class DuplicatePlayError(AppError):
    def __init__(self, play_id: str) -> None:
        super().__init__(4002, f"Duplicate play_id: {play_id}", 409)


class StakeMismatchError(AppError):
    def __init__(self, expected: int, given: int) -> None:
        super().__init__(
            4003,
            f"Stake mismatch: category costs {expected} cents, got {given} cents",
            422,
        )


class InvalidRevealError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4004, f"Invalid reveal: {detail}", 422)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)

"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Round lifecycle
  2xxx: Stake validation
  3xxx: Auth
  9xxx: System / external dependencies
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


# --- 1xxx: Round ---

class RoundNotFoundError(AppError):
    def __init__(self, round_id: str, http_status: int = 404) -> None:
        super().__init__(1001, f"Round not found: {round_id}", http_status)


class NoLiveRoundError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "No live round to end", 400)


class LiveRoundExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "A live round is already in progress", 400)


class NoOpenRoundError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "No active round accepting bets", 400)


class RoundAlreadySettledError(AppError):
    def __init__(self, round_id: str) -> None:
        super().__init__(1005, f"Round already settled: {round_id}", 400)


# --- 2xxx: Stake validation ---

class InvalidWalletError(AppError):
    def __init__(self) -> None:
        super().__init__(2001, "Invalid wallet address", 400)


class StakingClosedError(AppError):
    def __init__(self) -> None:
        super().__init__(2002, "Betting is closed for this round", 400)


class InvalidTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(2003, "Invalid token for this round", 400)


class StakeAmountError(AppError):
    def __init__(self, min_stake: float, max_stake: float) -> None:
        super().__init__(
            2004, f"Bet amount must be between {min_stake} and {max_stake} SOL", 400
        )


class InvalidTxReferenceError(AppError):
    def __init__(self) -> None:
        super().__init__(2005, "Invalid transaction signature", 400)


class StakeNotRecordedError(AppError):
    def __init__(self) -> None:
        super().__init__(2006, "Failed to record bet - betting may have closed", 500)


# --- 3xxx: Auth ---

class UnauthorizedError(AppError):
    def __init__(self) -> None:
        super().__init__(3001, "Unauthorized", 401)


# --- 9xxx: System ---

class StorageUnavailableError(AppError):
    def __init__(self, detail: str = "Storage backend unavailable") -> None:
        super().__init__(9001, detail, 503)


class PriceFeedUnavailableError(AppError):
    def __init__(self, detail: str = "Price feed unavailable") -> None:
        super().__init__(9002, detail, 503)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9003, detail, 500)

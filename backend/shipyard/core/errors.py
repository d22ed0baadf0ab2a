"""Error Hierarchy — typed, categorized exceptions for all Shipyard failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope {"success": false, "error": "<message>", ...}
    - No private key material or raw RPC payloads in user-facing messages

Design Decisions:
    - Single hierarchy with ShipyardError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - "error" stays a plain string so dashboard clients can render it directly
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    AUTHORIZATION = "authorization"
    DATABASE = "database"
    BLOCKCHAIN = "blockchain"
    EXTERNAL_API = "external_api"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    token_mint: str | None = None
    pool_address: str | None = None
    signature: str | None = None
    debug_info: dict[str, Any] | None = None


class ShipyardError(Exception):
    """Base exception for all Shipyard errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status
        self.extra: dict[str, Any] = {}

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        body = {
            "success": False,
            "error": self.message,
            "code": self.code,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.context.timestamp.isoformat(),
            "context": {
                "token_mint": self.context.token_mint,
                "pool_address": self.context.pool_address,
                "signature": self.context.signature,
            },
        }
        body.update(self.extra)
        return body


# ─── Domain Errors (400-level) ──────────────────────────────────

class InvalidRequestError(ShipyardError):
    """Request passed schema validation but violates a launch/flywheel rule."""
    def __init__(self, message: str, field: str | None = None, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_REQUEST", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class InvalidAddressError(ShipyardError):
    """A base58 public key could not be parsed."""
    def __init__(self, label: str, value: str, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid {label} address",
            "INVALID_ADDRESS", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.value = value


class UnauthorizedError(ShipyardError):
    """Missing or wrong bearer secret on a protected endpoint."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Unauthorized", "UNAUTHORIZED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 401,
        )


class ResourceNotFoundError(ShipyardError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_id = resource_id


class DuplicateLaunchError(ShipyardError):
    """A launch with this token mint is already registered."""
    def __init__(self, token_mint: str):
        super().__init__(
            "Token already registered", "DUPLICATE_LAUNCH",
            ErrorCategory.BUSINESS_RULE, ErrorSeverity.ERROR,
            ErrorContext(token_mint=token_mint), 400,
        )


class BuybackNotEligibleError(ShipyardError):
    """Launch is not in a state that allows buyback-burn."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            reason, "BUYBACK_NOT_ELIGIBLE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )


class InsufficientBalanceError(ShipyardError):
    """Shipyard wallet (or token account) holds less than the operation needs."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INSUFFICIENT_BALANCE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )


class FeePaymentError(ShipyardError):
    """Launch fee payment transaction missing, failed, or short."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "FEE_PAYMENT_INVALID", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )


class ConcurrencyError(ShipyardError):
    """Concurrent flywheel run detected."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(ShipyardError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class KeypairNotConfiguredError(ShipyardError):
    """SHIPYARD_PRIVATE_KEY missing or undecodable."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "SHIPYARD_PRIVATE_KEY not configured",
            "KEYPAIR_NOT_CONFIGURED", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )


class RpcError(ShipyardError):
    """Solana RPC call failed or a transaction did not confirm."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"RPC {operation} failed: {message}",
            "RPC_ERROR", ErrorCategory.BLOCKCHAIN,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class BondingCurveError(ShipyardError):
    """Bonding-curve pool/config account missing or malformed."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "BONDING_CURVE_ERROR", ErrorCategory.BLOCKCHAIN,
            ErrorSeverity.ERROR, context, 400,
        )


class SwapAggregatorError(ShipyardError):
    """Jupiter quote/swap API failed after retries."""
    def __init__(self, message: str, stage: str, context: ErrorContext | None = None):
        super().__init__(
            f"Jupiter {stage} failed: {message}",
            "SWAP_AGGREGATOR_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 502,
        )
        self.stage = stage


class MarketDataError(ShipyardError):
    """Upstream market-data API failed."""
    def __init__(self, source: str, message: str, context: ErrorContext | None = None):
        super().__init__(
            "Failed to fetch data", "MARKET_DATA_ERROR",
            ErrorCategory.EXTERNAL_API, ErrorSeverity.ERROR, context, 502,
        )
        self.source = source
        self.detail = message


class BurnAfterSwapError(ShipyardError):
    """Swap confirmed but the follow-up burn failed; tokens sit in the Shipyard wallet."""
    def __init__(self, buyback_signature: str, tokens_received: int, context: ErrorContext | None = None):
        super().__init__(
            "Burn failed (but buyback succeeded)", "BURN_FAILED_AFTER_SWAP",
            ErrorCategory.BLOCKCHAIN, ErrorSeverity.CRITICAL, context, 500,
        )
        self.extra = {
            "buyback_signature": buyback_signature,
            "tokens_received": str(tokens_received),
        }


class VanityNotFoundError(ShipyardError):
    """Vanity search exhausted its attempt budget."""
    def __init__(self, suffix: str, attempts: int, context: ErrorContext | None = None):
        super().__init__(
            f"No address ending in {suffix} found after {attempts} attempts",
            "VANITY_NOT_FOUND", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 422,
        )
        self.attempts = attempts

"""
Domain exceptions and safe error construction.

Services raise these; the handlers in ``pharmatrust.api.response`` turn them
into the ``{success, message, error}`` envelope. Internal details are logged,
never sent to the client outside development.
"""
import logging
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class PharmacyError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 400

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.errors = errors or []
        self.headers = headers


class ValidationFailed(PharmacyError):
    status_code = 400


class BusinessRuleViolation(PharmacyError):
    """Insufficient stock, insufficient points, underpayment and the like."""

    status_code = 400


class NotFound(PharmacyError):
    status_code = 404


class Unauthorized(PharmacyError):
    status_code = 401


class Forbidden(PharmacyError):
    status_code = 403


class Conflict(PharmacyError):
    status_code = 409


class BusinessError:
    """Factories with consistent messages and logging."""

    @staticmethod
    def not_found(resource: str = "Resource", reason: str = "") -> NotFound:
        """
        404 for a referenced id that does not exist.

        Example:
            if not medicine:
                raise BusinessError.not_found("Medicine")
        """
        if reason:
            logger.info(f"Not found: {resource} - {reason}")
        return NotFound(f"{resource} not found")

    @staticmethod
    def unauthorized(reason: str = "", message: str = "Not authenticated") -> Unauthorized:
        """
        401 for missing, invalid or expired credentials.

        The client treats any 401 as a signal to drop its stored session.
        """
        logger.warning(f"Unauthorized access attempt: {reason}")
        return Unauthorized(message, headers={"WWW-Authenticate": "Bearer"})

    @staticmethod
    def forbidden(reason: str = "") -> Forbidden:
        """403 for role mismatches."""
        logger.warning(f"Forbidden access: {reason}")
        return Forbidden("You do not have permission to perform this action")

    @staticmethod
    def bad_request(detail: str, errors: Optional[List[str]] = None) -> ValidationFailed:
        """
        400 for input validation errors.

        OK to include specific details here since the caller caused the issue.
        """
        logger.info(f"Bad request: {detail}")
        return ValidationFailed(detail, errors=errors)

    @staticmethod
    def rule_violation(detail: str, errors: Optional[List[str]] = None) -> BusinessRuleViolation:
        """400 for business rules: stock, points, payment."""
        logger.info(f"Business rule violated: {detail}")
        return BusinessRuleViolation(detail, errors=errors)

    @staticmethod
    def conflict(detail: str) -> Conflict:
        """
        409 for unique-field collisions.
        Example: "Email already registered"
        """
        logger.info(f"Conflict: {detail}")
        return Conflict(detail)

# core/errors.py

# ============================================================
# Error taxonomy
# ============================================================
class AppError(Exception):
    """
    Base class for every error the API translates into a response.
    `message` is safe to show to the client.
    """

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Missing or malformed input."""

    status_code = 400


class AuthenticationError(AppError):
    """No identity on the request."""

    status_code = 401


class AuthorizationError(AppError):
    """Identity present but role/domain insufficient."""

    status_code = 403


class NotFoundError(AppError):
    """Referenced document absent."""

    status_code = 404


class ConflictError(AppError):
    """Duplicate membership or duplicate record."""

    status_code = 409


class RoleResolutionError(AuthorizationError):
    """
    The email passed the authorization check but matched no domain and no
    special role. Needs an administrator to fix the domain configuration.
    """

    def __init__(self, email: str):
        super().__init__(
            "Your account could not be assigned a role. "
            "An administrator has been notified."
        )
        self.email = email


class ServiceUnavailableError(AppError):
    """Site is in maintenance mode or emergency shutdown."""

    status_code = 503


# ============================================================
# Store error helpers
# ============================================================
def extract_store_error(error: Exception) -> str:
    """
    Safely extract readable details from store client errors.
    Handles:
      • PostgREST errors (Supabase)
      • Auth errors
      • Generic Python exceptions
    """

    if hasattr(error, "message"):
        try:
            return str(error.message)
        except Exception:
            pass

    if hasattr(error, "args") and error.args:
        try:
            return str(error.args[0])
        except Exception:
            pass

    try:
        return str(error)
    except Exception:
        return "Unknown store error"


def handle_store_error(error: Exception, operation: str = "Database operation") -> AppError:
    """
    Map a store exception to the nearest taxonomy entry.
    Returns the error (doesn't raise) so the caller can re-raise.
    """
    from core.logging_config import logger

    error_detail = extract_store_error(error)
    logger.error(f"{operation}: {error_detail}")

    error_lower = error_detail.lower()
    if "duplicate" in error_lower or "unique" in error_lower:
        return ConflictError(f"{operation}: Record already exists")
    elif "foreign key" in error_lower:
        return ValidationError(f"{operation}: Invalid reference")
    elif "not found" in error_lower or "does not exist" in error_lower:
        return NotFoundError(f"{operation}: Resource not found")
    else:
        return AppError(f"{operation} failed")


"""
Gateway error taxonomy.

Every error raised by the gateway is a GatewayError. The message is what the
MCP client sees; ``code`` is a stable identifier used in logs so that policy
denials can be told apart from ordinary failures.
"""


class GatewayError(Exception):
    """Base class for all domain errors surfaced as tool error results."""

    code = "gateway_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class MissingConnectionInfo(GatewayError):
    """Neither a connection string nor usable host/user settings were given."""

    code = "missing_connection_info"


class ConnectionFailed(GatewayError):
    """The database connection could not be established."""

    code = "connection_failed"


class PlanAmbiguous(GatewayError):
    """EXPLAIN returned zero or several plan rows."""

    code = "plan_ambiguous"


class PlanMismatch(GatewayError):
    """The plan classification does not match the declared intent."""

    code = "plan_mismatch"


class ExecutionFailed(GatewayError):
    """The driver rejected the statement (syntax, constraint, permission...)."""

    code = "execution_failed"


class ExecSummaryUnavailable(GatewayError):
    """The driver could not report the affected rows or generated id."""

    code = "exec_summary_unavailable"


class NotFound(GatewayError):
    """The described table does not exist."""

    code = "not_found"

    def __init__(self, table: str):
        self.table = table
        super().__init__(f"table {table} does not exist")


class EncodingError(GatewayError):
    """A row does not match the header list of its result set."""

    code = "encoding_error"


class MissingRequiredArgument(GatewayError):
    """A required tool argument is absent or not a string."""

    code = "missing_required_argument"

    def __init__(self, argument: str):
        self.argument = argument
        super().__init__(f'required argument "{argument}" not found')


# Denials produced by the intent guard rather than by the database itself.
POLICY_DENIALS = (PlanAmbiguous, PlanMismatch)


def driver_message(exc: BaseException) -> str:
    """Return the DBAPI error text wrapped by a SQLAlchemy exception, if any."""
    orig = getattr(exc, "orig", None)
    return str(orig if orig is not None else exc)

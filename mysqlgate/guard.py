"""
Statement intent guard.

Asks MySQL for the execution plan of a statement and checks that the plan's
``select_type`` agrees with the statement type the tool declared. The
planner is the ground truth; the SQL text itself is never parsed here.
"""

from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from mysqlgate.errors import ExecutionFailed, PlanAmbiguous, PlanMismatch, driver_message
from mysqlgate.models import MUTATION_INTENTS, PlanRow, StatementIntent
from mysqlgate.utils.logger import get_logger

logger = get_logger(__name__)

MUTATION_LABELS = frozenset(intent.value for intent in MUTATION_INTENTS)


def plan_matches(intent: StatementIntent, classification: str | None) -> bool:
    """
    Check a plan classification against a declared intent.

    INSERT/UPDATE/DELETE need an exact label match. SELECT plans carry many
    labels (SIMPLE, PRIMARY, SUBQUERY, DERIVED, UNION...), so a SELECT only
    has to avoid the mutation labels.
    """
    label = classification.upper() if classification else None
    if intent.is_mutation:
        return label == intent.value
    return label not in MUTATION_LABELS


class StatementGuard:
    """Verifies declared intents with EXPLAIN when enabled."""

    def __init__(self, enabled: bool = False):
        self.enabled = enabled

    def applies(self, intent: StatementIntent) -> bool:
        return self.enabled and intent is not StatementIntent.UNCHECKED

    def verify(self, intent: StatementIntent, sql: str, conn: Connection) -> None:
        """
        Deny the statement unless its plan matches ``intent``.

        Raises:
            PlanAmbiguous: EXPLAIN did not return exactly one row.
            PlanMismatch: The plan classification contradicts the intent.
            ExecutionFailed: EXPLAIN itself was rejected by the server.
        """
        plan = self.explain(conn, sql)

        if len(plan) != 1:
            logger.bind(code=PlanAmbiguous.code).warning(
                f"{len(plan)} plan rows for declared {intent.value}"
            )
            raise PlanAmbiguous("unable to check query plan, denied")

        classification = plan[0].classification
        if not plan_matches(intent, classification):
            logger.bind(code=PlanMismatch.code).warning(
                f"Declared {intent.value}, plan says {classification}"
            )
            raise PlanMismatch("query plan does not match expected pattern, denied")

        logger.debug(f"Plan check passed: {intent.value} ~ {classification}")

    @staticmethod
    def explain(conn: Connection, sql: str) -> list[PlanRow]:
        try:
            result = conn.execution_options(no_parameters=True).exec_driver_sql(f"EXPLAIN {sql}")
            rows = result.mappings().all()
        except SQLAlchemyError as e:
            raise ExecutionFailed(driver_message(e)) from e
        return [PlanRow.model_validate(dict(row)) for row in rows]

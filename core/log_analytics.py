# =============================================================================
# core/log_analytics.py  —  KQL Queries against Azure Log Analytics
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Runs one KQL query over a lookback window ending NOW and flattens the
#   FIRST result table into text the agent can read.
#
# THE SEPARATION OF "FETCH" AND "FORMAT":
#   - LogAnalyticsQuerier.query() talks to Azure
#   - format_table() is a pure function on a TabularResult
#   The formatting rules are the part consumers depend on, so they are
#   testable without any SDK in sight.
#
# OUTPUT FORMATS:
#   CSV (default):  "," between cells; every "," INSIDE a cell becomes ";".
#                   No quoting.  Lossy on purpose: downstream consumers
#                   split on "," and expect this exact output.
#   Pipe:           " | " between cells, values untouched.
#   Both:           header line first, every line ends with "\n",
#                   missing cells print as "".
#   No tables:      the literal "No results".
# =============================================================================

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import isodate
from azure.monitor.query import LogsQueryStatus
from azure.monitor.query.aio import LogsQueryClient

from core.errors import InvalidArgument, azure_errors
from core.models import LogQuerySpec, TabularResult

logger = logging.getLogger(__name__)

NO_RESULTS = "No results"


def parse_lookback(timespan: str, now: Optional[datetime] = None) -> timedelta:
    """Parse an ISO-8601 duration ("P1D", "PT6H", "P1M") into a timedelta.

    Calendar durations (months, years) are resolved backwards from `now`.
    """
    if not timespan or not timespan.strip():
        raise InvalidArgument("timespan must be an ISO-8601 duration such as 'P1D'")
    try:
        duration = isodate.parse_duration(timespan.strip())
    except (isodate.ISO8601Error, ValueError) as exc:
        raise InvalidArgument(f"cannot parse timespan {timespan!r}: {exc}") from exc

    if isinstance(duration, isodate.Duration):
        end = now or datetime.now(timezone.utc)
        lookback = end - (end - duration)
    else:
        lookback = duration

    if lookback <= timedelta(0):
        raise InvalidArgument(f"timespan {timespan!r} must be a positive duration")
    return lookback


def format_table(table: TabularResult, as_csv: bool = True) -> str:
    if as_csv:
        lines = [",".join(table.columns)]
        lines += [",".join(cell.replace(",", ";") for cell in row) for row in table.rows]
    else:
        lines = [" | ".join(table.columns)]
        lines += [" | ".join(row) for row in table.rows]
    return "".join(line + "\n" for line in lines)


class LogAnalyticsQuerier:
    def __init__(self, client: LogsQueryClient) -> None:
        self._client = client

    async def query(
        self,
        workspace_id: str,
        kql: str,
        timespan: str = "P1D",
        as_csv: bool = True,
    ) -> str:
        return await self.run(LogQuerySpec(workspace_id, kql, timespan, as_csv))

    async def run(self, spec: LogQuerySpec) -> str:
        if not spec.workspace_id or not spec.workspace_id.strip():
            raise InvalidArgument("workspace_id must not be empty")
        if not spec.query or not spec.query.strip():
            raise InvalidArgument("kql must not be empty")
        lookback = parse_lookback(spec.timespan)

        logger.info("KQL: %s", spec.query)
        with azure_errors(f"log query in workspace {spec.workspace_id}"):
            response = await self._client.query_workspace(
                spec.workspace_id, spec.query, timespan=lookback
            )

        if response.status == LogsQueryStatus.PARTIAL:
            logger.warning("partial log query result: %s", response.partial_error)
            tables = response.partial_data
        else:
            tables = response.tables

        if not tables:
            return NO_RESULTS

        first = tables[0]
        result = TabularResult.from_rows(first.columns, first.rows)
        logger.debug("first table: %d columns, %d rows", len(result.columns), len(result.rows))
        return format_table(result, spec.as_csv)

"""
Code Repository

This service owns every read and write against the code pool, the usage
history, the upload batches and the counters singleton.

The service is responsible for:
- Listing and randomly picking unused codes per speed tier
- Bulk inserting an uploaded batch together with its batch record
- Archiving accepted codes into the history log
- Best-effort removal of rejected codes
- Point increments of the usage counters
- The irreversible full reset

Multi-step writes (batch insert, archive, reset) run inside one database
transaction. Store failures surface as ``RepositoryError``; "nothing matched"
is reported through return values.
"""

import logging
import random
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from lunarlink.db import mappers
from lunarlink.db.table_client import RepositoryError, TableClient
from lunarlink.models.batch import Batch as BatchRow
from lunarlink.models.code import Code as CodeRow
from lunarlink.models.history import History as HistoryRow
from lunarlink.models.stats import COUNTER_COLUMNS, STATS_ROW_ID, Stats as StatsRow
from lunarlink.schemas.code import Batch, Code, CodeStatus, Counters, HistoryEntry, SpeedTier

logger = logging.getLogger(__name__)

STATS_FILTER = {"id": STATS_ROW_ID}


class CodeRepository:
    """
    Repository over the ``codes``, ``history``, ``batches`` and ``stats`` tables.

    Selection is not guarded by any lock: two sessions may be shown the same
    code, and the later archive or delete simply finds nothing to act on.
    """

    def __init__(self, db: Session, rng: Optional[random.Random] = None):
        """
        Initialize the repository.

        Args:
            db (Session): Database session for data access
            rng (random.Random, optional): Source of randomness for code selection
        """
        self.client = TableClient(db)
        self.rng = rng or random.Random()

    # ============================================================================
    # POOL QUERIES
    # ============================================================================

    def list_unused(self, tier: SpeedTier) -> List[Code]:
        """
        Get all unused codes of a speed tier, in no particular order.
        """
        with self.client.transaction("list_unused") as client:
            rows = client.select(CodeRow, {"speed": tier.value, "status": CodeStatus.UNUSED.value})
        return [mappers.code_from_row(row) for row in rows]

    def random_unused(self, tier: SpeedTier) -> Optional[Code]:
        """
        Pick one unused code of a tier uniformly at random.

        Returns:
            Optional[Code]: A code from the pool, or None when the pool is empty
        """
        codes = self.list_unused(tier)
        if not codes:
            logger.info(f"No unused codes left for tier {tier.value}")
            return None
        return self.rng.choice(codes)

    def count_unused(self, tier: SpeedTier) -> int:
        with self.client.transaction("count_unused") as client:
            return client.count(CodeRow, {"speed": tier.value, "status": CodeStatus.UNUSED.value})

    # ============================================================================
    # WRITES
    # ============================================================================

    def insert_batch(self, codes: List[str], batch_name: str, tier: SpeedTier) -> int:
        """
        Insert an uploaded batch of codes and its batch record.

        The code rows, the batch row and the upload counters are written in a
        single transaction.

        Args:
            codes (List[str]): Code values to add to the pool
            batch_name (str): Name of the upload batch
            tier (SpeedTier): Speed tier every code in the batch belongs to

        Returns:
            int: Number of code rows inserted (0 and nothing written when no code is left after trimming)

        Raises:
            RepositoryError: If any part of the write fails (nothing is kept)
        """
        values = [code.strip() for code in codes if code and code.strip()]
        if not values:
            logger.warning(f"Batch '{batch_name}' has no codes, nothing stored")
            return 0

        rows = [
            mappers.to_wire(
                {"value": value, "speed_tier": tier.value, "batch_name": batch_name, "status": CodeStatus.UNUSED.value},
                mappers.CODE_FIELDS,
            )
            for value in values
        ]
        batch_row = mappers.to_wire(
            {"name": batch_name, "speed_tier": tier.value, "code_count": len(values)},
            mappers.BATCH_FIELDS,
        )

        with self.client.transaction("insert_batch") as client:
            inserted = client.insert(CodeRow, rows)
            client.insert(BatchRow, [batch_row])
            self._ensure_counters(client)
            self._increment(client, "total_codes_uploaded", inserted)
            self._increment(client, "batches_uploaded", 1)

        logger.info(f"Inserted batch '{batch_name}' with {inserted} codes for tier {tier.value}")
        return inserted

    def archive_code(self, value: str, tier: SpeedTier) -> bool:
        """
        Move one unused code into the history log.

        Finds a matching unused code, records a history entry, deletes the code
        from the pool and bumps the ``codes_used`` and accept counters, all in
        one transaction.

        Args:
            value (str): The code value shown to the user
            tier (SpeedTier): Tier the code was drawn from

        Returns:
            bool: True if archived, False if no matching unused code exists
        """
        with self.client.transaction("archive_code") as client:
            matches = client.select(
                CodeRow,
                {"code": value, "speed": tier.value, "status": CodeStatus.UNUSED.value},
                order_by=[("id", False)],
                limit=1,
            )
            if not matches:
                logger.debug(f"Code {value} ({tier.value}) already gone, nothing to archive")
                return False

            code = mappers.code_from_row(matches[0])
            client.insert(HistoryRow, [mappers.to_wire(
                {"code_value": code.value, "speed_tier": code.speed_tier.value, "batch_name": code.batch_name},
                mappers.HISTORY_FIELDS,
            )])
            client.delete(CodeRow, {"id": code.id})
            self._ensure_counters(client)
            self._increment(client, "codes_used", 1)
            self._increment(client, "yes_clicks", 1)

        logger.info(f"Archived code id={code.id} for tier {tier.value}")
        return True

    def delete_code(self, value: str, tier: SpeedTier) -> None:
        """
        Remove a rejected code from the pool.

        Best-effort: a failed delete of a code the user already rejected is not
        critical, so failures are logged and not raised.
        """
        try:
            with self.client.transaction("delete_code") as client:
                removed = client.delete(CodeRow, {"code": value, "speed": tier.value})
            if not removed:
                logger.debug(f"Code {value} ({tier.value}) already gone, nothing to delete")
        except RepositoryError:
            logger.warning(f"Could not delete rejected code {value} ({tier.value})")

    def increment_counter(self, name: str, delta: int = 1) -> None:
        """
        Add ``delta`` to one counter field.

        Args:
            name (str): Internal counter name (e.g. "reject_count") or its stored column name
            delta (int): Amount to add

        Raises:
            KeyError: If the counter name is unknown
            RepositoryError: If the update fails
        """
        column = name if name in COUNTER_COLUMNS else mappers.wire_name(name, mappers.COUNTER_FIELDS)
        if column not in COUNTER_COLUMNS:
            raise KeyError(name)
        with self.client.transaction("increment_counter") as client:
            self._ensure_counters(client)
            self._increment(client, column, delta)

    def clear_all(self) -> bool:
        """
        Delete every code, history entry and batch and zero the counters.

        Irreversible. The HTTP layer requires two explicit confirmations before
        calling this.
        """
        zeroed = {column: 0 for column in COUNTER_COLUMNS}
        zeroed["last_updated"] = datetime.utcnow()
        with self.client.transaction("clear_all") as client:
            codes = client.delete(CodeRow)
            history = client.delete(HistoryRow)
            batches = client.delete(BatchRow)
            self._ensure_counters(client)
            client.update(StatsRow, zeroed, STATS_FILTER)

        logger.warning(f"Cleared all data: {codes} codes, {history} history entries, {batches} batches")
        return True

    # ============================================================================
    # READS
    # ============================================================================

    def get_counters(self) -> Counters:
        with self.client.transaction("get_counters") as client:
            rows = client.select(StatsRow, STATS_FILTER)
        if not rows:
            return Counters()
        return mappers.counters_from_row(rows[0])

    def list_history(self) -> List[HistoryEntry]:
        """Usage history, newest first."""
        with self.client.transaction("list_history") as client:
            rows = client.select(HistoryRow, order_by=[("used_on", True), ("id", True)])
        return [mappers.history_from_row(row) for row in rows]

    def list_batches(self, limit: Optional[int] = None) -> List[Batch]:
        """Upload batches, newest first."""
        with self.client.transaction("list_batches") as client:
            rows = client.select(BatchRow, order_by=[("uploaded_on", True), ("id", True)], limit=limit)
        return [mappers.batch_from_row(row) for row in rows]

    def batch_name_exists(self, name: str) -> bool:
        wanted = name.strip().lower()
        return any(batch.name.lower() == wanted for batch in self.list_batches())

    def ensure_counters(self) -> None:
        with self.client.transaction("ensure_counters") as client:
            self._ensure_counters(client)

    # ============================================================================
    # HELPERS
    # ============================================================================

    def _ensure_counters(self, client: TableClient) -> None:
        if not client.count(StatsRow, STATS_FILTER):
            client.insert(StatsRow, [dict({column: 0 for column in COUNTER_COLUMNS}, id=STATS_ROW_ID)])

    def _increment(self, client: TableClient, column: str, delta: int) -> None:
        client.increment(StatsRow, column, delta, STATS_FILTER, extra={"last_updated": datetime.utcnow()})

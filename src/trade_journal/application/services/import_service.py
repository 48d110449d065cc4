"""
Import orchestration: raw rows in, consolidated trades out.

Per run:
- normalize every row (bad rows become rejections, never failures)
- stable-sort fills by timestamp, ties kept in row order
- group by InstrumentKey in first-appearance order
- reconcile each group and flatten
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Union

from trade_journal.application.services.instrument_parser import InstrumentParser
from trade_journal.application.services.lot_sizes import LotSizeResolver
from trade_journal.application.services.reconciliation import reconcile
from trade_journal.application.services.row_normalizer import RowNormalizer
from trade_journal.config.config import Config
from trade_journal.domain.errors import AppError, BatchFailure, ErrorCode
from trade_journal.domain.types import (
    ConsolidatedTrade,
    ImportResult,
    InstrumentKey,
    NormalizedFill,
    ParseWarning,
    RowRejection,
)
from trade_journal.infrastructure import csv_source
from trade_journal.utils.tracing import new_correlation_id

logger = logging.getLogger(__name__)


def group_by_key(fills: Iterable[NormalizedFill]) -> Dict[InstrumentKey, List[NormalizedFill]]:
    """Group fills by instrument; dict order is first appearance."""
    groups: Dict[InstrumentKey, List[NormalizedFill]] = {}
    for fill in fills:
        groups.setdefault(fill.key, []).append(fill)
    return groups


class TradeImporter:
    """Runs one import: normalization, grouping and reconciliation."""

    def __init__(self, config: Optional[Config] = None, normalizer: Optional[RowNormalizer] = None):
        """
        Initialize importer.

        Args:
            config: Limits and instrument tables (defaults when omitted)
            normalizer: Row normalizer override, mainly for tests
        """
        self.config = config or Config()
        instruments = self.config.instruments
        self.normalizer = normalizer or RowNormalizer(
            parser=InstrumentParser(default_strikes=instruments.default_strikes),
            lot_resolver=LotSizeResolver(
                lot_sizes=instruments.lot_sizes,
                lot_quantity_threshold=instruments.lot_quantity_threshold,
            ),
        )

    def import_rows(self, rows: List[Mapping[str, str]]) -> ImportResult:
        """
        Import already-split rows.

        Raises:
            BatchFailure: NODATA when rows is empty, TOO_LARGE when it has
                more rows than the configured maximum.
        """
        cid = new_correlation_id()
        logger.info(f"Import run {cid[:8]} started: {len(rows)} row(s)")

        if not rows:
            logger.error("Import rejected: no data rows")
            raise BatchFailure(AppError(ErrorCode.NODATA, "No data rows to import"))

        max_rows = self.config.limits.max_rows
        if len(rows) > max_rows:
            message = f"{len(rows)} rows exceeds the limit of {max_rows}"
            logger.error(f"Import rejected: {message}")
            raise BatchFailure(
                AppError(ErrorCode.TOO_LARGE, message, {"rows": len(rows), "limit": max_rows})
            )

        fills: List[NormalizedFill] = []
        rejections: List[RowRejection] = []
        warnings: List[ParseWarning] = []

        for row_number, row in enumerate(rows, start=1):
            result = self.normalizer.normalize(row, row_number)
            if result.is_err:
                error = result.unwrap_err()
                rejection = RowRejection(row_number, error.code.value, error.message)
                logger.info(f"Rejected {rejection}")
                rejections.append(rejection)
                continue

            fill = result.unwrap()
            fills.append(fill)
            parsed = fill.parsed_instrument
            if parsed is not None and parsed.is_ambiguous:
                warning = ParseWarning(
                    row_number=row_number,
                    instrument=parsed.raw,
                    grammar=parsed.grammar,
                    message=(
                        f"Low-confidence parse of '{parsed.raw}' ({parsed.grammar.value}): "
                        f"{parsed.underlying} strike {parsed.strike_price}"
                    ),
                )
                logger.warning(str(warning))
                warnings.append(warning)

        # sorted() is stable, so equal timestamps keep row order
        ordered = sorted(fills, key=lambda f: f.timestamp)
        trades: List[ConsolidatedTrade] = []
        for key, group in group_by_key(ordered).items():
            key_trades = reconcile(group)
            logger.debug(f"{key}: {len(group)} fill(s) -> {len(key_trades)} trade(s)")
            trades.extend(key_trades)

        result = ImportResult(
            trades=tuple(trades),
            rejections=tuple(rejections),
            warnings=tuple(warnings),
            total_rows=len(rows),
            imported_fills=len(fills),
        )
        logger.info(f"Import run {cid[:8]} finished: {result.summary()}")
        return result

    def import_text(self, text: str) -> ImportResult:
        """Import CSV text (BOM, preamble and delimiter handled)."""
        _, rows = csv_source.read_table(text)
        return self.import_rows(rows)

    def import_file(self, path: Union[str, Path]) -> ImportResult:
        """Import a CSV file, enforcing the configured size limit."""
        text = csv_source.read_file(path, max_bytes=self.config.limits.max_file_size_bytes)
        return self.import_text(text)

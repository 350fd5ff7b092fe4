"""
settlement_ingestion.domain.types -- Pure frozen dataclasses for the import system.

ZERO I/O. Imports only from settlement_kernel/domain/.
"""

from __future__ import annotations

from dataclasses import dataclass

from settlement_kernel.domain.settlement import Settlement, SettlementCategory

MIB = 1024 * 1024


@dataclass(frozen=True)
class ImportLimits:
    """What an upload must satisfy before it is parsed."""

    max_file_bytes: int = 10 * MIB
    allowed_extensions: tuple[str, ...] = (".xlsx", ".xlsm")

    def __post_init__(self) -> None:
        if self.max_file_bytes <= 0:
            raise ValueError("max_file_bytes must be positive")
        if not self.allowed_extensions:
            raise ValueError("allowed_extensions must not be empty")
        object.__setattr__(
            self,
            "allowed_extensions",
            tuple(ext.lower() for ext in self.allowed_extensions),
        )


@dataclass(frozen=True)
class SheetNames:
    """Workbook sheet holding each category group."""

    employee: str = "직원"
    client: str = "거래처"
    activity: str = "활동비_강사비"

    def all(self) -> tuple[str, str, str]:
        return (self.employee, self.client, self.activity)


@dataclass(frozen=True)
class SheetSummary:
    """How one sheet of an upload was read."""

    sheet_name: str
    rows_read: int = 0
    rows_imported: int = 0

    @property
    def rows_skipped(self) -> int:
        return self.rows_read - self.rows_imported


@dataclass(frozen=True)
class ImportPreview:
    """Parsed upload awaiting confirmation.  Nothing has been stored yet."""

    batch_id: str
    source_filename: str
    settlements: tuple[Settlement, ...]
    sheets: tuple[SheetSummary, ...] = ()

    @property
    def total(self) -> int:
        return len(self.settlements)

    def count_by_category(self) -> dict[SettlementCategory, int]:
        counts: dict[SettlementCategory, int] = {}
        for record in self.settlements:
            counts[record.category] = counts.get(record.category, 0) + 1
        return counts


@dataclass(frozen=True)
class ImportOutcome:
    """Result of a confirmed import."""

    batch_id: str
    persisted_count: int
    message: str
    settlement_ids: tuple[object, ...] = ()

# mangastore/services/audit.py
# Журнал оформленных заказов для ручной сверки: таблица, куда дописывается
# по строке на каждую позицию заказа. Запись идёт после commit заказа и
# никогда не влияет на его результат.
import fcntl
import logging
import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Iterator, List, Protocol

from openpyxl import Workbook, load_workbook

logger = logging.getLogger(__name__)

AUDIT_COLUMNS = [
    "User Name",
    "City",
    "Phone",
    "Order Status",
    "Placed At",
    "Manga Title",
    "Volume Number",
    "Quantity",
    "Unit Price",
    "Item Total",
    "Order Total",
]

# денежные колонки: Unit Price, Item Total, Order Total
MONEY_COLUMNS = slice(8, 11)
SHEET_NAME = "Orders"


@dataclass(frozen=True)
class OrderAuditLine:
    title: str
    volume_number: int
    quantity: int
    unit_price: Decimal
    total: Decimal


@dataclass(frozen=True)
class OrderAuditRecord:
    """Денормализованная сводка заказа для выгрузки."""

    order_id: int
    user_name: str
    total_amount: Decimal
    status: str
    city: str
    phone_number: str
    placed_at: datetime
    items: List[OrderAuditLine] = field(default_factory=list)


class AuditSink(Protocol):
    """Приёмник журнала заказов. Только дозапись, чтение не требуется."""

    def append_order(self, record: OrderAuditRecord) -> None:
        raise NotImplementedError()


class XlsxOrderAuditLog:
    """Журнал заказов в книге Excel, лист «Orders».

    Книга создаётся с заголовком при первой записи; дальше строки только дописываются.
    Чтение-дозапись-сохранение идёт под файловой блокировкой, а сама книга
    заменяется атомарно, поэтому параллельные записи не теряют строк.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.lock_path = self.path.with_name(f".{self.path.name}.lock")

    @contextmanager
    def _lock(self) -> Iterator[None]:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.lock_path, "w") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _load_workbook(self) -> Workbook:
        if self.path.exists():
            return load_workbook(self.path)
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = SHEET_NAME
        sheet.append(AUDIT_COLUMNS)
        return workbook

    def _save_workbook(self, workbook: Workbook) -> None:
        fd, temp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.stem}_", suffix=".xlsx")
        os.close(fd)
        try:
            workbook.save(temp_path)
            os.replace(temp_path, self.path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def append_order(self, record: OrderAuditRecord) -> None:
        with self._lock():
            workbook = self._load_workbook()
            sheet = workbook[SHEET_NAME]
            for item in record.items:
                sheet.append([
                    record.user_name,
                    record.city,
                    record.phone_number,
                    record.status,
                    record.placed_at.isoformat(),
                    item.title,
                    item.volume_number,
                    item.quantity,
                    item.unit_price,
                    item.total,
                    record.total_amount,
                ])
                for cell in sheet[sheet.max_row][MONEY_COLUMNS]:
                    cell.number_format = "0.00"
            self._save_workbook(workbook)

        logger.info(f"Order {record.order_id} written to {self.path}")

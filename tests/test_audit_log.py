"""Журнал заказов в книге Excel: заголовок, строка на позицию, дозапись."""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from decimal import Decimal

from openpyxl import load_workbook

from mangastore.services.audit import AUDIT_COLUMNS, OrderAuditLine, OrderAuditRecord, XlsxOrderAuditLog


def make_record(order_id=1, lines=2):
    return OrderAuditRecord(
        order_id=order_id,
        user_name="Reader One",
        total_amount=Decimal("27.00"),
        status="pending",
        city="Osaka",
        phone_number="+81 6 0000 0000",
        placed_at=datetime(2026, 10, 1, 12, 30),
        items=[
            OrderAuditLine(
                title=f"Title {n}",
                volume_number=n,
                quantity=n,
                unit_price=Decimal("9.00"),
                total=Decimal("9.00") * n,
            )
            for n in range(1, lines + 1)
        ],
    )


def read_rows(path):
    return [list(row) for row in load_workbook(path)["Orders"].iter_rows(values_only=True)]


def money(value):
    return Decimal(str(value)).quantize(Decimal("0.01"))


def test_first_append_writes_header_and_one_row_per_line(tmp_path):
    path = tmp_path / "exports" / "orders.xlsx"

    XlsxOrderAuditLog(path).append_order(make_record())

    rows = read_rows(path)
    assert len(rows) == 3
    assert rows[0] == AUDIT_COLUMNS
    assert rows[1][:8] == ["Reader One", "Osaka", "+81 6 0000 0000", "pending", "2026-10-01T12:30:00", "Title 1", 1, 1]
    assert [money(v) for v in rows[1][8:]] == [Decimal("9.00"), Decimal("9.00"), Decimal("27.00")]
    assert rows[2][5:8] == ["Title 2", 2, 2]
    assert money(rows[2][9]) == Decimal("18.00")


def test_money_cells_use_two_decimals(tmp_path):
    path = tmp_path / "orders.xlsx"

    XlsxOrderAuditLog(path).append_order(make_record(lines=1))

    row = load_workbook(path)["Orders"][2]
    assert [cell.number_format for cell in row[8:11]] == ["0.00", "0.00", "0.00"]


def test_appends_without_repeating_header(tmp_path):
    path = tmp_path / "orders.xlsx"
    audit_log = XlsxOrderAuditLog(path)

    audit_log.append_order(make_record(order_id=1, lines=1))
    audit_log.append_order(make_record(order_id=2, lines=2))

    rows = read_rows(path)
    assert rows.count(AUDIT_COLUMNS) == 1
    assert len(rows) == 1 + 1 + 2


def test_parallel_appends_keep_every_row(tmp_path):
    path = tmp_path / "orders.xlsx"

    # отдельный экземпляр на поток, как в отдельных запросах
    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(lambda n: XlsxOrderAuditLog(path).append_order(make_record(order_id=n, lines=1)), range(8)))

    rows = read_rows(path)
    assert rows.count(AUDIT_COLUMNS) == 1
    assert len(rows) == 1 + 8

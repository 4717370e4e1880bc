"""
Utilities for Reports module: CSV export.
"""

import csv
import io
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import Response


def create_csv_response(
    data: List[Dict[str, Any]],
    filename: str,
    headers: Optional[Dict[str, str]] = None
) -> Response:
    """
    Create a CSV response from a list of dictionaries.

    Args:
        data: rows of the report
        filename: name of the downloaded file
        headers: optional mapping of field name -> column title (also fixes column order)
    """
    output = io.StringIO()
    fieldnames = list(headers.keys()) if headers else (list(data[0].keys()) if data else [])

    if fieldnames:
        writer = csv.DictWriter(output, fieldnames=fieldnames, extrasaction="ignore")
        writer.writerow(dict(zip(fieldnames, headers.values() if headers else fieldnames)))
        for row in data:
            writer.writerow({key: format_csv_value(row.get(key)) for key in fieldnames})

    csv_content = output.getvalue()
    output.close()

    return Response(
        content=csv_content,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


def format_csv_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)


def csv_filename(prefix: str, start_date: Optional[date], end_date: Optional[date]) -> str:
    start = start_date.isoformat() if start_date else "all"
    end = end_date.isoformat() if end_date else date.today().isoformat()
    return f"{prefix}_{start}_{end}.csv"


def prepare_revenue_csv(report_data: Dict[str, Any]) -> List[Dict[str, Any]]:
    return list(report_data["by_period"])


def prepare_expenses_csv(report_data: Dict[str, Any]) -> List[Dict[str, Any]]:
    return list(report_data["by_category"])


def prepare_outstanding_csv(report_data: Dict[str, Any]) -> List[Dict[str, Any]]:
    return list(report_data["invoices"])


CSV_HEADERS = {
    "revenue": {
        "period": "Period",
        "revenue": "Revenue",
        "count": "Invoices"
    },
    "expenses": {
        "category": "Category",
        "amount": "Amount",
        "count": "Expenses"
    },
    "outstanding": {
        "invoice_number": "Invoice",
        "customer_name": "Customer",
        "invoice_date": "Invoice Date",
        "due_date": "Due Date",
        "status": "Status",
        "total_amount": "Total",
        "amount_paid": "Paid",
        "balance": "Balance",
        "days_overdue": "Days Overdue"
    }
}

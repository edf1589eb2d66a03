"""CSV export of report rows."""

import csv
import io
import json
from datetime import datetime
from typing import Any, Mapping, Sequence


def _cell(value: Any) -> Any:
    # Nested rows (details, answer lists) are embedded as JSON text
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, default=str)
    if isinstance(value, datetime):
        return value.isoformat()
    if value is None:
        return ""
    return value


def to_csv(rows: Sequence[Mapping[str, Any]]) -> str:
    """Serialize report rows to CSV text.

    The header is the keys of the first row. Quoting is left to the csv
    module, so embedded quotes are doubled and fields containing commas or
    line breaks are quoted.

    Args:
        rows: Report rows as mappings

    Returns:
        CSV text ending in a newline, or "" when there are no rows

    Example:
        >>> to_csv([{"value": "Yes", "count": 2}])
        'value,count\\nYes,2\\n'
    """
    if not rows:
        return ""

    headers = list(rows[0].keys())
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_cell(row.get(key)) for key in headers])
    return output.getvalue()

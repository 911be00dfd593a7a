"""
CSV encoding of result sets.

One header line, then one line per row in header order. Quoting is minimal:
fields holding the delimiter, a quote or a line break are quoted and
embedded quotes are doubled.
"""

import csv
import io
from decimal import Decimal

from mysqlgate.errors import EncodingError
from mysqlgate.models import ResultSet, RowValue


def render_value(value: RowValue) -> str:
    """
    Locale-independent text for a single cell.

    SQL NULL renders as ``NULL``, the same text as the string ``"NULL"``;
    the two cannot be told apart after encoding.
    """
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, (int, Decimal)):
        return str(value)
    return value


def encode_csv(result: ResultSet) -> str:
    """
    Encode a result set as CSV.

    Raises:
        EncodingError: If a row is missing a header key or has keys the
            header list does not name.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(result.headers)

    header_set = set(result.headers)
    for row in result.rows:
        values = []
        for header in result.headers:
            if header not in row:
                raise EncodingError(f"key '{header}' not found in row")
            values.append(render_value(row[header]))

        extra = [key for key in row if key not in header_set]
        if extra:
            raise EncodingError(f"row has columns not in header: {', '.join(extra)}")

        writer.writerow(values)

    return buffer.getvalue()

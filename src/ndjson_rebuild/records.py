"""Helpers for NDJSON post records.

Records are opaque JSON objects; only the ``num`` ordering field is read.
A record may be a placeholder for a post no source had::

    {"num": "123", "exception": "Not found", "timestamp": 1700000000}
"""

import json

ORDER_FIELD = "num"


def record_number(line: bytes | str) -> int:
    """Return the ordering value of one NDJSON line.

    Raises:
        ValueError: If the line is not a JSON object with an integral ``num``
    """
    record = json.loads(line)
    if not isinstance(record, dict):
        raise ValueError("record is not a JSON object")

    value = record.get(ORDER_FIELD)
    # bool is an int subclass; "true" is never a post number
    if isinstance(value, bool) or value is None:
        raise ValueError(f"record has no usable '{ORDER_FIELD}' field")
    if isinstance(value, str):
        value = value.strip()
        if not value.isdigit():
            raise ValueError(f"'{ORDER_FIELD}' is not numeric: {value!r}")
        return int(value)
    if isinstance(value, int):
        return value
    raise ValueError(f"'{ORDER_FIELD}' has unexpected type {type(value).__name__}")

"""
apishell: Log Redaction Helper
==============================

What:  Truncates over-long string values in a mapping before it is logged.
Why:   Request headers and parameters can carry base64 blobs or huge tokens;
       printing them verbatim floods the logs.
How:   Walks the mapping, slicing strings longer than the threshold and
       recursing into nested mappings. Returns a new dict, input untouched.

Nested mappings are redacted and stored in the result. Re-redacting an
already redacted mapping yields the same mapping: the first `threshold`
characters of a sliced value are the original prefix, so slicing again
produces the identical string.
"""

from collections.abc import Mapping
from typing import Any, Dict, Optional

SLICE_THRESHOLD = 1000
SLICE_SUFFIX = " ... [CONTENT SLICED]"


def suppress_long_strings(
    values: Optional[Mapping], threshold: int = SLICE_THRESHOLD
) -> Dict[Any, Any]:
    """Return a copy of `values` with long strings sliced to `threshold` chars."""
    redacted: Dict[Any, Any] = {}
    if not values:
        return redacted

    for key, value in values.items():
        if isinstance(value, str) and len(value) > threshold:
            redacted[key] = f"{value[:threshold]}{SLICE_SUFFIX}"
        elif isinstance(value, Mapping):
            redacted[key] = suppress_long_strings(value, threshold)
        else:
            redacted[key] = value
    return redacted

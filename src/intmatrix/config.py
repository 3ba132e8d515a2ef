"""
Configuration & Global Constants
================================
This module serves as the central registry for the constants shared by the
store, the arithmetic engine and the text codec.

Why is this file needed?
------------------------
1. Element type: Every buffer, result and parsed value uses the same 32-bit
   signed integer type. Changing it here changes it everywhere.
2. Text format: The separator, row terminator and encoding of the persisted
   format are defined once, so `dump` and `parse` cannot drift apart.
3. Parse policy: The default parse mode can be overridden through the
   `INTMATRIX_PARSE_MODE` environment variable, read on every parse call.
4. Logging: Format and stream used by `logging_config.setup_logging`.

Exports:
    ELEMENT_DTYPE: numpy dtype of every matrix buffer.
    ELEMENT_MIN / ELEMENT_MAX: Inclusive range of a matrix element.
    ParseMode: Lenient or strict parsing of persisted text.
    get_default_parse_mode: Mode used when a caller does not pass one.
"""
from __future__ import annotations

import logging
import os
from enum import StrEnum

import numpy as np

logger = logging.getLogger(__name__)


class ParseMode(StrEnum):
    LENIENT = "lenient"
    STRICT = "strict"


# Element type (mirrors a C `int`)
ELEMENT_DTYPE = np.dtype(np.int32)
ELEMENT_MIN: int = int(np.iinfo(ELEMENT_DTYPE).min)
ELEMENT_MAX: int = int(np.iinfo(ELEMENT_DTYPE).max)
ELEMENT_MODULUS: int = ELEMENT_MAX - ELEMENT_MIN + 1

# Persisted text format
FIELD_SEPARATOR: str = " "
ROW_TERMINATOR: str = "\n"
ENCODING: str = "utf-8"
# Characters separating tokens within a row (rows end only at ROW_TERMINATOR)
TOKEN_SEPARATORS: str = " \t\r"
# Longest digit run that can still be in the element range
MAX_ELEMENT_DIGITS: int = len(str(ELEMENT_MAX))

PARSE_MODE_ENV_VAR: str = "INTMATRIX_PARSE_MODE"

# Logging (see intmatrix.logging_config)
LOG_NAMESPACE: str = "intmatrix"
LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT: str = "%H:%M:%S"
# Name of the `sys` stream console output goes to
LOG_STREAM: str = "stderr"


def get_default_parse_mode() -> ParseMode:
    """
    Resolve the parse mode from the environment, falling back to lenient.

    Called on every parse without an explicit mode, so changes to the
    environment take effect immediately.
    """
    raw = os.environ.get(PARSE_MODE_ENV_VAR)
    if not raw:
        return ParseMode.LENIENT
    try:
        return ParseMode(raw.strip().lower())
    except ValueError:
        logger.warning(f"Unknown {PARSE_MODE_ENV_VAR}='{raw}', using '{ParseMode.LENIENT}'.")
        return ParseMode.LENIENT


def wrap(value: int) -> int:
    """Reduce an integer modulo 2**32 into the signed element range."""
    return (int(value) - ELEMENT_MIN) % ELEMENT_MODULUS + ELEMENT_MIN

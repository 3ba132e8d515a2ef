"""
Text Codec
==========
Serializes matrices to plain text and parses such text back into matrices.

Format
------
One matrix row per line. Every element is written in base 10 followed by a
single space, and `\\n` terminates the row. There is no header: the shape is
recovered from the layout of the text.

Parsing
-------
Lines end only at `\\n`. Within a line, tokens are separated by runs of
spaces, tabs or carriage returns (`config.TOKEN_SEPARATORS`).

Parsing is done in two passes over the lines of the input:

1. Dimension inference: blank lines are skipped, the column count is the
   number of tokens on the first non-blank line and the row count is the
   number of non-blank lines.
2. Fill: a zero-filled matrix of the inferred shape is allocated and every
   non-blank line is parsed into its row.

Two parse modes exist (see `intmatrix.config.ParseMode`):

* LENIENT: tokens are read like C `atoi` (leading sign and digits, anything
  else gives 0), long rows are truncated and short rows keep zeros in the
  missing cells. Every fix-up is reported as a logging warning.
* STRICT: a token that is not a base-10 integer raises `ParseError`, and a
  row whose length differs from the first row raises `ShapeError`.
"""
from __future__ import annotations

import io
import logging
import os
import re
import tempfile
from typing import IO, Iterator, Optional, Union, TYPE_CHECKING

from intmatrix import config
from intmatrix.config import (
    ELEMENT_MAX, ELEMENT_MIN, ENCODING, FIELD_SEPARATOR, MAX_ELEMENT_DIGITS, ROW_TERMINATOR,
    TOKEN_SEPARATORS, ParseMode, wrap,
)
from intmatrix.errors import IoError, MatrixError, ParseError, ShapeError
from intmatrix.store import allocate, release

if TYPE_CHECKING:
    from intmatrix.store import Allocator, Matrix

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

# Leading integer prefix, as accepted by C `atoi`
_LEADING_INT = re.compile(r"([+-]?)(\d+)", re.ASCII)
_TOKEN_SPLIT = re.compile(f"[{re.escape(TOKEN_SEPARATORS)}]+")
# 10**32 is a multiple of 2**32, so the last 32 digits decide the wrapped value
_WRAP_DIGITS = 32


# ---- SERIALIZATION ----

def _iter_lines(m: Matrix) -> Iterator[str]:
    for row in m.data.tolist():
        yield "".join(f"{value}{FIELD_SEPARATOR}" for value in row) + ROW_TERMINATOR


def dump(m: Matrix) -> str:
    """Serialize `m` to text."""
    return "".join(_iter_lines(m))


def _is_text_sink(sink: IO) -> bool:
    """Whether `sink` takes `str` rather than bytes."""
    if isinstance(sink, io.TextIOBase):
        return True
    if isinstance(sink, (io.RawIOBase, io.BufferedIOBase)):
        return False
    mode = getattr(sink, "mode", None)
    if isinstance(mode, str):
        return "b" not in mode
    return True


def dump_to(m: Matrix, sink: IO) -> None:
    """
    Write `m` to a writable stream.

    Text streams receive `str`; binary streams (io binary classes, or any
    object whose `mode` contains "b") receive bytes encoded with
    `config.ENCODING`. Other objects with a `write` method receive `str`.

    Raises:
        IoError: If writing to the sink fails.
    """
    is_text = _is_text_sink(sink)
    try:
        for line in _iter_lines(m):
            sink.write(line if is_text else line.encode(ENCODING))
    except OSError as e:
        logger.error(f"Failed to write {m.rows}x{m.columns} matrix: {e}")
        raise IoError(f"Could not write matrix: {e}") from e


def _discard(temp_path: str) -> None:
    try:
        os.remove(temp_path)
    except OSError as e:
        logger.warning(f"Could not delete temp file '{temp_path}': {e}")


def save(m: Matrix, filepath: PathLike) -> None:
    """
    Save `m` to a text file, replacing any existing content.

    The matrix is written to a temporary file next to `filepath` which then
    replaces the target, so a failed save leaves the previous file untouched.

    Raises:
        IoError: If the file cannot be created or written.
    """
    logger.debug(f"Saving {m.rows}x{m.columns} matrix to: {filepath}")
    directory = os.path.dirname(os.path.abspath(filepath))
    try:
        fd, temp_path = tempfile.mkstemp(dir=directory, prefix=".intmatrix-", suffix=".tmp")
    except OSError as e:
        logger.error(f"Failed to save matrix to '{filepath}': {e}")
        raise IoError(f"Could not open '{filepath}' for writing: {e}") from e

    try:
        with open(fd, "w", encoding=ENCODING, newline="") as f:
            dump_to(m, f)
        os.replace(temp_path, filepath)
    except IoError:
        _discard(temp_path)
        raise
    except OSError as e:
        _discard(temp_path)
        logger.error(f"Failed to save matrix to '{filepath}': {e}")
        raise IoError(f"Could not write '{filepath}': {e}") from e


# ---- DESERIALIZATION ----

def _resolve_mode(mode: Optional[Union[ParseMode, str]]) -> ParseMode:
    if mode is None:
        return config.get_default_parse_mode()
    return ParseMode(mode)


def _tokenize(line: str) -> list[str]:
    return [token for token in _TOKEN_SPLIT.split(line) if token]


def _infer_shape(lines: list[str]) -> tuple[int, int]:
    """First pass: count non-blank rows and the tokens of the first one."""
    rows = 0
    columns = 0
    for line in lines:
        tokens = _tokenize(line)
        if not tokens:
            continue
        if rows == 0:
            columns = len(tokens)
        rows += 1
    return rows, columns


def _parse_token(token: str, line_number: int, mode: ParseMode) -> tuple[int, bool]:
    """
    Parse one token. Returns the value and whether it had to be coerced.
    """
    match = _LEADING_INT.match(token)
    exact = match is not None and match.end() == len(token)

    if mode == ParseMode.STRICT:
        if not exact:
            raise ParseError(f"Line {line_number}: '{token}' is not an integer.", line_number, token)
        sign, digits = match.groups()
        digits = digits.lstrip("0") or "0"
        if len(digits) > MAX_ELEMENT_DIGITS:
            raise ParseError(f"Line {line_number}: '{token}' is outside [{ELEMENT_MIN}, {ELEMENT_MAX}].",
                             line_number, token)
        value = int(sign + digits)
        if not ELEMENT_MIN <= value <= ELEMENT_MAX:
            raise ParseError(
                f"Line {line_number}: {value} is outside [{ELEMENT_MIN}, {ELEMENT_MAX}].", line_number, token
            )
        return value, False

    if match is None:
        return 0, True
    sign, digits = match.groups()
    truncated = len(digits) > _WRAP_DIGITS
    value = int(sign + digits[-_WRAP_DIGITS:])
    return wrap(value), truncated or not exact or value != wrap(value)


def _fill_rows(m: Matrix, lines: list[str], mode: ParseMode) -> None:
    """Second pass: parse every non-blank line into the next row of `m`."""
    row = 0
    coerced = 0
    ragged = 0
    for line_number, line in enumerate(lines, start=1):
        tokens = _tokenize(line)
        if not tokens:
            continue

        if len(tokens) != m.columns:
            if mode == ParseMode.STRICT:
                raise ShapeError(f"Line {line_number} has {len(tokens)} values, expected {m.columns}.")
            ragged += 1
            logger.debug(f"Line {line_number}: {len(tokens)} values, expected {m.columns}.")

        values = []
        for token in tokens[:m.columns]:
            value, was_coerced = _parse_token(token, line_number, mode)
            coerced += was_coerced
            values.append(value)
        m.buffer[row, :len(values)] = values
        row += 1

    if coerced:
        logger.warning(f"{coerced} token(s) were not exact integers and were coerced.")
    if ragged:
        logger.warning(f"{ragged} row(s) did not have {m.columns} values; truncated or zero-filled.")


def _parse_lines(lines: list[str], mode: ParseMode, allocator: Optional[Allocator]) -> Matrix:
    rows, columns = _infer_shape(lines)
    logger.debug(f"Inferred {rows}x{columns} matrix from {len(lines)} line(s).")

    m = allocate(rows, columns, allocator=allocator)
    try:
        _fill_rows(m, lines, mode)
    except MatrixError:
        release(m)
        raise
    return m


def parse(
    text: str,
    mode: Optional[Union[ParseMode, str]] = None,
    allocator: Optional[Allocator] = None,
) -> Matrix:
    """
    Parse matrix text, inferring the shape from its layout.

    Args:
        text: Serialized matrix. Empty text gives a 0x0 matrix.
        mode: Parse mode, defaults to `config.get_default_parse_mode()`.
        allocator: Optional allocator for the result buffer.

    Raises:
        AllocationError: If the inferred matrix cannot be allocated.
        ParseError: Strict mode only, on a token that is not an integer.
        ShapeError: Strict mode only, on rows of differing length.
    """
    return _parse_lines(text.split(ROW_TERMINATOR), _resolve_mode(mode), allocator)


def parse_from(
    source: IO,
    mode: Optional[Union[ParseMode, str]] = None,
    allocator: Optional[Allocator] = None,
) -> Matrix:
    """
    Parse a matrix from a readable text or byte stream.

    Raises:
        IoError: If the stream cannot be read or decoded.
        See `parse` for the remaining errors.
    """
    try:
        content = source.read()
        if isinstance(content, bytes):
            content = content.decode(ENCODING)
    except (OSError, ValueError) as e:
        # ValueError covers decoding failures and closed streams
        logger.error(f"Failed to read matrix source: {e}")
        raise IoError(f"Could not read matrix source: {e}") from e
    return parse(content, mode=mode, allocator=allocator)


def load(
    filepath: PathLike,
    mode: Optional[Union[ParseMode, str]] = None,
    allocator: Optional[Allocator] = None,
) -> Matrix:
    """
    Load a matrix from a text file.

    Raises:
        IoError: If the file cannot be opened or read.
        See `parse` for the remaining errors.
    """
    logger.debug(f"Loading matrix from: {filepath}")
    try:
        f = open(filepath, "rb")
    except OSError as e:
        logger.error(f"Failed to open '{filepath}': {e}")
        raise IoError(f"Could not open '{filepath}': {e}") from e

    with f:
        m = parse_from(f, mode=mode, allocator=allocator)
    logger.info(f"Loaded {m.rows}x{m.columns} matrix from: {filepath}")
    return m

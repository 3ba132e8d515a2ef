"""
Dense integer matrices: allocation, initialization, arithmetic and a plain-text codec.
It has NO knowledge of how callers obtain filenames or present results.
"""
import logging
from importlib.metadata import version, PackageNotFoundError

from intmatrix.arithmetic import add, equal, product, scalar_product, transpose
from intmatrix.codec import dump, dump_to, load, parse, parse_from, save
from intmatrix.config import ParseMode
from intmatrix.errors import AllocationError, IoError, MatrixError, ParseError, RangeError, ShapeError
from intmatrix.initializers import fill, fill_zeros, identity, init_identity, init_random
from intmatrix.store import Matrix, allocate, from_rows, release

try:
    __version__ = version("intmatrix")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

# Silent unless the application configures logging (see logging_config)
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Matrix", "allocate", "release", "from_rows",
    "fill", "fill_zeros", "init_identity", "init_random", "identity",
    "equal", "add", "scalar_product", "transpose", "product",
    "dump", "dump_to", "save", "parse", "parse_from", "load",
    "ParseMode",
    "MatrixError", "AllocationError", "ShapeError", "RangeError", "IoError", "ParseError",
]

"""
=============================================================================
TASK COMPUTATION
=============================================================================

The /task endpoint multiplies a comma-separated list of integers:

    b"3,4,5"  ──decode──►  "3,4,5"  ──split──►  ["3", "4", "5"]
                                                    │
                                             parse each operand
                                                    │
                                                    ▼
    b"Result of the multiplication 60"  ◄──  1 * 3 * 4 * 5 = 60

Python ints are arbitrary precision, so the product never overflows.
Conversions between int and str are capped at 4300 digits by default
(CPython 3.11+); HTTPServer lifts that cap at startup.

=============================================================================
OPERAND SYNTAX
=============================================================================

    operand = [ "+" | "-" ] 1*DIGIT

No whitespace trimming, no underscores, no empty pieces. int() alone is
too lenient (it accepts " 7", "1_000" and non-ASCII digits), so every
piece is checked against OPERAND_PATTERN first.

=============================================================================
"""

import re
from functools import reduce
from operator import mul
from typing import Iterable, List

from .errors import MalformedOperandError


OPERAND_SEPARATOR = ","
OPERAND_PATTERN = re.compile(r"[+-]?[0-9]+")
RESULT_TEMPLATE = "Result of the multiplication {}"


def parse_operands(text: str) -> List[int]:
    """
    Split text on commas and parse every piece as a signed integer.

    Raises:
        MalformedOperandError: If any piece is not a plain decimal integer.
    """
    operands = []
    for position, piece in enumerate(text.split(OPERAND_SEPARATOR)):
        if not OPERAND_PATTERN.fullmatch(piece):
            raise MalformedOperandError(piece, position)
        operands.append(int(piece))
    return operands


def multiply(operands: Iterable[int]) -> int:
    """Product of all operands, starting from 1."""
    return reduce(mul, operands, 1)


def format_result(product: int) -> str:
    return RESULT_TEMPLATE.format(product)


def calculate_response(body: bytes) -> bytes:
    """
    Run the whole task pipeline on a raw request body.

    Args:
        body: Request body bytes, expected to be UTF-8 text.

    Returns:
        Encoded response body.

    Raises:
        MalformedOperandError: If the body is not valid UTF-8 or any
                               operand is malformed.
    """
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedOperandError(body[e.start:e.end].hex()) from e

    product = multiply(parse_operands(text))
    return format_result(product).encode("utf-8")

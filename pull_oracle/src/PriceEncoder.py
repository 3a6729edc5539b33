"""PriceEncoder: Bit-packing of stored price records into one 256-bit word.

Layout, from the most-significant bit::

    | round (64) | decimals (16) | timestamp (64) | pad (16) | price << 24 (96) |

The price occupies the low 96 bits shifted left by 24, so its 24 least
significant bits are always zero. Field widths are not checked here; callers
constrain inputs upstream (prices above :data:`MAX_PRICE` would be truncated).

.. code-block:: python

    >>> word = pack(10, 8, 1_700_000_000_000, 6_500_000_000_000)
    >>> unpack(word)
    StoredPriceRecord(round=10, decimals=8, timestamp=1700000000000, price=6500000000000)
"""

from __future__ import annotations

from typing import NamedTuple

ROUND_BITS = 64
DECIMALS_BITS = 16
TIMESTAMP_BITS = 64
PRICE_BITS = 96
PRICE_PADDING_BITS = 24

# Largest price that survives pack/unpack unchanged.
MAX_PRICE = (1 << (PRICE_BITS - PRICE_PADDING_BITS)) - 1

PRICE_SHIFT = 0
TIMESTAMP_SHIFT = 112
DECIMALS_SHIFT = TIMESTAMP_SHIFT + TIMESTAMP_BITS
ROUND_SHIFT = DECIMALS_SHIFT + DECIMALS_BITS

_ROUND_MASK = (1 << ROUND_BITS) - 1
_DECIMALS_MASK = (1 << DECIMALS_BITS) - 1
_TIMESTAMP_MASK = (1 << TIMESTAMP_BITS) - 1
_PRICE_MASK = (1 << PRICE_BITS) - 1


class StoredPriceRecord(NamedTuple):
    """Last known state of a pair as kept by a price store.

    :ivar round: Committee round of the stored observation.
    :ivar decimals: Number of decimals of ``price``.
    :ivar timestamp: Observation timestamp in milliseconds.
    :ivar price: Fixed-point price magnitude.
    """

    round: int = 0
    decimals: int = 0
    timestamp: int = 0
    price: int = 0


def pack(round: int, decimals: int, timestamp: int, price: int) -> int:
    """Pack a price observation into a storage word.

    :param round: Committee round (64 bits).
    :param decimals: Price decimals (16 bits).
    :param timestamp: Timestamp in milliseconds (64 bits).
    :param price: Price magnitude (at most 72 significant bits).
    :returns: The packed 256-bit word.
    """
    return (
        (round << ROUND_SHIFT)
        | (decimals << DECIMALS_SHIFT)
        | (timestamp << TIMESTAMP_SHIFT)
        | ((price << PRICE_PADDING_BITS) << PRICE_SHIFT)
    )


def unpack(word: int) -> StoredPriceRecord:
    """Unpack a storage word produced by :func:`pack`.

    :param word: Packed 256-bit word.
    :returns: The decoded record.
    """
    return StoredPriceRecord(
        round=(word >> ROUND_SHIFT) & _ROUND_MASK,
        decimals=(word >> DECIMALS_SHIFT) & _DECIMALS_MASK,
        timestamp=(word >> TIMESTAMP_SHIFT) & _TIMESTAMP_MASK,
        price=((word >> PRICE_SHIFT) & _PRICE_MASK) >> PRICE_PADDING_BITS,
    )

"""
Geohash encoding for city coordinates.

Cells are split with a strict "greater than midpoint" test, so the origin
(0, 0) always lands in the same corner cell. That cell is used as the
"unknown location" marker throughout the package.
"""

from typing import List

_BASE32 = "0123456789bcdefghjkmnpqrstuvwxyz"

PRECISION = 12

# Produced by encode(0.0, 0.0); rows with blank coordinates collapse to it.
ORIGIN_SENTINEL = "7zzzzzzzzzzz"


def encode(latitude: float, longitude: float, precision: int = PRECISION) -> str:
    """Encode a coordinate pair as a geohash string.

    Args:
        latitude: Latitude in degrees
        longitude: Longitude in degrees
        precision: Number of base-32 characters (default: 12)

    Returns:
        Geohash string of length ``precision``

    Raises:
        ValueError: If precision is not positive
    """
    if precision <= 0:
        raise ValueError("precision must be > 0")

    lat_min, lat_max = -90.0, 90.0
    lon_min, lon_max = -180.0, 180.0

    bits = [16, 8, 4, 2, 1]
    bit = 0
    ch = 0
    even = True
    out: List[str] = []

    while len(out) < precision:
        if even:
            mid = (lon_min + lon_max) / 2.0
            if longitude > mid:
                ch |= bits[bit]
                lon_min = mid
            else:
                lon_max = mid
        else:
            mid = (lat_min + lat_max) / 2.0
            if latitude > mid:
                ch |= bits[bit]
                lat_min = mid
            else:
                lat_max = mid

        even = not even
        if bit < 4:
            bit += 1
            continue

        out.append(_BASE32[ch])
        bit = 0
        ch = 0

    return "".join(out)


def encode_or_blank(latitude: float, longitude: float) -> str:
    """Encode a coordinate pair, returning "" for the origin sentinel."""
    gh = encode(latitude, longitude)
    if gh == ORIGIN_SENTINEL:
        return ""
    return gh


def shared_prefix_length(a: str, b: str) -> int:
    """Length of the common leading run of two geohashes."""
    n = 0
    for x, y in zip(a, b):
        if x != y:
            break
        n += 1
    return n

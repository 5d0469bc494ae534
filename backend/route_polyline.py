"""
Decoder for the Google Maps encoded polyline format.

Each coordinate is stored as a zig-zag encoded delta from the previous one,
scaled by 1e5 and split into 5-bit chunks offset by 63.
"""

PRECISION = 1e-5


def _read_value(encoded: str, index: int):
    """Return (signed_delta, next_index), or (None, index) when truncated."""
    shift = 0
    result = 0
    length = len(encoded)
    while True:
        if index >= length:
            return None, index
        byte = ord(encoded[index]) - 63
        index += 1
        result |= (byte & 0x1F) << shift
        shift += 5
        if byte < 0x20:
            break
    delta = ~(result >> 1) if result & 1 else result >> 1
    return delta, index


def decode_polyline(encoded) -> list[dict]:
    """
    Decode an encoded polyline into [{"lat": float, "lng": float}, ...].

    Non-string or empty input yields []. A truncated string yields the
    points decoded before the truncation.
    """
    if not encoded or not isinstance(encoded, str):
        return []

    coordinates = []
    index = 0
    lat = 0
    lng = 0
    while index < len(encoded):
        delta_lat, index = _read_value(encoded, index)
        if delta_lat is None:
            return coordinates
        delta_lng, index = _read_value(encoded, index)
        if delta_lng is None:
            return coordinates
        lat += delta_lat
        lng += delta_lng
        coordinates.append({"lat": lat * PRECISION, "lng": lng * PRECISION})
    return coordinates

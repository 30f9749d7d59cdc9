"""
Party color assignment

Colors are derived from a 32-bit string hash of the party id spread around
the hue wheel by the golden angle, and cached until the palette is reset.
"""

from typing import Dict, Optional

GOLDEN_ANGLE = 137.5
NO_PARTY_COLOR = "#D1D5DB"


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def party_hash(party_id: str) -> int:
    """Signed 32-bit rolling hash (h * 31 + UTF-16 code unit)"""
    data = party_id.encode("utf-16-le", "surrogatepass")
    h = 0
    for i in range(0, len(data), 2):
        code = data[i] | (data[i + 1] << 8)
        h = _to_int32((h << 5) - h + code)
    return h


def party_hue(party_id: str) -> float:
    return abs(party_hash(party_id) * GOLDEN_ANGLE) % 360


class PartyPalette:
    """Lazily populated party id -> {fill, stroke} mapping"""

    def __init__(self):
        self._colors: Dict[str, Dict[str, str]] = {}

    def reset(self) -> None:
        self._colors = {}

    def colors_for(self, party_id: Optional[str]) -> Dict[str, str]:
        if not party_id:
            return {"fill": NO_PARTY_COLOR, "stroke": NO_PARTY_COLOR}
        if party_id not in self._colors:
            hue = f"{party_hue(party_id):g}"
            self._colors[party_id] = {
                "fill": f"hsl({hue}, 70%, 80%)",
                "stroke": f"hsl({hue}, 60%, 65%)",
            }
        return self._colors[party_id]

    def fill(self, party_id: Optional[str]) -> str:
        return self.colors_for(party_id)["fill"]

    def stroke(self, party_id: Optional[str]) -> str:
        return self.colors_for(party_id)["stroke"]

    def cached(self) -> Dict[str, Dict[str, str]]:
        return dict(self._colors)

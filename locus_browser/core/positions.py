"""
Helpers for converting genomic positions to and from human-readable strings.

    position_int_to_string(23423456, 6)         -> "23.42"
    position_int_to_string(52667, suffix=True)  -> "52.67 Kb"
    position_string_to_int("5.8 Mb")            -> 5800000
    parse_position_query("10:45000-65000")      -> {"chr": "10", "start": 45000, "end": 65000}
"""
from __future__ import annotations

import math
import re
from typing import Any, Dict, Optional

_EXP_SYMBOLS = {0: "", 3: "K", 6: "M", 9: "G"}
_SUFFIX_RE = re.compile(r"([KMG])B*$")
_SUFFIX_MULT = {"K": 1e3, "M": 1e6, "G": 1e9}

_CHR_POS_OFFSET = re.compile(r"^(\w+):([\d,.]+[kmgbKMGB]*)([-+])([\d,.]+[kmgbKMGB]*)$")
_CHR_POS = re.compile(r"^(\w+):([\d,.]+[kmgbKMGB]*)$")


def position_int_to_string(pos: int, exp: Optional[int] = None, suffix: bool = False) -> str:
    """
    :param pos: integer position
    :param exp: exponent of the returned string's base (6 => Mb). When omitted,
        the largest multiple of 3 (capped at 9) not exceeding log10(pos) is used
    :param suffix: append " Kb"/" Mb"/... to the value
    """
    log = math.log10(pos) if pos > 0 else 0.0
    if exp is None:
        exp = min(max(int(log // 3) * 3, 0), 9)
    places_exp = exp - math.floor(round(log, exp + 3))
    min_exp = min(max(exp, 0), 2)
    places = int(min(max(places_exp, min_exp), 12))
    ret = f"{pos / math.pow(10, exp):.{places}f}"
    if suffix and exp in _EXP_SYMBOLS:
        ret += f" {_EXP_SYMBOLS[exp]}b"
    return ret


def position_string_to_int(p: str) -> int:
    val = p.upper().replace(",", "").strip()
    mult = 1.0
    match = _SUFFIX_RE.search(val)
    if match:
        mult = _SUFFIX_MULT[match.group(1)]
        val = _SUFFIX_RE.sub("", val).strip()
    return int(round(float(val) * mult))


def parse_position_query(x: str) -> Optional[Dict[str, Any]]:
    """
    Parse region queries of the forms ``chr:start-end``, ``chr:center+offset``
    and ``chr:pos``. Returns None when the query matches none of them.
    """
    x = (x or "").strip()
    match = _CHR_POS_OFFSET.match(x)
    if match:
        if match.group(3) == "+":
            center = position_string_to_int(match.group(2))
            offset = position_string_to_int(match.group(4))
            return {"chr": match.group(1), "start": center - offset, "end": center + offset}
        return {
            "chr": match.group(1),
            "start": position_string_to_int(match.group(2)),
            "end": position_string_to_int(match.group(4)),
        }

    match = _CHR_POS.match(x)
    if match:
        return {"chr": match.group(1), "position": position_string_to_int(match.group(2))}
    return None

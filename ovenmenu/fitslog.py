"""Daily FITS logs of oven readings, one image row per minute of the day."""

from __future__ import annotations

import os
import re
import sys
from array import array
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

MINUTES_PER_DAY = 24 * 60
INDEF_VALUE = 1.6e38
"""Value of a reading that was never logged."""
MAX_COLUMNS = 720
"""Most values one log row may hold."""

BLOCK_SIZE = 2880
CARD_SIZE = 80

_STRUCTURAL = ("SIMPLE", "BITPIX", "NAXIS", "NAXIS1", "NAXIS2", "END")
_STRING_VALUE = re.compile(r"'((?:[^']|'')*)'")

PathLike = Union[str, "os.PathLike[str]"]


@dataclass
class FitsImage:
    """A two-dimensional 32-bit float image with its header keywords.

    ``data`` holds ``height`` rows of ``width`` values; ``header`` holds the
    keywords other than the structural ones, in order.
    """

    width: int
    height: int
    data: List[float] = field(default_factory=list)
    header: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        size = self.width * self.height
        if not self.data:
            self.data = [0.0] * size
        elif len(self.data) != size:
            raise ValueError(f"image holds {len(self.data)} values, expected {size}")

    def row(self, index: int) -> List[float]:
        self._check_row(index)
        return self.data[index * self.width:(index + 1) * self.width]

    def set_row(self, index: int, values: Sequence[float]) -> None:
        self._check_row(index)
        if len(values) != self.width:
            raise ValueError(f"row holds {self.width} values, got {len(values)}")
        self.data[index * self.width:(index + 1) * self.width] = [float(v) for v in values]

    def _check_row(self, index: int) -> None:
        if not 0 <= index < self.height:
            raise IndexError(f"row {index} outside 0..{self.height - 1}")


def _format_float(value: float) -> str:
    if value != value or value in (float("inf"), float("-inf")):
        raise ValueError(f"cannot write {value} in a header")
    text = repr(float(value)).upper()
    if "." not in text and "E" not in text:
        text += "."
    return text


def _card(key: str, value: Any) -> str:
    if len(key) > 8:
        raise ValueError(f"keyword too long: {key}")
    if isinstance(value, bool):
        text = f"{'T' if value else 'F':>20}"
    elif isinstance(value, int):
        text = f"{value:>20}"
    elif isinstance(value, float):
        text = f"{_format_float(value):>20}"
    elif isinstance(value, str):
        escaped = value.replace("'", "''")
        text = f"'{escaped:<8}'"
    else:
        raise TypeError(f"cannot write {type(value).__name__} for {key}")
    card = f"{key:<8}= {text}"
    if len(card) > CARD_SIZE:
        raise ValueError(f"value of {key} too long")
    return card.ljust(CARD_SIZE)


def _pad(data: bytes, fill: bytes) -> bytes:
    return data + fill * (-len(data) % BLOCK_SIZE)


def write_fits(path: PathLike, image: FitsImage) -> None:
    """Write ``image`` as a single-HDU FITS file with BITPIX -32."""
    cards = [
        _card("SIMPLE", True),
        _card("BITPIX", -32),
        _card("NAXIS", 2),
        _card("NAXIS1", image.width),
        _card("NAXIS2", image.height),
    ]
    cards += [_card(key, value) for key, value in image.header.items() if key not in _STRUCTURAL]
    cards.append("END".ljust(CARD_SIZE))
    header = _pad("".join(cards).encode("ascii"), b" ")
    pixels = array("f", image.data)
    if sys.byteorder == "little":
        pixels.byteswap()
    Path(path).write_bytes(header + _pad(pixels.tobytes(), b"\0"))


def _parse_value(text: str) -> Any:
    text = text.strip()
    if text.startswith("'"):
        match = _STRING_VALUE.match(text)
        if not match:
            raise ValueError(f"unterminated string: {text}")
        return match.group(1).replace("''", "'").rstrip()
    text = text.split("/", 1)[0].strip()
    if text == "T":
        return True
    if text == "F":
        return False
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text.replace("D", "E"))
    except ValueError:
        raise ValueError(f"cannot read header value: {text}") from None


def _read_header(raw: bytes) -> Tuple[Dict[str, Any], int]:
    keys: Dict[str, Any] = {}
    for start in range(0, len(raw) - CARD_SIZE + 1, CARD_SIZE):
        card = raw[start:start + CARD_SIZE].decode("ascii", errors="replace")
        key = card[:8].rstrip()
        if key == "END":
            end = start + CARD_SIZE
            return keys, end + (-end % BLOCK_SIZE)
        if card[8:10] == "= ":
            keys[key] = _parse_value(card[10:])
    raise ValueError("no END card in header")


def read_fits(path: PathLike) -> FitsImage:
    """Read a two-dimensional BITPIX -32 FITS image."""
    raw = Path(path).read_bytes()
    keys, data_start = _read_header(raw)
    if keys.get("SIMPLE") is not True:
        raise ValueError("not a FITS file")
    if keys.get("BITPIX") != -32 or keys.get("NAXIS") != 2:
        raise ValueError("only two-dimensional 32-bit float images are supported")
    width, height = keys["NAXIS1"], keys["NAXIS2"]
    nbytes = 4 * width * height
    payload = raw[data_start:data_start + nbytes]
    if len(payload) != nbytes:
        raise ValueError("image data truncated")
    pixels = array("f")
    pixels.frombytes(payload)
    if sys.byteorder == "little":
        pixels.byteswap()
    header = {key: value for key, value in keys.items() if key not in _STRUCTURAL}
    return FitsImage(width, height, pixels.tolist(), header)


def log_name(prefix: str, when: Optional[datetime] = None) -> str:
    """Name of the day's log file: ``<prefix>YYMMDD.fits``."""
    when = when or datetime.now()
    return f"{prefix}{when.year % 100:02d}{when.month:02d}{when.day:02d}.fits"


def minute_index(when: Optional[datetime] = None) -> int:
    """Row of the log for this minute of the day, counting from 0."""
    when = when or datetime.now()
    return when.hour * 60 + when.minute


def _header_date(when: datetime) -> str:
    return (
        f"{when.year:04d}-{when.month:02d}-{when.day:02d}"
        f"T{when.hour:2d}:{when.minute:02d}:{when.second:02d}"
    )


def _new_header(name: str, when: datetime) -> Dict[str, Any]:
    return {
        "EXTEND": True,
        "OBJECT": name,
        "ORIGIN": "SOML OVEN",
        "DATE": _header_date(when),
        "IRAFNAME": name,
        "IRAF-MAX": 0.0,
        "IRAF-MIN": 0.0,
        "IRAF-BPX": 32,
        "IRAFTYPE": "REAL    ",
    }


def log_data(
    prefix: str,
    values: Sequence[float],
    when: Optional[datetime] = None,
    directory: PathLike = ".",
) -> Path:
    """Store one minute's readings in the day's log file and return its path.

    A new file starts with every row set to ``INDEF_VALUE`` and records the
    first row logged in FIRSTCOL; LASTCOL always holds the latest row
    (both counted from 1).
    """
    row = [float(v) for v in values]
    if len(row) > MAX_COLUMNS:
        raise ValueError(f"data logging row too long: {len(row)}")
    when = when or datetime.now()
    name = log_name(prefix, when)
    path = Path(directory) / name
    index = minute_index(when)

    if path.exists():
        image = read_fits(path)
        if image.width != len(row) or image.height != MINUTES_PER_DAY:
            raise ValueError(
                f"{path} holds {image.height} rows of {image.width}, "
                f"cannot log {len(row)} values"
            )
    else:
        image = FitsImage(
            len(row),
            MINUTES_PER_DAY,
            [INDEF_VALUE] * (len(row) * MINUTES_PER_DAY),
            _new_header(name, when),
        )
        image.header["FIRSTCOL"] = index + 1
        image.header["LASTCOL"] = index + 1

    image.set_row(index, row)
    image.header["LASTCOL"] = index + 1
    write_fits(path, image)
    return path
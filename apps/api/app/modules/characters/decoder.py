"""
Cell-block decoders: one positional CellBlock -> one typed fragment.

Every function here is pure and takes (block, descriptor). Malformed scalars
recover to 0 / "" in place; only the mandatory single-row fields (health
tracks, defense pools) raise when the store returned nothing usable.

Cell conventions of the sheet:
- "-" marks an empty cell (zero value, empty text, unused list row)
- list-shaped fields occupy a fixed window of rows (fixed_row_count)
"""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple, Union

from app.core.errors import MissingMandatoryBlock
from app.core.sheets import CellBlock

from .layout import FieldDescriptor
from .schemas import (
    Background,
    Discipline,
    Flaw,
    HealthTrack,
    Item,
    Merit,
    NameValue,
    OffensePool,
    Ritual,
)

SENTINEL = "-"
GENERAL = "General"
UNKNOWN_RITUAL_TYPE = "Unbekannt"

# inclusive integer bounds per sheet value kind
U8: Tuple[int, int] = (0, 255)
I8: Tuple[int, int] = (-128, 127)
U16: Tuple[int, int] = (0, 65535)
I16: Tuple[int, int] = (-32768, 32767)

RITUAL_TYPES: Dict[str, str] = {
    "A": "Abyssal",
    "N": "Necromancy",
    "T": "Thaumaturgy",
}

HEALTH_MARKER = "x"
HEALTH_BOXES = 5


# --- cell helpers ---
def _cell(row: Sequence[str], col: int) -> str:
    if col < len(row):
        return row[col]
    return ""


def _first_cell(block: Optional[CellBlock]) -> str:
    if not block or not block[0]:
        return ""
    return block[0][0]


def _window(block: Optional[CellBlock], descriptor: FieldDescriptor) -> CellBlock:
    """Rows of the block, cut to the field's capacity when it has one."""
    if not block:
        return []
    if descriptor.fixed_row_count is None:
        return list(block)
    return list(block[: descriptor.fixed_row_count])


def _is_empty(text: str) -> bool:
    t = text.strip()
    return t == "" or t == SENTINEL


def parse_int(raw: str, bounds: Tuple[int, int] = U8) -> int:
    """Sheet text -> int within bounds; anything else (incl. "-") is 0."""
    try:
        v = int(raw.strip())
    except ValueError:
        return 0
    lo, hi = bounds
    if v < lo or v > hi:
        return 0
    return v


def _text(raw: str) -> str:
    t = raw.strip()
    return "" if t == SENTINEL else t


# --- scalars ---
def decode_str(block: Optional[CellBlock], descriptor: FieldDescriptor) -> str:
    return _text(_first_cell(block))


def decode_int(block: Optional[CellBlock], descriptor: FieldDescriptor, bounds: Tuple[int, int] = U8) -> int:
    return parse_int(_first_cell(block), bounds)


def decode_generation(block: Optional[CellBlock], descriptor: FieldDescriptor) -> Union[int, str]:
    raw = _text(_first_cell(block))
    try:
        v = int(raw)
    except ValueError:
        return raw
    if U8[0] <= v <= U8[1]:
        return v
    return raw


# --- lists of plain text ---
def decode_column_list(block: Optional[CellBlock], descriptor: FieldDescriptor) -> List[str]:
    out: List[str] = []
    for row in _window(block, descriptor):
        for cell in row:
            if not _is_empty(cell):
                out.append(cell.strip())
    return out


def decode_specialization(block: Optional[CellBlock], descriptor: FieldDescriptor) -> List[str]:
    parts = (p.strip() for p in _first_cell(block).split(","))
    return [p for p in parts if p and p != SENTINEL]


# --- packed records ---
def decode_disciplines(block: Optional[CellBlock], descriptor: FieldDescriptor) -> List[Discipline]:
    out: List[Discipline] = []
    for row in _window(block, descriptor):
        name = _cell(row, 0)
        if _is_empty(name):
            continue
        out.append(Discipline(name=name.strip(), value=parse_int(_cell(row, 7))))
    return out


def decode_backgrounds(block: Optional[CellBlock], descriptor: FieldDescriptor) -> List[Background]:
    out: List[Background] = []
    for row in _window(block, descriptor):
        name = _cell(row, 0)
        if _is_empty(name):
            continue
        out.append(
            Background(
                name=name.strip(),
                value=parse_int(_cell(row, 7)),
                description=_text(_cell(row, 9)),
            )
        )
    return out


def decode_offense_pools(block: Optional[CellBlock], descriptor: FieldDescriptor) -> List[OffensePool]:
    out: List[OffensePool] = []
    for row in _window(block, descriptor):
        skill_name = _cell(row, 0)
        attribute_name = _cell(row, 10)
        if _is_empty(skill_name) or _is_empty(attribute_name):
            continue
        out.append(
            OffensePool(
                skill=NameValue(name=skill_name.strip(), value=parse_int(_cell(row, 7))),
                attribute=NameValue(name=attribute_name.strip(), value=parse_int(_cell(row, 14))),
                wildcard=NameValue(name=_text(_cell(row, 17)), value=parse_int(_cell(row, 21))),
                pool=parse_int(_cell(row, 24)),
                description=_text(_cell(row, 26)),
            )
        )
    return out


def decode_items(block: Optional[CellBlock], descriptor: FieldDescriptor) -> List[Item]:
    out: List[Item] = []
    for row in _window(block, descriptor):
        name = _cell(row, 0)
        if _is_empty(name):
            continue
        out.append(
            Item(
                name=name.strip(),
                trait_1=_text(_cell(row, 5)),
                trait_1_description=_text(_cell(row, 9)),
                trait_2=_text(_cell(row, 13)),
                trait_2_description=_text(_cell(row, 17)),
                additional_trait=_text(_cell(row, 21)),
                additional_trait_description=_text(_cell(row, 25)),
            )
        )
    return out


# --- rituals: "<TypeLetter><LevelDigit><Name>", e.g. "T2Blood Rage" ---
def parse_ritual_cell(cell: str) -> Tuple[str, Optional[int], str]:
    """Returns (ritual_type, level digit or None, name)."""
    text = cell.strip()
    if len(text) >= 3 and (text[0].isalnum() or text[0] == "_") and text[1].isdigit():
        name = text[2:].strip()
        if name:
            return RITUAL_TYPES.get(text[0], UNKNOWN_RITUAL_TYPE), int(text[1]), name
    return UNKNOWN_RITUAL_TYPE, None, text


def decode_rituals(block: Optional[CellBlock], descriptor: FieldDescriptor) -> List[Ritual]:
    out: List[Ritual] = []
    for row in _window(block, descriptor):
        cell = _cell(row, 0)
        if _is_empty(cell):
            continue
        ritual_type, digit, name = parse_ritual_cell(cell)
        level = parse_int(_cell(row, 7))
        if level == 0 and digit is not None:
            level = digit
        if level == 0:
            continue
        out.append(
            Ritual(
                name=name,
                level=level,
                description=_text(_cell(row, 9)),
                ritual_type=ritual_type,
            )
        )
    return out


# --- merits / flaws: one block, "V <type>: <name>" / "N <type>: <name>" ---
def parse_trait_cell(cell: str, marker: str) -> Tuple[str, str]:
    """
    Returns (type, name) for a merit ("V") or flaw ("N") cell.

    Cells read "<marker> <type>: <name>", or "<marker> <name>" for General traits.

    "V Allies: Mortal" -> ("Allies", "Mortal")
    "N Addiction: Blood" -> ("Addiction", "Blood")
    "V Eidetic Memory" -> ("General", "Eidetic Memory")
    anything else      -> ("General", whole cell)
    """
    text = cell.strip()
    if text.startswith(marker):
        rest = text[len(marker):]
        colon = rest.rfind(":")
        if colon != -1 and rest[colon + 1 :].strip():
            trait_type = rest[:colon].strip() or GENERAL
            return trait_type, rest[colon + 1 :].strip()
        if rest.startswith(" ") and rest.strip():
            return GENERAL, rest.strip()
    return GENERAL, text


def _trait_rows(block: Optional[CellBlock], descriptor: FieldDescriptor, flaws: bool) -> List[List[str]]:
    rows: List[List[str]] = []
    for row in _window(block, descriptor):
        cell = _cell(row, 0).strip()
        if _is_empty(cell):
            continue
        if cell.startswith("N") == flaws:
            rows.append(row)
    return rows


def decode_merits(block: Optional[CellBlock], descriptor: FieldDescriptor) -> List[Merit]:
    out: List[Merit] = []
    for row in _trait_rows(block, descriptor, flaws=False):
        merit_type, name = parse_trait_cell(_cell(row, 0), "V")
        out.append(Merit(name=name, value=parse_int(_cell(row, 7), I8), merit_type=merit_type))
    return out


def decode_flaws(block: Optional[CellBlock], descriptor: FieldDescriptor) -> List[Flaw]:
    out: List[Flaw] = []
    for row in _trait_rows(block, descriptor, flaws=True):
        flaw_type, name = parse_trait_cell(_cell(row, 0), "N")
        out.append(Flaw(name=name, value=parse_int(_cell(row, 7), I8), flaw_type=flaw_type))
    return out


# --- mandatory single-row fields ---
def _single_row(block: Optional[CellBlock], descriptor: FieldDescriptor, width: int) -> List[str]:
    if not block or not block[0]:
        raise MissingMandatoryBlock(descriptor.id.value)
    row = block[0]
    if len(row) < width:
        raise MissingMandatoryBlock(descriptor.id.value, f"expected {width} cells, got {len(row)}")
    return row


def decode_health_track(block: Optional[CellBlock], descriptor: FieldDescriptor) -> HealthTrack:
    row = _single_row(block, descriptor, 8)
    base_value = parse_int(row[5])
    with_boni = parse_int(row[7])

    lost = 0
    for cell in row[:HEALTH_BOXES]:
        if cell.strip() != HEALTH_MARKER:
            break
        lost += 1

    return HealthTrack(base_value=base_value, with_boni=with_boni, remaining=max(with_boni - lost, 0))


def decode_defense_pool(block: Optional[CellBlock], descriptor: FieldDescriptor) -> Dict[int, int]:
    """Sparse pool: key 0 <- col 0, keys 1..7 <- cols 2..8 (col 1 is a label)."""
    row = _single_row(block, descriptor, 9)
    pool: Dict[int, int] = {0: parse_int(row[0])}
    for col in range(2, 9):
        pool[col - 1] = parse_int(row[col])
    return pool

"""
Cell-block encoders: one update fragment -> one CellBlock (or None).

None means "field absent from the update": no write is emitted for it.
List-shaped fields always produce exactly fixed_row_count rows so stale
entries further down the sheet are cleared; more entries than rows is
rejected instead of truncated.
"""
from __future__ import annotations

from typing import Any, List, Optional, Sequence

from app.core.errors import FieldCapacityExceeded, IncompleteTraitUpdate
from app.core.sheets import CellBlock

from .decoder import GENERAL, RITUAL_TYPES, SENTINEL
from .layout import FieldDescriptor
from .schemas import BackgroundIn, DisciplineIn, FlawIn, MeritIn, RitualIn

DISCIPLINE_WIDTH = 8
BACKGROUND_WIDTH = 10
VALUE_COL = 7
DESCRIPTION_COL = 9

CLAN_PREFIX = "Clan"
UNKNOWN_RITUAL_LETTER = "U"
_RITUAL_LETTERS = {v: k for k, v in RITUAL_TYPES.items()}


def cell_value(value: Any) -> str:
    text = str(value)
    return SENTINEL if text == "0" else text


def _capacity(descriptor: FieldDescriptor, given: int) -> int:
    capacity = descriptor.fixed_row_count or 1
    if given > capacity:
        raise FieldCapacityExceeded(descriptor.id.value, capacity, given)
    return capacity


def _pad(rows: CellBlock, descriptor: FieldDescriptor, padding: Sequence[str]) -> CellBlock:
    capacity = _capacity(descriptor, len(rows))
    return rows + [list(padding) for _ in range(capacity - len(rows))]


# --- scalars ---
def encode_scalar(value: Any, descriptor: FieldDescriptor) -> Optional[CellBlock]:
    if value is None:
        return None
    return [[cell_value(value)]]


def encode_specialization(tags: Optional[List[str]], descriptor: FieldDescriptor) -> Optional[CellBlock]:
    if tags is None:
        return None
    joined = ", ".join(tags)
    return [[joined or SENTINEL]]


def encode_column_list(
    entries: Optional[List[str]],
    descriptor: FieldDescriptor,
    padding: str = SENTINEL,
) -> Optional[CellBlock]:
    if entries is None:
        return None
    return _pad([[str(e)] for e in entries], descriptor, [padding])


# --- packed records ---
def encode_disciplines(entries: Optional[List[DisciplineIn]], descriptor: FieldDescriptor) -> Optional[CellBlock]:
    if entries is None:
        return None
    rows: CellBlock = []
    for d in entries:
        row = [""] * DISCIPLINE_WIDTH
        row[0] = d.name
        row[VALUE_COL] = cell_value(d.value)
        rows.append(row)
    padding = [""] * DISCIPLINE_WIDTH
    padding[0] = SENTINEL
    padding[VALUE_COL] = SENTINEL
    return _pad(rows, descriptor, padding)


def encode_backgrounds(entries: Optional[List[BackgroundIn]], descriptor: FieldDescriptor) -> Optional[CellBlock]:
    if entries is None:
        return None
    rows: CellBlock = []
    for b in entries:
        row = [""] * BACKGROUND_WIDTH
        row[0] = b.name
        row[VALUE_COL] = cell_value(b.value)
        row[DESCRIPTION_COL] = b.description or ""
        rows.append(row)
    padding = [""] * BACKGROUND_WIDTH
    padding[VALUE_COL] = SENTINEL
    return _pad(rows, descriptor, padding)


def format_trait(marker: str, trait_type: str, name: str) -> str:
    if trait_type == GENERAL:
        return f"{marker} {name}"
    return f"{marker} {trait_type}: {name}"


def encode_merits_flaws(
    merits: Optional[List[MeritIn]],
    flaws: Optional[List[FlawIn]],
    descriptor: FieldDescriptor,
) -> Optional[CellBlock]:
    """
    Merits then flaws in one name column. Clan merits come from the clan and are never written.

    The column is rewritten as a whole, so one list without the other would wipe the other.
    """
    if merits is None and flaws is None:
        return None
    if merits is None:
        raise IncompleteTraitUpdate("merits")
    if flaws is None:
        raise IncompleteTraitUpdate("flaws")
    rows: CellBlock = []
    for m in merits:
        if m.name.strip().startswith(CLAN_PREFIX):
            continue
        rows.append([format_trait("V", m.merit_type, m.name)])
    for f in flaws:
        rows.append([format_trait("N", f.flaw_type, f.name)])
    return _pad(rows, descriptor, [SENTINEL])


def format_ritual(ritual: RitualIn) -> str:
    letter = _RITUAL_LETTERS.get(ritual.ritual_type, UNKNOWN_RITUAL_LETTER)
    return f"{letter}{ritual.level} {ritual.name}"


def encode_rituals(entries: Optional[List[RitualIn]], descriptor: FieldDescriptor) -> Optional[CellBlock]:
    if entries is None:
        return None
    return _pad([[format_ritual(r)] for r in entries], descriptor, [SENTINEL])

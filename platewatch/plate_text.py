# platewatch/plate_text.py
# Cleanup, grammar validation and confusion correction for OCR plate text

import logging
import re
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# Ordered: the first grammar that matches wins
PLATE_GRAMMARS = [
    ("LLLDDDD", re.compile(r'^[A-Z]{3}[0-9]{4}$')),          # ABC1234
    ("LLLDLDD", re.compile(r'^[A-Z]{3}[0-9][A-Z][0-9]{2}$')),  # ABC1D23 (Mercosul)
    ("LLDDDD", re.compile(r'^[A-Z]{2}[0-9]{4}$')),            # AB1234
]
CORRECTABLE_GRAMMAR = "LLLDDDD"

# Glyphs OCR engines confuse, both directions
NUMBER_TO_LETTER = {'0': 'O', '1': 'I', '5': 'S', '8': 'B', '2': 'Z'}
LETTER_TO_NUMBER = {letter: number for number, letter in NUMBER_TO_LETTER.items()}

MIN_PLATE_LENGTH = 6
MAX_PLATE_LENGTH = 8


@dataclass(frozen=True)
class PlateResolution:
    plate: Optional[str]
    cleaned: str
    grammar: Optional[str] = None
    corrected: bool = False

    @property
    def validated(self) -> bool:
        return self.grammar is not None


def clean_plate_text(text) -> str:
    """Uppercase and drop everything outside A-Z0-9."""
    if not text:
        return ""
    return re.sub(r"[^A-Z0-9]", "", str(text).upper())

def match_grammar(text: str) -> Optional[str]:
    for name, pattern in PLATE_GRAMMARS:
        if pattern.match(text):
            return name
    return None

def correct_confusions(text: str) -> Optional[str]:
    """
    Position-aware correction for the 7-character LLLDDDD layout.

    The first three positions are forced toward letters and the last four toward
    digits. Returns the corrected string if it validates as LLLDDDD, else None.
    """
    if len(text) != 7:
        return None

    letters = "".join(NUMBER_TO_LETTER.get(c, c) for c in text[:3])
    numbers = "".join(LETTER_TO_NUMBER.get(c, c) for c in text[3:])
    corrected = letters + numbers

    if match_grammar(corrected) == CORRECTABLE_GRAMMAR:
        return corrected
    return None

def resolve_plate_detailed(raw_text) -> PlateResolution:
    cleaned = clean_plate_text(raw_text)
    if not cleaned:
        return PlateResolution(plate=None, cleaned=cleaned)

    grammar = match_grammar(cleaned)
    if grammar:
        return PlateResolution(plate=cleaned, cleaned=cleaned, grammar=grammar)

    corrected = correct_confusions(cleaned)
    if corrected:
        logger.debug(f"Plate corrected: {cleaned} → {corrected}")
        return PlateResolution(plate=corrected, cleaned=cleaned, grammar=CORRECTABLE_GRAMMAR, corrected=True)

    if not MIN_PLATE_LENGTH <= len(cleaned) <= MAX_PLATE_LENGTH:
        return PlateResolution(plate=None, cleaned=cleaned)

    # Plausible length but no known layout: report it unvalidated
    return PlateResolution(plate=cleaned, cleaned=cleaned)

def resolve_plate(raw_text) -> Optional[str]:
    """Plate string for raw OCR text, or None when too unreliable to report."""
    return resolve_plate_detailed(raw_text).plate

"""
Panorama identifiers.

Ids have the form "pano_{rover}_{sol}_{sequence_index}". They are not
stored anywhere; they stay stable only because the sequence index is
derived deterministically from the photos of one rover/sol.
"""

import re
from typing import Optional

from marspano.models.panorama import PanoramaKey


ID_PREFIX = "pano"
_NON_NEGATIVE_INT = re.compile(r"[0-9]+")


def format_panorama_id(rover: str, sol: int, sequence_index: int) -> str:
    return f"{ID_PREFIX}_{rover.lower()}_{sol}_{sequence_index}"


def parse_panorama_id(panorama_id: Optional[str]) -> Optional[PanoramaKey]:
    """
    Parse a panorama id into its rover, sol and sequence index.

    Returns None for anything that is not exactly four underscore-separated
    parts starting with "pano" and ending with two non-negative integers.
    """
    if not panorama_id:
        return None

    parts = panorama_id.split("_")
    if len(parts) != 4 or parts[0] != ID_PREFIX:
        return None

    rover, sol_text, index_text = parts[1], parts[2], parts[3]
    if not rover:
        return None
    if not _NON_NEGATIVE_INT.fullmatch(sol_text):
        return None
    if not _NON_NEGATIVE_INT.fullmatch(index_text):
        return None

    return PanoramaKey(rover=rover.lower(), sol=int(sol_text), sequence_index=int(index_text))

from __future__ import annotations

from typing import Dict, List, Optional

# Canonical province list
SOUTH_AFRICAN_PROVINCES: List[str] = [
    "Eastern Cape",
    "Free State",
    "Gauteng",
    "KwaZulu-Natal",
    "Limpopo",
    "Mpumalanga",
    "North West",
    "Northern Cape",
    "Western Cape",
]

# Official short codes, as stored in the provinces.code column
PROVINCE_CODES: Dict[str, str] = {
    "Eastern Cape": "EC",
    "Free State": "FS",
    "Gauteng": "GP",
    "KwaZulu-Natal": "KZN",
    "Limpopo": "LP",
    "Mpumalanga": "MP",
    "North West": "NW",
    "Northern Cape": "NC",
    "Western Cape": "WC",
}

# Alternate spellings/abbreviations
_PROVINCE_NORMALIZATION_MAP = {
    "EASTERN CAPE": "Eastern Cape",
    "EC": "Eastern Cape",
    "FREE STATE": "Free State",
    "FS": "Free State",
    "ORANGE FREE STATE": "Free State",
    "GAUTENG": "Gauteng",
    "GP": "Gauteng",
    "GT": "Gauteng",
    "KWAZULU-NATAL": "KwaZulu-Natal",
    "KWAZULU NATAL": "KwaZulu-Natal",
    "KZN": "KwaZulu-Natal",
    "NATAL": "KwaZulu-Natal",
    "LIMPOPO": "Limpopo",
    "LP": "Limpopo",
    "MPUMALANGA": "Mpumalanga",
    "MP": "Mpumalanga",
    "NORTH WEST": "North West",
    "NORTH-WEST": "North West",
    "NW": "North West",
    "NORTHERN CAPE": "Northern Cape",
    "NC": "Northern Cape",
    "WESTERN CAPE": "Western Cape",
    "WC": "Western Cape",
}


def canonicalize_province(name: Optional[str]) -> Optional[str]:
    """Map abbreviations/synonyms to canonical province names."""
    if not name:
        return None
    cleaned = name.strip()
    if not cleaned:
        return None
    key = cleaned.upper().replace(".", "")
    return _PROVINCE_NORMALIZATION_MAP.get(key, cleaned)


def province_code(name: Optional[str]) -> Optional[str]:
    """Official code for a province name or abbreviation, if it is one."""
    canonical = canonicalize_province(name)
    if canonical is None:
        return None
    return PROVINCE_CODES.get(canonical)


def known_province_aliases(name: Optional[str]) -> List[str]:
    """
    Every spelling in the normalization map that points at ``name``,
    excluding the canonical name itself.
    """
    canonical = canonicalize_province(name)
    if canonical not in PROVINCE_CODES:
        return []
    return sorted(
        key for key, value in _PROVINCE_NORMALIZATION_MAP.items()
        if value == canonical and key != canonical.upper()
    )

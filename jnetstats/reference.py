"""
jnetstats/reference.py
======================
Static lookup tables: identity -> faction, faction -> colour, and the
named date ranges (card-pool eras) per format.

The bundled table lives in jnetstats/data/reference.json. A different file
can be supplied through JNETSTATS_REFERENCE_PATH or load_reference(path).
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional

from jnetstats.config import UNKNOWN_FACTION
from jnetstats.models import KnownRange
from jnetstats.periods import parse_timestamp, start_of_day

logger = logging.getLogger(__name__)

DEFAULT_REFERENCE_PATH = os.path.join(os.path.dirname(__file__), 'data', 'reference.json')

RUNNER_FACTIONS = (
    'criminal', 'anarch', 'shaper', 'adam', 'sunny_lebeau', 'apex', 'neutral_runner',
)
CORP_FACTIONS = ('jinteki', 'haas_bioroid', 'nbn', 'weyland_consortium', 'neutral_corp')
FACTION_ORDER = RUNNER_FACTIONS + CORP_FACTIONS + (UNKNOWN_FACTION,)
_FACTION_RANK = {faction: index for index, faction in enumerate(FACTION_ORDER)}

FACTION_LABELS = {
    'criminal': 'Criminal',
    'anarch': 'Anarch',
    'shaper': 'Shaper',
    'adam': 'Adam',
    'sunny_lebeau': 'Sunny',
    'apex': 'Apex',
    'neutral_runner': 'Neutral Runner',
    'jinteki': 'Jinteki',
    'haas_bioroid': 'Haas-Bioroid',
    'nbn': 'NBN',
    'weyland_consortium': 'Weyland',
    'neutral_corp': 'Neutral Corp',
    UNKNOWN_FACTION: 'Unknown',
}

CORPORATE_PREFIXES = {'Haas-Bioroid', 'Weyland Consortium', 'NBN', 'Jinteki'}


@dataclass(frozen=True)
class ReferenceData:
    identity_map: Mapping[str, str] = field(default_factory=dict)
    faction_colours: Mapping[str, str] = field(default_factory=dict)
    known_ranges: Mapping[str, tuple] = field(default_factory=dict)


@lru_cache(maxsize=8)
def _load_reference_file(path: str) -> ReferenceData:
    try:
        with open(path, encoding='utf-8') as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ValueError(f"Failed to load reference data from {path}: {e}")

    if not isinstance(raw, dict):
        raise ValueError(f"Reference data in {path} must be a JSON object")

    identity_map = {
        str(name): str(faction)
        for name, faction in (raw.get('identity_to_faction') or {}).items()
    }
    colours = {str(k): str(v) for k, v in (raw.get('faction_colours') or {}).items()}

    ranges = {}
    for fmt, rows in (raw.get('known_ranges') or {}).items():
        ranges[str(fmt).strip().lower()] = tuple(rows or ())

    logger.debug(
        "Loaded reference data from %s (%d identities, %d formats)",
        path, len(identity_map), len(ranges),
    )
    return ReferenceData(
        identity_map=MappingProxyType(identity_map),
        faction_colours=MappingProxyType(colours),
        known_ranges=MappingProxyType(ranges),
    )


def load_reference(path: Optional[str] = None) -> ReferenceData:
    """Load reference tables (bundled file by default). Results are cached per path."""
    return _load_reference_file(os.path.abspath(path or DEFAULT_REFERENCE_PATH))


def get_known_ranges(fmt: Optional[str], reference: Optional[ReferenceData] = None) -> List[KnownRange]:
    """Named date ranges for a format; empty for blank or unknown formats."""
    if not fmt or not fmt.strip():
        return []
    reference = reference or load_reference()
    rows = reference.known_ranges.get(fmt.strip().lower())
    if not rows:
        return []

    ranges = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        start = parse_timestamp(row.get('start'))
        end = parse_timestamp(row.get('end'))
        if start is None or end is None:
            continue
        ranges.append(KnownRange(
            label=str(row.get('label') or ''),
            start=start_of_day(start),
            end=start_of_day(end),
        ))
    return ranges


def faction_for_identity(identity: Optional[str], identity_map: Mapping[str, str]) -> str:
    if not identity:
        return UNKNOWN_FACTION
    return identity_map.get(identity) or UNKNOWN_FACTION


def short_identity_name(full_name: str) -> str:
    """'Haas-Bioroid: Precision Design' -> 'Precision Design'; 'Noise: ...' -> 'Noise'."""
    prefix, _, suffix = full_name.partition(':')
    prefix = prefix.strip()
    suffix = suffix.strip()
    if not suffix:
        return prefix or full_name
    if prefix in CORPORATE_PREFIXES:
        return suffix
    return prefix


def titleize(value: str) -> str:
    chunks = [part for part in re.split(r'[\s_-]+', value) if part]
    return ' '.join(chunk[:1].upper() + chunk[1:] for chunk in chunks)


def format_label(fmt: str) -> str:
    return titleize(re.sub(r'[_-]+', ' ', fmt))


def faction_label(faction: str) -> str:
    return FACTION_LABELS.get(faction) or titleize(re.sub(r'[_-]+', ' ', faction))


def faction_rank(faction: str) -> int:
    return _FACTION_RANK.get(faction, len(FACTION_ORDER))


def sort_factions(values: Iterable[str]) -> List[str]:
    return sorted(values, key=lambda faction: (faction_rank(faction), faction))

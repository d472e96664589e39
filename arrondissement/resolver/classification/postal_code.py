"""Postal code classification: derive a Paris arrondissement from a reverse-geocoded code."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

PARIS_PREFIX = "75"
_SUFFIX_RE = re.compile(r"[+-]?\d+")
_FULL_CODE_RE = re.compile(r"\d{5}")


@dataclass(frozen=True)
class NoCode:
    """The geocoder returned no postal code."""


@dataclass(frozen=True)
class Arrondissement:
    number: int
    raw_code: str


@dataclass(frozen=True)
class UnparsablePostalCode:
    raw_code: str


@dataclass(frozen=True)
class NotParisCode:
    raw_code: str


ClassificationResult = Union[NoCode, Arrondissement, UnparsablePostalCode, NotParisCode]


def _parse_suffix(code: str) -> int | None:
    suffix = code[-2:]
    if not _SUFFIX_RE.fullmatch(suffix):
        return None
    return int(suffix)


def classify_postal_code(postal_code: str | None, *, strict: bool = False) -> ClassificationResult:
    """Classify a postal code as a Paris arrondissement or something else.

    Checks run in order: presence, then the "75" prefix with a length of at
    least two, then a base-10 parse of the last two characters. By default no
    further validation happens, so "75" yields arrondissement 75 and "7599"
    yields 99. With ``strict`` the code must also be exactly five digits and
    the number must fall within 1-20, otherwise it is reported as
    ``NotParisCode``.
    """
    if postal_code is None:
        return NoCode()
    if not (postal_code.startswith(PARIS_PREFIX) and len(postal_code) >= 2):
        return NotParisCode(raw_code=postal_code)
    number = _parse_suffix(postal_code)
    if number is None:
        return UnparsablePostalCode(raw_code=postal_code)
    if strict and (not _FULL_CODE_RE.fullmatch(postal_code) or not 1 <= number <= 20):
        return NotParisCode(raw_code=postal_code)
    return Arrondissement(number=number, raw_code=postal_code)

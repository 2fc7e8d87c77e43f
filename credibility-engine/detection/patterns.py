"""
FILE DESCRIPTION: Locale pattern data for the page detectors.
KEY FUNCTIONS/CLASSES: PatternSet, load_pattern_set, find_reviewer_attribution, is_ymyl, normalize_text

Phrase lists live in detection/data/locales.json (or the file named by
EEAT_LOCALE_PATTERNS). Each locale entry is merged into one PatternSet, so a
new language is a data change only.
"""

import json
import re
import unicodedata
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Pattern, Sequence, Tuple

from crawler.core import ENABLED_LOCALES, LOCALE_PATTERNS_PATH, setup_logger

logger = setup_logger("crawler.patterns")

FLAGS = re.IGNORECASE | re.UNICODE

# Abbreviations whose trailing period does not end a reviewer name
TITLE_ABBREVIATIONS = {"dr.", "prof.", "mr.", "mrs.", "ms.", "st.", "med.", "dipl.", "mag.", "ing."}
NAME_TERMINATORS = ",;:!?"
MAX_NAME_TOKENS = 5

_APOSTROPHES = str.maketrans({"’": "'", "‘": "'", "ʼ": "'"})


@dataclass(frozen=True)
class OriginalityPathway:
    name: str
    weight: float
    patterns: Tuple[Pattern, ...]


@dataclass(frozen=True)
class ReviewerPhrase:
    locale: str
    phrase: str
    pattern: Pattern


@dataclass(frozen=True)
class ReviewerMatch:
    locale: str
    phrase: str
    name: str

    @property
    def raw_match(self) -> str:
        return f"{self.phrase} {self.name}"


@dataclass(frozen=True)
class PatternSet:
    locales: Tuple[str, ...]
    reviewer_phrases: Tuple[ReviewerPhrase, ...] = ()
    generic_reviewer_names: frozenset = field(default_factory=frozenset)
    perspective_headings: Tuple[Pattern, ...] = ()
    strong_experience: Tuple[Pattern, ...] = ()
    medium_experience: Tuple[Pattern, ...] = ()
    originality: Tuple[OriginalityPathway, ...] = ()
    experience_sections: Tuple[Pattern, ...] = ()
    ymyl_terms: Tuple[Pattern, ...] = ()


class PatternDataError(ValueError):
    """Raised when the locale pattern file is missing, malformed or selects no locale."""
    pass


def normalize_text(text: str) -> str:
    """NFC-normalizes and folds typographic apostrophes to '."""
    return unicodedata.normalize("NFC", text or "").translate(_APOSTROPHES)


def _compile_all(patterns: Iterable[str], locale: str, key: str) -> List[Pattern]:
    compiled = []
    for source in patterns:
        try:
            compiled.append(re.compile(normalize_text(source), FLAGS))
        except re.error as e:
            raise PatternDataError(f"invalid {key} pattern for locale {locale!r}: {source!r} ({e})") from e
    return compiled


def _reviewer_pattern(phrase: str) -> Pattern:
    words = [re.escape(w) for w in normalize_text(phrase).split()]
    body = r"\s+".join(words)
    return re.compile(
        rf"(?<!\w)(?P<phrase>{body})\s+(?P<name>\S+(?:[ \t]+\S+){{0,{MAX_NAME_TOKENS - 1}}})",
        FLAGS,
    )


def build_pattern_set(entries: Sequence[Dict], enabled: Optional[Sequence[str]] = None) -> PatternSet:
    """Merges locale entries (optionally filtered by locale code) into one PatternSet."""
    wanted = {l.lower() for l in enabled} if enabled else None
    selected = [e for e in entries if wanted is None or str(e.get("locale", "")).lower() in wanted]
    if not selected:
        raise PatternDataError(f"no locale pattern entries selected (enabled={list(enabled or [])})")

    reviewer: List[ReviewerPhrase] = []
    generic = set()
    headings: List[Pattern] = []
    strong: List[Pattern] = []
    medium: List[Pattern] = []
    pathways: List[OriginalityPathway] = []
    sections: List[Pattern] = []
    ymyl: List[Pattern] = []

    for entry in selected:
        locale = entry.get("locale")
        if not locale:
            raise PatternDataError("locale entry without a 'locale' code")

        for phrase in entry.get("reviewer_phrases", []):
            reviewer.append(ReviewerPhrase(locale, phrase, _reviewer_pattern(phrase)))
        generic.update(normalize_text(n).lower() for n in entry.get("generic_reviewer_names", []))
        headings.extend(_compile_all(entry.get("perspective_headings", []), locale, "perspective_headings"))

        phrases = entry.get("experience_phrases", {})
        strong.extend(_compile_all(phrases.get("strong", []), locale, "experience_phrases.strong"))
        medium.extend(_compile_all(phrases.get("medium", []), locale, "experience_phrases.medium"))

        for pathway in entry.get("originality", []):
            pathways.append(OriginalityPathway(
                name=pathway["pathway"],
                weight=float(pathway["weight"]),
                patterns=tuple(_compile_all(pathway.get("patterns", []), locale, "originality")),
            ))
        sections.extend(_compile_all(entry.get("experience_sections", []), locale, "experience_sections"))
        ymyl.extend(_compile_all(entry.get("ymyl_terms", []), locale, "ymyl_terms"))

    # Longer phrases first so "medically reviewed by" wins over "reviewed by"
    reviewer.sort(key=lambda r: len(r.phrase), reverse=True)

    return PatternSet(
        locales=tuple(e["locale"] for e in selected),
        reviewer_phrases=tuple(reviewer),
        generic_reviewer_names=frozenset(generic),
        perspective_headings=tuple(headings),
        strong_experience=tuple(strong),
        medium_experience=tuple(medium),
        originality=tuple(pathways),
        experience_sections=tuple(sections),
        ymyl_terms=tuple(ymyl),
    )


def load_pattern_set(path=None, enabled=None) -> PatternSet:
    """
    FLOW: Reads the locale JSON file -> Validates its shape ->
    Filters by EEAT_LOCALES (all locales when unset) -> Compiles a PatternSet.
    """
    path = Path(path or LOCALE_PATTERNS_PATH)
    enabled = ENABLED_LOCALES if enabled is None else enabled
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise PatternDataError(f"cannot read locale patterns from {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise PatternDataError(f"locale patterns in {path} are not valid JSON: {e}") from e

    entries = data.get("locales") if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise PatternDataError(f"{path}: expected a list of locale entries")

    pattern_set = build_pattern_set(entries, enabled)
    logger.debug(f"Loaded locale patterns {pattern_set.locales} from {path}")
    return pattern_set


@lru_cache(maxsize=1)
def default_pattern_set() -> PatternSet:
    return load_pattern_set()


def clean_reviewer_name(candidate: str) -> str:
    """
    Cuts a captured name at the first token that ends a sentence or clause.
    "Dr. Müller. Weitere" -> "Dr. Müller"; "J. Smith, MD" -> "J. Smith".
    """
    kept = []
    for token in candidate.split():
        if token[-1] in NAME_TERMINATORS:
            kept.append(token.rstrip(NAME_TERMINATORS))
            break
        if token.endswith("."):
            if token.lower() in TITLE_ABBREVIATIONS or (len(token) == 2 and token[0].isalpha()):
                kept.append(token)
                continue
            kept.append(token)
            break
        kept.append(token)
    return " ".join(kept).strip(" .")


def is_generic_name(name: str, patterns: PatternSet) -> bool:
    """'Staff', 'our editorial team', 'Redaktion' and the like are placeholders, not people."""
    lowered = name.lower()
    return lowered in patterns.generic_reviewer_names or lowered.split()[-1] in patterns.generic_reviewer_names


def is_ymyl(text: str, patterns: PatternSet) -> bool:
    """Health, money or tax topics in any enabled locale."""
    text = normalize_text(text)
    return any(p.search(text) for p in patterns.ymyl_terms)


def find_reviewer_attribution(text: str, patterns: PatternSet) -> Optional[ReviewerMatch]:
    """First reviewer attribution whose name is neither empty nor a generic placeholder."""
    text = normalize_text(text)
    for reviewer in patterns.reviewer_phrases:
        for match in reviewer.pattern.finditer(text):
            name = clean_reviewer_name(match.group("name"))
            if not name or is_generic_name(name, patterns):
                continue
            return ReviewerMatch(locale=reviewer.locale, phrase=match.group("phrase"), name=name)
    return None

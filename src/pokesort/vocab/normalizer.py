"""Text normalization shared by the catalog builder and the detector."""

import re
import unicodedata

# Literal fixes applied after lowercasing, before punctuation is stripped
SUBSTITUTIONS = [
    ("nidoran♀", "nidoran-f"),
    ("nidoran♂", "nidoran-m"),
    ("type:", "type"),
    ("mr.", "mr"),
    ("jr.", "jr"),
    ("sirfetch'd", "sirfetchd"),
    ("farfetch'd", "farfetchd"),
]

# Raw species string → display name, for forms plain title-casing gets wrong
DISPLAY_EXCEPTIONS = {
    "farfetchd": "Farfetchd",
    "sirfetchd": "Sirfetchd",
    "mr mime": "Mr Mime",
    "mr rime": "Mr Rime",
    "mime jr": "Mime Jr",
    "type null": "Type Null",
    "nidoran-f": "Nidoran-F",
    "nidoran-m": "Nidoran-M",
}

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_NON_TOKEN = re.compile(r"[^a-z0-9\- ]+")
_SPACES = re.compile(r"\s+")


def _fold(text: str) -> str:
    """Strip accents, lowercase and apply the literal substitutions."""
    decomposed = unicodedata.normalize("NFKD", text)
    s = "".join(c for c in decomposed if not unicodedata.combining(c)).lower()
    for old, new in SUBSTITUTIONS:
        s = s.replace(old, new)
    return s


def normalize(text: str) -> str:
    """Canonicalize free text into lowercase ASCII words separated by single spaces.

    The same function must be used for catalog keys and project haystacks,
    otherwise whole-word matching breaks.
    """
    s = _NON_ALNUM.sub(" ", _fold(text))
    return _SPACES.sub(" ", s).strip()


def normalize_tokens(text: str) -> str:
    """Like normalize(), but keeps hyphens so `ho-oh` stays a single corpus token."""
    s = _NON_TOKEN.sub(" ", _fold(text))
    return _SPACES.sub(" ", s).strip()


def _capitalize(word: str) -> str:
    if word.isdigit():
        return word
    return word[:1].upper() + word[1:]


def title_case_words(text: str) -> str:
    """Title-case space separated words, leaving numbers alone."""
    return " ".join(_capitalize(w) for w in text.lower().split())


def display_name(raw: str) -> str:
    """Human-readable name for a parsed species string.

    Hyphen-linked parts are capitalized individually (`porygon-z` → `Porygon-Z`).
    """
    s = _SPACES.sub(" ", raw.lower()).strip()
    if s in DISPLAY_EXCEPTIONS:
        return DISPLAY_EXCEPTIONS[s]
    words = []
    for word in s.split(" "):
        if not word:
            continue
        words.append("-".join(_capitalize(part) for part in word.split("-")))
    return " ".join(words)

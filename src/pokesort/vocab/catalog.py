"""Build the species catalog from the Pokédex token stream and the alias table."""

import os
from dataclasses import dataclass
from pathlib import Path

from pokesort.vocab.normalizer import display_name, normalize, normalize_tokens, title_case_words

DATA_DIR = Path(os.environ.get("POKESORT_DATA_DIR", str(Path(__file__).parent.parent / "data")))
TOKEN_STREAM_PATH = DATA_DIR / "pokedex_token_stream.txt"
ALIASES_PATH = DATA_DIR / "pokemon_aliases.tsv"

# A truncated or malformed token stream must not yield a usable-looking catalog
MIN_SPECIES = 900

# First word → continuations that merge with it into one two-word species
_COMPOUND_PREFIXES = {
    "mr": ("mime", "rime"),
    "mime": ("jr",),
    "type": ("null",),
    "tapu": ("koko", "lele", "bulu", "fini"),
    "great": ("tusk",),
    "scream": ("tail",),
    "brute": ("bonnet",),
    "flutter": ("mane",),
    "slither": ("wing",),
    "sandy": ("shocks",),
    "iron": (
        "treads", "bundle", "hands", "jugulis", "moth",
        "thorns", "valiant", "leaves", "boulder", "crown",
    ),
    "roaring": ("moon",),
    "walking": ("wake",),
    "gouging": ("fire",),
    "raging": ("bolt",),
}

COMPOUND_SPECIES = {
    (word, nxt): f"{word} {nxt}"
    for word, continuations in _COMPOUND_PREFIXES.items()
    for nxt in continuations
}


class CatalogError(ValueError):
    """The corpus cannot produce a usable catalog."""


@dataclass(frozen=True)
class CatalogEntry:
    key: str
    display: str


def parse_species(tokens: list[str]) -> list[str]:
    """Scan tokens left to right, merging two-word species by lookahead.

    Returns distinct species strings in first-seen order.
    """
    species = []
    i = 0
    while i < len(tokens):
        current = tokens[i]
        nxt = tokens[i + 1] if i + 1 < len(tokens) else None
        merged = COMPOUND_SPECIES.get((current, nxt))
        if merged:
            species.append(merged)
            i += 2
        else:
            species.append(current)
            i += 1
    return list(dict.fromkeys(species))


def build_catalog(
    corpus_text: str,
    alias_rows: list[tuple[str, str]] | None = None,
    min_species: int = MIN_SPECIES,
) -> list[CatalogEntry]:
    """Build a key-unique catalog: corpus species first, then aliases.

    Raises CatalogError when the corpus yields fewer than `min_species`
    distinct species.
    """
    species = parse_species(normalize_tokens(corpus_text).split())
    if len(species) < min_species:
        raise CatalogError(
            f"Parsed too few species from token stream ({len(species)} < {min_species})"
        )

    entries = [CatalogEntry(normalize(raw), display_name(raw)) for raw in species]

    for alternate, canonical in alias_rows or []:
        key = normalize(alternate)
        if not key:
            continue
        entries.append(CatalogEntry(key, canonical or title_case_words(key)))

    by_key = {}
    for entry in entries:
        if entry.key and entry.key not in by_key:
            by_key[entry.key] = entry
    return list(by_key.values())


def load_aliases(path: Path) -> list[tuple[str, str]]:
    """Read `alternate<TAB>canonical` rows; canonical is optional, `#` starts a comment."""
    rows = []
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.rstrip("\r\n")
            if not line.strip() or line.startswith("#"):
                continue
            alternate, _, canonical = line.partition("\t")
            alternate = alternate.strip()
            if not alternate:
                continue
            rows.append((alternate, canonical.strip()))
    return rows


def load_catalog(
    corpus_path: Path | None = None,
    aliases_path: Path | None = None,
    min_species: int = MIN_SPECIES,
) -> list[CatalogEntry]:
    """Load the packaged (or given) token stream and alias table into a catalog."""
    corpus_path = corpus_path or TOKEN_STREAM_PATH
    aliases_path = aliases_path or ALIASES_PATH
    corpus_text = Path(corpus_path).read_text(encoding="utf-8")
    return build_catalog(corpus_text, load_aliases(aliases_path), min_species=min_species)


def write_catalog(catalog: list[CatalogEntry], path: Path) -> None:
    """Dump the catalog as `key<TAB>display` lines."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for entry in catalog:
            f.write(f"{entry.key}\t{entry.display}\n")

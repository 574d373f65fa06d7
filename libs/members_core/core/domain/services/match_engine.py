"""
Tolerant staff-identity matching.

Assignment columns coming from the members table are free text typed by
different teams: "Frodo Baggins", "Baggins, Frodo", "fbaggins@example.com",
an internal SW id... Everything here is pure and total: any input, including
None, returns a value and nothing raises.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_EMAIL_LOCAL_SPLIT = re.compile(r"[._+\-]+")
_VALUE_SPLIT = re.compile(r"[\s,;/]+")

MIN_TOKEN_LEN = 2
MIN_EMAIL_FRAGMENT_LEN = 3
DEFAULT_CANDIDATE_LIMIT = 6


# ───────────────────────── primitives ─────────────────────────
def _text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize(value: object) -> str:
    """Lowercase, collapse non-alphanumeric runs to one space, trim."""
    return _NON_ALNUM.sub(" ", _text(value).lower()).strip()


def tokenize(value: object) -> list[str]:
    return [t for t in normalize(value).split(" ") if len(t) >= MIN_TOKEN_LEN]


def is_email(value: object) -> bool:
    text = _text(value)
    return "@" in text and not text.startswith("@")


def email_fragments(value: object) -> list[str]:
    """`frodo.baggins+sw@x.org` -> ['frodo', 'baggins']"""
    local = _text(value).lower().split("@", 1)[0]
    fragments: list[str] = []
    for part in _EMAIL_LOCAL_SPLIT.split(local):
        frag = normalize(part)
        if len(frag) >= MIN_EMAIL_FRAGMENT_LEN and frag not in fragments:
            fragments.append(frag)
    return fragments


# ───────────────────────── matcher ─────────────────────────
def matches(needle: object, candidate_fields: Iterable[object] | None, id_field: object = None) -> bool:
    """
    True when `needle` identifies the same person as one of `candidate_fields`.

    Rules are tried in order and the first hit wins:
      1. case-insensitive equality with `id_field`
      2. raw case-insensitive containment
      3. containment after normalization
      4. token subset (needle with >= 2 tokens)
      5. e-mail local-part fragments
    """
    raw = _text(needle)
    if not raw:
        return False
    lowered = raw.lower()
    fields = [_text(c) for c in (candidate_fields or []) if _text(c)]

    # 1. dedicated id field
    if _text(id_field) and _text(id_field).lower() == lowered:
        return True

    if not fields:
        return False

    # 2. raw containment
    if any(lowered in f.lower() for f in fields):
        return True

    # 3. normalized containment
    normalized_needle = normalize(raw)
    normalized_fields = [normalize(f) for f in fields]
    if normalized_needle and any(normalized_needle in f for f in normalized_fields if f):
        return True

    # 4. "Last, First" vs "First Last"
    needle_tokens = set(tokenize(raw))
    if len(needle_tokens) >= 2 and any(needle_tokens <= set(tokenize(f)) for f in fields):  # noqa: PLR2004
        return True

    # 5. e-mail login vs stored name
    if "@" in raw:
        fragments = email_fragments(raw)
        if len(fragments) >= 2:  # noqa: PLR2004
            return any(all(frag in f for frag in fragments) for f in normalized_fields)
        if fragments:
            return any(fragments[0] in f for f in normalized_fields)

    return False


# ───────────────────────── search keys ─────────────────────────
def _email_keys(email: str) -> list[str]:
    lowered = email.lower()
    keys = [lowered]
    local = normalize(lowered.split("@", 1)[0])
    if local:
        keys.append(local)
    keys.extend(email_fragments(lowered))
    return keys


def derive_search_keys(fields: Iterable[object]) -> list[str]:
    """
    Canonical keys for the assignment columns of one member row.

    Computed once when the row is cached, so the fast lookup is a plain
    containment query instead of re-normalizing every row on every read.
    """
    keys: set[str] = set()
    for value in fields:
        text = _text(value)
        if not text:
            continue
        if "@" in text:
            for part in _VALUE_SPLIT.split(text):
                if is_email(part):
                    keys.update(_email_keys(part))
                else:
                    keys.update(tokenize(part))
            continue
        full = normalize(text)
        if full:
            keys.add(full)
        keys.update(tokenize(text))
    return sorted(keys)


def rank_candidate_tokens(needles: Sequence[object], limit: int = DEFAULT_CANDIDATE_LIMIT) -> list[str]:
    """
    Lookup tokens for the indexed fast path, longest (most selective) first.

    E-mail needles contribute the address and its local-part fragments but
    never domain tokens, which would hit every member of that organization.
    """
    candidates: list[str] = []

    def _add(token: str) -> None:
        if token and len(token) >= MIN_TOKEN_LEN and token not in candidates:
            candidates.append(token)

    for needle in needles:
        text = _text(needle)
        if not text:
            continue
        if is_email(text):
            for key in _email_keys(text):
                _add(key)
            continue
        _add(normalize(text))
        for token in tokenize(text):
            _add(token)

    candidates.sort(key=len, reverse=True)
    return candidates[:max(limit, 0)]

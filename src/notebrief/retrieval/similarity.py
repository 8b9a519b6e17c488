"""Jaccard similarity between free-text strings."""

# Similarity of two texts that both have no tokens. Treated as "no signal"
# so fields empty on both sides never inflate a score.
EMPTY_SIMILARITY = 0.0


def tokenize(text: str) -> set[str]:
    """Lowercase, whitespace-delimited word set of ``text``."""
    return {token for token in text.lower().split() if token}


def jaccard_similarity(a: str, b: str) -> float:
    """Return |A ∩ B| / |A ∪ B| over the token sets of ``a`` and ``b``.

    Result is in [0, 1]. Both sides empty gives EMPTY_SIMILARITY; exactly one
    side empty gives 0.0.
    """
    tokens_a = tokenize(a)
    tokens_b = tokenize(b)

    if not tokens_a and not tokens_b:
        return EMPTY_SIMILARITY
    if not tokens_a or not tokens_b:
        return 0.0

    intersection = len(tokens_a & tokens_b)
    union = len(tokens_a) + len(tokens_b) - intersection
    return intersection / union

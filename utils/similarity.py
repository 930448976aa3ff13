# koppla/utils/similarity.py

from rapidfuzz.distance import Levenshtein


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance (insert/delete/substitute all cost 1)."""
    return Levenshtein.distance(a, b)


def calculate_name_similarity(a: str, b: str) -> float:
    """
    Similarity in [0, 1] defined as 1 - distance / max(len(a), len(b)).
    Two empty strings are identical.
    """
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / max_len

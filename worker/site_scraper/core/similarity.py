"""Levenshtein distance helpers used for fuzzy phrase matching."""


def levenshtein_distance(first: str, second: str) -> int:
    """Return the minimum number of single-character edits between two strings."""
    if first == second:
        return 0
    if not first:
        return len(second)
    if not second:
        return len(first)

    previous = list(range(len(second) + 1))
    for i, left in enumerate(first, start=1):
        current = [i]
        for j, right in enumerate(second, start=1):
            cost = 0 if left == right else 1
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + cost,
                )
            )
        previous = current
    return previous[-1]


def string_similarity(first: str, second: str) -> float:
    """Return a case-insensitive similarity ratio between 0 and 1."""
    left = first.lower()
    right = second.lower()
    if left == right:
        return 1.0
    if not left or not right:
        return 0.0
    return 1 - levenshtein_distance(left, right) / max(len(left), len(right))

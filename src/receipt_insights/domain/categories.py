from collections.abc import Iterable
from typing import Any


def clean_categories(value: Any) -> list[str]:
    """Trim labels and drop empty ones. Duplicates are kept."""
    if not value:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    categories: list[str] = []
    for item in value:
        if item is None:
            continue
        label = str(item).strip()
        if label:
            categories.append(label)
    return categories


def distinct_categories(groups: Iterable[Iterable[str]]) -> list[str]:
    labels: list[str] = []
    seen = set()
    for group in groups:
        for label in group:
            if label and label not in seen:
                labels.append(label)
                seen.add(label)
    return labels


def matches_category(categories: Iterable[str], wanted: str) -> bool:
    target = wanted.lower()
    return any(label.lower() == target for label in categories)

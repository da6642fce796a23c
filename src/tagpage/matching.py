"""Tag-of-interest matching with hierarchical wildcards (``#parent/*``)."""

from typing import Iterable, NamedTuple, Union

WILDCARD_SUFFIXES = ("/*", "*")


class WildcardTag(NamedTuple):
    is_wildcard: bool
    cleaned_tag: str


def canonical_tag(tag: str) -> str:
    """Prefix `tag` with ``#`` unless it already has one."""
    return tag if tag.startswith("#") else f"#{tag}"


def get_is_wildcard(tag: str) -> WildcardTag:
    """Split a tag of interest into its wildcard flag and its base tag."""
    for suffix in WILDCARD_SUFFIXES:
        if tag.endswith(suffix):
            return WildcardTag(True, tag[: -len(suffix)])
    return WildcardTag(False, tag)


def display_tag(tag_of_interest: str) -> str:
    """Tag text for headings: the first ``*`` removed, nothing else touched."""
    return tag_of_interest.replace("*", "", 1)


def _candidates(tags: Union[str, Iterable[object], None]) -> Iterable[str]:
    if tags is None:
        return []
    if isinstance(tags, str):
        return [tags]
    if not isinstance(tags, (list, tuple, set)):
        # YAML scalars such as `tags: 2024` or dates
        return [str(tags)]
    return [str(tag) for tag in tags if tag is not None]


def matches_tag_of_interest(
    tags: Union[str, Iterable[object], None],
    tag_of_interest: str,
) -> bool:
    """Check whether any of `tags` falls under `tag_of_interest`.

    A wildcard tag of interest matches its base tag and every tag nested
    below it (``#parent/*`` matches ``parent`` and ``parent/child`` but not
    ``parentother``). Otherwise only an exact match counts. Comparison is
    case-sensitive.

    Args:
        tags: One tag or a sequence of tags, with or without a leading ``#``.
        tag_of_interest: The page's tag, optionally wildcarded.
    """
    is_wildcard, cleaned = get_is_wildcard(tag_of_interest)
    base = canonical_tag(cleaned)
    for tag in _candidates(tags):
        full_tag = canonical_tag(tag)
        if full_tag == base:
            return True
        if is_wildcard and full_tag.startswith(f"{base}/"):
            return True
    return False

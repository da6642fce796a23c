"""Split a tag page into the parts a user owns and the region tagpage owns."""

from dataclasses import dataclass
from typing import List, Optional

FRONTMATTER_DELIMITER = "---"
SENTINEL_FENCE = "%%"
START_TOKEN = "tag-page-md"
END_TOKEN = "tag-page-md end"

# Emitted verbatim by the assembler; the blank line sits inside the region.
REGION_START = f"{SENTINEL_FENCE}\n{START_TOKEN}\n{SENTINEL_FENCE}\n"
REGION_END = f"\n{SENTINEL_FENCE}\n{END_TOKEN}\n{SENTINEL_FENCE}"


@dataclass(frozen=True)
class ParsedPage:
    """Text outside the managed region of an existing page."""
    frontmatter: str = ""
    before: str = ""
    after: str = ""
    found: bool = False


def _is_sentinel(lines: List[str], idx: int, token: str) -> bool:
    if idx + 2 >= len(lines):
        return False
    return (
        lines[idx].strip() == SENTINEL_FENCE
        and lines[idx + 1].strip() == token
        and lines[idx + 2].strip() == SENTINEL_FENCE
    )


def find_sentinel(lines: List[str], token: str, start: int = 0) -> Optional[int]:
    """Return the index of the first sentinel block for `token` at or after `start`."""
    for idx in range(start, len(lines)):
        if _is_sentinel(lines, idx, token):
            return idx
    return None


def _frontmatter_end(lines: List[str], limit: int) -> Optional[int]:
    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        return None
    for idx in range(1, limit):
        if lines[idx].strip() == FRONTMATTER_DELIMITER:
            return idx
    return None


def parse_page(raw_text: Optional[str]) -> ParsedPage:
    """Locate the managed region in `raw_text` and return the text around it.

    The first start sentinel wins, and the region closes at the first end
    sentinel after it. Anything a previous run wrote between them is dropped.

    Args:
        raw_text: Current page content. ``None`` is treated as empty.

    Returns:
        ParsedPage whose segments are verbatim slices of ``raw_text``. When no
        complete sentinel pair exists every segment is empty and ``found`` is
        False.
    """
    lines = (raw_text or "").split("\n")

    start = find_sentinel(lines, START_TOKEN)
    if start is None:
        return ParsedPage()
    end = find_sentinel(lines, END_TOKEN, start + 3)
    if end is None:
        return ParsedPage()

    fm_end = _frontmatter_end(lines, start)
    if fm_end is None:
        frontmatter = ""
        before_lines = lines[:start]
    else:
        frontmatter = "\n".join(lines[:fm_end + 1])
        before_lines = lines[fm_end + 1:start]

    return ParsedPage(
        frontmatter=frontmatter,
        before="\n".join(before_lines),
        after="\n".join(lines[end + 3:]),
        found=True,
    )


def has_start_sentinel(raw_text: str) -> bool:
    """Return True if the text opens a managed region, complete or not."""
    return find_sentinel(raw_text.split("\n"), START_TOKEN) is not None

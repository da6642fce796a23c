"""Markdown for the managed region of a tag page."""

import logging
from collections import OrderedDict
from typing import Iterable, List, Sequence

from tagpage.matching import display_tag, get_is_wildcard, matches_tag_of_interest
from tagpage.tag_info import FrontmatterTagDocument, TagInfo, TagMatchDetail

LOGGER = logging.getLogger(__name__)


def normalize_excerpt(excerpt: str) -> str:
    """Make `excerpt` a list item unless it already is one."""
    if excerpt.strip().startswith("-"):
        return excerpt
    return f"- {excerpt}"


def render_detail_blocks(details: Sequence[TagMatchDetail]) -> List[str]:
    """Group excerpts by file link and emit one collapsible quote block per file.

    Files keep the order in which they are first seen in `details`.
    """
    grouped: "OrderedDict[str, List[str]]" = OrderedDict()
    for detail in details:
        grouped.setdefault(detail.file_link, []).append(
            normalize_excerpt(detail.string_containing_tag)
        )

    blocks = []
    for file_link, excerpts in grouped.items():
        quoted = "\n".join(f"> {excerpt}" for excerpt in excerpts)
        blocks.append(f"> [!quote]+ In {file_link}\n{quoted}\n")
    return blocks


def files_with_frontmatter_tag(
    documents: Iterable[FrontmatterTagDocument],
    tag_of_interest: str,
) -> List[str]:
    """Bullet links for documents tagged with `tag_of_interest` in frontmatter.

    A document whose query property equals the tag of interest is the tag page
    itself and is left out.
    """
    links = []
    for doc in documents:
        if not doc.frontmatter_tags:
            continue
        if doc.query_property_value == tag_of_interest:
            continue
        if matches_tag_of_interest(doc.frontmatter_tags, tag_of_interest):
            links.append(f"- [[{doc.basename}]]")
    return links


def render_tag_content(
    tags_info: TagInfo,
    tag_of_interest: str,
    documents: Iterable[FrontmatterTagDocument] = (),
) -> List[str]:
    """Render the body of the managed region.

    Args:
        tags_info: Excerpts keyed by base tag.
        tag_of_interest: Tag the page is generated for, optionally wildcarded.
        documents: Documents with frontmatter tags, used for the file list.

    Returns:
        Markdown chunks in page order, to be joined with newlines.
    """
    content = [f"## Tag Content for {display_tag(tag_of_interest)}"]

    if len(tags_info) > 1:
        for base_tag in sorted(tags_info, key=len):
            content.append(f"### {base_tag}")
            content.extend(render_detail_blocks(tags_info[base_tag]))
    else:
        for details in tags_info.values():
            content.extend(render_detail_blocks(details))

    links = files_with_frontmatter_tag(documents, tag_of_interest)
    LOGGER.debug(f"{len(tags_info)} base tags, {len(links)} frontmatter files for {tag_of_interest}")
    if links:
        cleaned_tag = get_is_wildcard(tag_of_interest).cleaned_tag
        content.append(f"## Files with {cleaned_tag} in frontmatter")
        content.extend(links)
    return content

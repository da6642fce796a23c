"""Filesystem stand-ins for the host application: documents, tag search, page writes."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import yaml

from tagpage.matching import canonical_tag, matches_tag_of_interest
from tagpage.page import END_TOKEN, START_TOKEN, find_sentinel
from tagpage.tag_info import FrontmatterTagDocument, TagInfo, TagMatchDetail

LOGGER = logging.getLogger(__name__)

# Inline tag: '#' not glued to a word, another '#', or a path.
INLINE_TAG_RE = re.compile(r"(?<![\w#/])#([\w\-/]+)")

Diagnostics = Callable[[str, BaseException], None]


def log_diagnostic(message: str, exc: BaseException) -> None:
    """Default diagnostics sink."""
    LOGGER.warning(f"{message}: {exc}")


def split_frontmatter(text: str) -> Tuple[Optional[str], str]:
    """Return (yaml_text, body). `yaml_text` is None when there is no closed header."""
    lines = text.split("\n")
    if not lines or lines[0].strip() != "---":
        return None, text
    for idx in range(1, len(lines)):
        if lines[idx].strip() == "---":
            return "\n".join(lines[1:idx]), "\n".join(lines[idx + 1:])
    return None, text


def parse_frontmatter(text: str) -> Tuple[Dict[str, Any], str]:
    """Parse the YAML header of a markdown document.

    Raises:
        yaml.YAMLError: If the header is not valid YAML.
        ValueError: If a YAML timestamp is out of range.
    """
    yaml_text, body = split_frontmatter(text)
    if yaml_text is None:
        return {}, body
    data = yaml.safe_load(yaml_text)
    if not isinstance(data, dict):
        return {}, body
    return data, body


@dataclass
class Document:
    path: Path
    frontmatter: Dict[str, Any] = field(default_factory=dict)
    body: str = ""

    @property
    def basename(self) -> str:
        return self.path.stem

    @property
    def tags(self) -> Any:
        return self.frontmatter.get("tags")


def _unmanaged_lines(body: str) -> List[str]:
    """Body lines with any tag page managed regions removed."""
    lines = body.split("\n")
    kept: List[str] = []
    idx = 0
    while idx < len(lines):
        start = find_sentinel(lines, START_TOKEN, idx)
        if start is None:
            break
        end = find_sentinel(lines, END_TOKEN, start + 3)
        if end is None:
            break
        kept.extend(lines[idx:start])
        idx = end + 3
    kept.extend(lines[idx:])
    return kept


class Vault:
    """A directory tree of markdown documents."""

    def __init__(self, root: Union[str, Path], diagnostics: Optional[Diagnostics] = None):
        self.root = Path(root)
        self.diagnostics = diagnostics or log_diagnostic

    def markdown_files(self) -> List[Path]:
        files = []
        for candidate in self.root.rglob("*.md"):
            if not candidate.is_file():
                continue
            rel = candidate.relative_to(self.root)
            if any(part.startswith(".") for part in rel.parts):
                continue
            files.append(candidate)
        return sorted(files, key=lambda p: p.relative_to(self.root).as_posix())

    def read_document(self, path: Union[str, Path]) -> Document:
        """Read one document. A malformed YAML header is reported and treated as absent.

        Raises:
            OSError: If the file cannot be read.
        """
        path = Path(path)
        text = path.read_text(encoding="utf-8")
        try:
            frontmatter, body = parse_frontmatter(text)
        except (yaml.YAMLError, ValueError) as exc:
            self.diagnostics(f"Malformed frontmatter in {path}", exc)
            frontmatter, body = {}, split_frontmatter(text)[1]
        return Document(path=path, frontmatter=frontmatter, body=body)

    def documents(self) -> List[Document]:
        docs = []
        for path in self.markdown_files():
            try:
                docs.append(self.read_document(path))
            except (OSError, UnicodeDecodeError) as exc:
                self.diagnostics(f"Skipping unreadable document {path}", exc)
        LOGGER.debug(f"Read {len(docs)} documents from {self.root}")
        return docs

    def get_documents_with_frontmatter_tags(self, query_property: str) -> List[FrontmatterTagDocument]:
        return [
            FrontmatterTagDocument(
                basename=doc.basename,
                frontmatter_tags=doc.tags,
                query_property_value=doc.frontmatter.get(query_property),
            )
            for doc in self.documents()
            if doc.tags
        ]

    def find_tag_matches(self, tag_of_interest: str) -> TagInfo:
        """Collect every body line whose inline tags fall under `tag_of_interest`.

        Lines inside a tag page's managed region are skipped so generated
        pages never quote each other.
        """
        tags_info: TagInfo = {}
        for doc in self.documents():
            file_link = f"[[{doc.basename}]]"
            for line in _unmanaged_lines(doc.body):
                seen = set()
                for match in INLINE_TAG_RE.finditer(line):
                    tag = match.group(1).rstrip("/")
                    if not tag or tag in seen:
                        continue
                    seen.add(tag)
                    if matches_tag_of_interest(tag, tag_of_interest):
                        tags_info.setdefault(canonical_tag(tag), []).append(
                            TagMatchDetail(file_link, line.strip())
                        )
        LOGGER.debug(f"Found {len(tags_info)} base tags for {tag_of_interest}")
        return tags_info


def extract_frontmatter_tag_value(
    path: Union[str, Path],
    property_name: str,
    diagnostics: Optional[Diagnostics] = None,
) -> Optional[Any]:
    """Read one frontmatter property of a page, or None if it cannot be read.

    Read and parse failures go to `diagnostics` (the module logger by
    default) and are not raised.
    """
    report = diagnostics or log_diagnostic
    try:
        text = Path(path).read_text(encoding="utf-8")
        frontmatter, _ = parse_frontmatter(text)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        report(f"Cannot read frontmatter of {path}", exc)
        return None
    return frontmatter.get(property_name)


def swap_page_content(target_path: Union[str, Path], new_page_content: str) -> None:
    """Replace the page on disk with `new_page_content`; unchanged pages are not rewritten."""
    path = Path(target_path)
    if path.exists() and path.read_text(encoding="utf-8") == new_page_content:
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(new_page_content, encoding="utf-8")
    LOGGER.info(f"Wrote tag page {path}")

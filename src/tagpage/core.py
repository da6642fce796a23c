import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from tagpage.page import REGION_END, REGION_START, has_start_sentinel, parse_page
from tagpage.render import render_tag_content
from tagpage.settings import (
    SettingsError,
    TagPageSettings,
    default_page_path,
    load_settings,
)
from tagpage.tag_info import (
    DocumentCollection,
    TagInfo,
    tag_info_from_json,
    tag_info_to_json,
)
from tagpage.vault import Vault, extract_frontmatter_tag_value, swap_page_content

LOGGER = logging.getLogger(__name__)


def build_tag_page_content(
    collection: DocumentCollection,
    settings: TagPageSettings,
    tags_info: TagInfo,
    tag_of_interest: str,
    base_content: Optional[str] = "",
) -> str:
    """Regenerate the managed region of a tag page and keep everything around it.

    Args:
        collection: Source of documents with frontmatter tags.
        settings: Supplies the frontmatter query property used for self-exclusion.
        tags_info: Excerpts keyed by base tag.
        tag_of_interest: Tag the page is generated for, optionally wildcarded.
        base_content: Current page text; empty or None on first generation.

    Returns:
        The full new page text.
    """
    base_content = base_content or ""
    parsed = parse_page(base_content)

    frontmatter, before, after = parsed.frontmatter, parsed.before, parsed.after
    if not parsed.found and base_content.strip():
        if settings.keep_unmarked_content:
            LOGGER.info("No tag page region found; keeping existing content above it")
            before = base_content.rstrip("\n")
        else:
            LOGGER.warning(
                f"No tag page region found for {tag_of_interest}; "
                f"discarding {len(base_content)} characters of existing content"
            )

    parts: List[str] = []
    if frontmatter:
        parts.append(frontmatter)
    if before:
        parts.append(before)
    parts.append(REGION_START)

    documents = collection.get_documents_with_frontmatter_tags(settings.frontmatter_query_property)
    parts.extend(render_tag_content(tags_info, tag_of_interest, documents))

    parts.append(REGION_END)
    if after:
        parts.append(after)
    return "\n".join(parts)


async def generate_tag_page_content(
    collection: DocumentCollection,
    settings: TagPageSettings,
    tags_info: TagInfo,
    tag_of_interest: str,
    base_content: Optional[str] = "",
) -> str:
    """Awaitable entry point for event-driven callers; see build_tag_page_content."""
    return build_tag_page_content(collection, settings, tags_info, tag_of_interest, base_content)


def new_page_header(settings: TagPageSettings, tag_of_interest: str) -> str:
    """Frontmatter for a freshly created page, naming the tag it tracks."""
    return f"---\n{settings.frontmatter_query_property}: {json.dumps(tag_of_interest)}\n---"


def _fail(error: str, hint: str) -> None:
    click.echo(json.dumps({"error": error, "hint": hint}))
    sys.exit(2)


def _open_vault(vault_dir: str) -> Vault:
    root = Path(vault_dir)
    if not root.is_dir():
        _fail("vault_missing", f"Vault directory not found: {vault_dir}")
    return Vault(root)


def _load(vault: Vault, config: Optional[str], keep_unmarked: bool = False) -> TagPageSettings:
    try:
        settings = load_settings(vault.root, config)
    except SettingsError as exc:
        _fail("config_invalid", str(exc))
    if keep_unmarked:
        settings.keep_unmarked_content = True
    return settings


def _read_matches(matches: str) -> TagInfo:
    try:
        with open(matches, "r", encoding="utf-8") as handle:
            return tag_info_from_json(json.load(handle))
    except (OSError, json.JSONDecodeError, ValueError) as exc:
        _fail("matches_invalid", str(exc))


def _resolve_page(vault: Vault, settings: TagPageSettings, tag: str, page: Optional[str]) -> Path:
    if page:
        path = Path(page)
        return path if path.is_absolute() else vault.root / path
    return vault.root / default_page_path(settings, tag)


def _write_page(
    vault: Vault,
    settings: TagPageSettings,
    tags_info: TagInfo,
    tag: str,
    page_path: Path,
    dry_run: bool,
) -> Dict[str, Any]:
    exists = page_path.exists()
    try:
        base_content = page_path.read_text(encoding="utf-8") if exists else ""
    except (OSError, UnicodeDecodeError) as exc:
        _fail("page_unreadable", str(exc))

    new_content = asyncio.run(
        generate_tag_page_content(vault, settings, tags_info, tag, base_content)
    )
    if not exists:
        new_content = f"{new_page_header(settings, tag)}\n{new_content}"

    changed = new_content != base_content
    if dry_run:
        click.echo(new_content)
    else:
        swap_page_content(page_path, new_content)
    return {"ok": True, "page": str(page_path), "changed": changed, "base_tags": len(tags_info)}


@click.group()
@click.option("--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


@cli.command()
@click.option("--vault", "vault_dir", required=True, help="Directory containing the markdown documents")
@click.option("--tag", required=True, help="Tag of interest, e.g. '#project' or '#project/*'")
@click.option("--page", help="Tag page path, relative to the vault unless absolute")
@click.option("--matches", type=click.Path(exists=True, dir_okay=False), help="TagInfo JSON to use instead of scanning the vault")
@click.option("--config", help="Settings JSON file (default: <vault>/.tagpage.json)")
@click.option("--keep-unmarked", is_flag=True, help="Keep existing text of a page without a tag page region")
@click.option("--dry-run", is_flag=True, help="Print the page instead of writing it")
def generate(vault_dir, tag, page, matches, config, keep_unmarked, dry_run):
    """Generate or regenerate the tag page for `--tag`.

    Emits a JSON summary, or the page text with --dry-run.
    """
    vault = _open_vault(vault_dir)
    settings = _load(vault, config, keep_unmarked)
    tags_info = _read_matches(matches) if matches else vault.find_tag_matches(tag)
    page_path = _resolve_page(vault, settings, tag, page)
    result = _write_page(vault, settings, tags_info, tag, page_path, dry_run)
    if not dry_run:
        click.echo(json.dumps(result))


@cli.command()
@click.option("--vault", "vault_dir", required=True, help="Directory containing the markdown documents")
@click.option("--page", required=True, help="Existing tag page, relative to the vault unless absolute")
@click.option("--config", help="Settings JSON file (default: <vault>/.tagpage.json)")
@click.option("--dry-run", is_flag=True, help="Print the page instead of writing it")
def refresh(vault_dir, page, config, dry_run):
    """Regenerate a tag page using the tag stored in its frontmatter."""
    vault = _open_vault(vault_dir)
    settings = _load(vault, config)
    page_path = _resolve_page(vault, settings, "", page)
    tag = extract_frontmatter_tag_value(page_path, settings.frontmatter_query_property)
    if not tag or not isinstance(tag, str):
        _fail(
            "tag_missing",
            f"{page_path} has no '{settings.frontmatter_query_property}' frontmatter property",
        )
    tags_info = vault.find_tag_matches(tag)
    result = _write_page(vault, settings, tags_info, tag, page_path, dry_run)
    if not dry_run:
        click.echo(json.dumps(result))


@cli.command()
@click.option("--vault", "vault_dir", required=True, help="Directory containing the markdown documents")
@click.option("--tag", required=True, help="Tag of interest, e.g. '#project' or '#project/*'")
def search(vault_dir, tag):
    """Print the TagInfo JSON for `--tag`, in the format --matches accepts."""
    vault = _open_vault(vault_dir)
    click.echo(json.dumps(tag_info_to_json(vault.find_tag_matches(tag)), indent=2))


@cli.command()
@click.option("--page", required=True, type=click.Path(exists=True, dir_okay=False))
def inspect(page):
    """Show the frontmatter, before and after segments of a tag page."""
    try:
        text = Path(page).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        _fail("page_unreadable", str(exc))
    parsed = parse_page(text)
    click.echo(json.dumps({
        "found": parsed.found,
        "frontmatter": parsed.frontmatter,
        "before": parsed.before,
        "after": parsed.after,
    }))


@cli.command()
@click.option("--vault", "vault_dir", required=True, help="Directory containing the markdown documents")
def check(vault_dir):
    """Report tag pages whose managed region is not closed.

    Exits with code 1 when any page is malformed.
    """
    vault = _open_vault(vault_dir)
    malformed = 0
    for path in vault.markdown_files():
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            vault.diagnostics(f"Skipping unreadable document {path}", exc)
            continue
        if not has_start_sentinel(text):
            continue
        status = "ok" if parse_page(text).found else "malformed"
        if status == "malformed":
            malformed += 1
        click.echo(json.dumps({"page": path.relative_to(vault.root).as_posix(), "status": status}))
    if malformed:
        sys.exit(1)


def cli_entry():
    cli(prog_name="tagpage")


if __name__ == "__main__":
    cli_entry()

from tagpage.render import (
    files_with_frontmatter_tag,
    normalize_excerpt,
    render_detail_blocks,
    render_tag_content,
)
from tagpage.tag_info import FrontmatterTagDocument, TagMatchDetail


def test_normalize_excerpt():
    assert normalize_excerpt("just text") == "- just text"
    assert normalize_excerpt("- already a bullet") == "- already a bullet"
    assert normalize_excerpt("  - indented bullet") == "  - indented bullet"


def test_grouping_by_file_link():
    details = [
        TagMatchDetail("[[A]]", "line1"),
        TagMatchDetail("[[B]]", "line2"),
        TagMatchDetail("[[A]]", "line3"),
    ]
    blocks = render_detail_blocks(details)
    assert blocks == [
        "> [!quote]+ In [[A]]\n> - line1\n> - line3\n",
        "> [!quote]+ In [[B]]\n> - line2\n",
    ]


def test_single_base_tag_has_no_subheading():
    content = render_tag_content({"#x": [TagMatchDetail("[[A]]", "has #x")]}, "#x")
    assert content == [
        "## Tag Content for #x",
        "> [!quote]+ In [[A]]\n> - has #x\n",
    ]


def test_base_tags_sorted_by_length():
    tags_info = {
        "#long-tag-name": [TagMatchDetail("[[A]]", "a #long-tag-name")],
        "#x": [TagMatchDetail("[[B]]", "b #x")],
    }
    content = render_tag_content(tags_info, "#*")
    headings = [chunk for chunk in content if chunk.startswith("### ")]
    assert headings == ["### #x", "### #long-tag-name"]
    assert content.index("### #x") < content.index("### #long-tag-name")
    assert content[content.index("### #x") + 1] == "> [!quote]+ In [[B]]\n> - b #x\n"


def test_equal_length_base_tags_keep_order():
    tags_info = {
        "#p/bb": [TagMatchDetail("[[A]]", "a")],
        "#p/aa": [TagMatchDetail("[[B]]", "b")],
        "#p": [TagMatchDetail("[[C]]", "c")],
    }
    content = render_tag_content(tags_info, "#p/*")
    headings = [chunk for chunk in content if chunk.startswith("### ")]
    assert headings == ["### #p", "### #p/bb", "### #p/aa"]


def test_empty_tags_info_emits_heading_only():
    assert render_tag_content({}, "#parent/*") == ["## Tag Content for #parent/"]


def test_frontmatter_file_list():
    documents = [
        FrontmatterTagDocument("Child note", ["parent/child"]),
        FrontmatterTagDocument("Other note", ["parentother"]),
        FrontmatterTagDocument("Untagged", None),
        FrontmatterTagDocument("Parent page", ["parent"], query_property_value="#parent/*"),
    ]
    content = render_tag_content({}, "#parent/*", documents)
    assert content == [
        "## Tag Content for #parent/",
        "## Files with #parent in frontmatter",
        "- [[Child note]]",
    ]


def test_self_exclusion_requires_exact_value():
    documents = [
        FrontmatterTagDocument("Tag page", "project", query_property_value="#project"),
        FrontmatterTagDocument("Note", "project", query_property_value="#other"),
    ]
    assert files_with_frontmatter_tag(documents, "#project") == ["- [[Note]]"]


def test_scalar_frontmatter_tags():
    documents = [
        FrontmatterTagDocument("Year note", 2024),
        FrontmatterTagDocument("Flag note", True),
    ]
    assert files_with_frontmatter_tag(documents, "#2024") == ["- [[Year note]]"]
    assert files_with_frontmatter_tag(documents, "#parent/*") == []

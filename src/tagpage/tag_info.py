from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

from jsonschema import validate as jsonschema_validate, ValidationError

TAG_INFO_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": {
        "type": "array",
        "items": {
            "type": "object",
            "required": ["fileLink", "stringContainingTag"],
            "properties": {
                "fileLink": {"type": "string"},
                "stringContainingTag": {"type": "string"},
            },
            "additionalProperties": True,
        },
    },
}


@dataclass(frozen=True)
class TagMatchDetail:
    """One excerpt containing a tag, with a link back to its document."""
    file_link: str
    string_containing_tag: str


# base tag -> excerpts found under that literal tag
TagInfo = Dict[str, List[TagMatchDetail]]


@dataclass(frozen=True)
class FrontmatterTagDocument:
    """Read-only view of a document whose frontmatter carries tags."""
    basename: str
    frontmatter_tags: Union[str, List[Any], None]
    query_property_value: Optional[Any] = None


class DocumentCollection(Protocol):
    def get_documents_with_frontmatter_tags(
        self, query_property: str
    ) -> Iterable[FrontmatterTagDocument]:
        ...


def tag_info_from_json(data: Any) -> TagInfo:
    """Build TagInfo from its JSON form (``{"#tag": [{"fileLink", "stringContainingTag"}]}``).

    Raises:
        ValueError: If the payload does not match TAG_INFO_SCHEMA.
    """
    try:
        jsonschema_validate(instance=data, schema=TAG_INFO_SCHEMA)
    except ValidationError as exc:
        raise ValueError(f"Invalid tag info: {exc.message}") from exc
    return {
        base_tag: [
            TagMatchDetail(item["fileLink"], item["stringContainingTag"])
            for item in details
        ]
        for base_tag, details in data.items()
    }


def tag_info_to_json(tags_info: TagInfo) -> Dict[str, List[Dict[str, str]]]:
    return {
        base_tag: [
            {"fileLink": d.file_link, "stringContainingTag": d.string_containing_tag}
            for d in details
        ]
        for base_tag, details in tags_info.items()
    }

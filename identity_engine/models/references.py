"""
Owned References
Declarative description of every place an account id is stored outside the
accounts collection.

Three variants:
- TopLevelReference: a plain column, rewritten with one bulk update
- NestedReference: an id embedded in a JSON document column; documents are
  loaded, rewritten and saved one by one
- OwnedUniqueReference: ratings and stars, unique per (owner, target) by
  application logic only

Nested references are derived from the capabilities of each content kind.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, Tuple

# Path segment matching every element of a list
EACH = "*"


@dataclass(frozen=True)
class TopLevelReference:
    collection: str
    column: str

    @property
    def label(self) -> str:
        return f"{self.collection}.{self.column}"


@dataclass(frozen=True)
class NestedReference:
    """
    Account id nested inside a document.

    `path` starts with the column name, `EACH` descends into every list
    element, e.g. ("authors", EACH, "user").
    """
    collection: str
    path: Tuple[str, ...]

    @property
    def column(self) -> str:
        return self.path[0]

    @property
    def label(self) -> str:
        return f"{self.collection}.{'.'.join(self.path)}"

    def containment(self, account_id: str) -> Any:
        """JSON pattern matching documents that hold `account_id` at this path."""
        return _build_pattern(self.path[1:], account_id)

    def rewrite(self, document: Dict[str, Any], old_id: str, new_id: str) -> int:
        """Replaces `old_id` by `new_id` in place, returns the number of replacements."""
        return _rewrite(document, self.path, old_id, new_id)


class OwnedUniqueKind(str, Enum):
    RATING = "rating"
    STAR = "star"


@dataclass(frozen=True)
class OwnedUniqueReference:
    collection: str
    column: str
    kind: OwnedUniqueKind
    target_column: str = "ref"

    @property
    def label(self) -> str:
        return f"{self.collection}.{self.column}"


# ============================================================================
# CONTENT KINDS
# ============================================================================

class ContentKind(str, Enum):
    RELEASE = "release"
    BACKGLASS = "backglass"


@dataclass(frozen=True)
class ContentCapabilities:
    """Which embedded account references a content kind carries"""
    collection: str
    authorship: bool = False
    validation: bool = False
    moderation: bool = False

    def nested_references(self) -> Iterator[NestedReference]:
        if self.authorship:
            yield NestedReference(self.collection, ("authors", EACH, "user"))
        if self.validation:
            yield NestedReference(
                self.collection,
                ("versions", EACH, "files", EACH, "validation", "validated_by"),
            )
        if self.moderation:
            yield NestedReference(self.collection, ("moderation", "history", EACH, "created_by"))


CONTENT_CAPABILITIES: Dict[ContentKind, ContentCapabilities] = {
    ContentKind.RELEASE: ContentCapabilities("releases", authorship=True, validation=True, moderation=True),
    ContentKind.BACKGLASS: ContentCapabilities("backglasses", moderation=True),
}


# ============================================================================
# REGISTRY
# ============================================================================

TOP_LEVEL_REFERENCES: Tuple[TopLevelReference, ...] = (
    TopLevelReference("backglasses", "created_by"),
    TopLevelReference("builds", "created_by"),
    TopLevelReference("comments", "from_user"),
    TopLevelReference("files", "created_by"),
    TopLevelReference("games", "created_by"),
    TopLevelReference("game_requests", "created_by"),
    TopLevelReference("log_events", "actor"),
    TopLevelReference("log_events", "ref_user"),
    TopLevelReference("log_users", "user_id"),
    TopLevelReference("log_users", "actor"),
    TopLevelReference("media", "created_by"),
    TopLevelReference("releases", "created_by"),
    TopLevelReference("roms", "created_by"),
    TopLevelReference("tags", "created_by"),
    TopLevelReference("tokens", "created_by"),
)

NESTED_REFERENCES: Tuple[NestedReference, ...] = tuple(
    ref
    for capabilities in CONTENT_CAPABILITIES.values()
    for ref in capabilities.nested_references()
)

OWNED_UNIQUE_REFERENCES: Tuple[OwnedUniqueReference, ...] = (
    OwnedUniqueReference("ratings", "from_user", OwnedUniqueKind.RATING),
    OwnedUniqueReference("stars", "from_user", OwnedUniqueKind.STAR),
)


# ============================================================================
# PATH HELPERS
# ============================================================================

def _build_pattern(segments: Tuple[str, ...], value: Any) -> Any:
    if not segments:
        return value
    head, rest = segments[0], segments[1:]
    if head == EACH:
        return [_build_pattern(rest, value)]
    return {head: _build_pattern(rest, value)}


def _rewrite(node: Any, segments: Tuple[str, ...], old_id: str, new_id: str) -> int:
    head, rest = segments[0], segments[1:]

    if head == EACH:
        if not isinstance(node, list):
            return 0
        if not rest:
            count = 0
            for i, item in enumerate(node):
                if item == old_id:
                    node[i] = new_id
                    count += 1
            return count
        return sum(_rewrite(item, rest, old_id, new_id) for item in node)

    if not isinstance(node, dict) or head not in node:
        return 0
    if not rest:
        if node[head] == old_id:
            node[head] = new_id
            return 1
        return 0
    return _rewrite(node[head], rest, old_id, new_id)

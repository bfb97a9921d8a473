"""
Classification metadata carried in Shopify tags.

A product's HS classification lives in three reserved tag prefixes:
    code_<hs code>, confidence_<0-100>, status_<pending|approved|modified>
optionally behind a namespace (HS_TAG_NAMESPACE, e.g. "hs_" -> "hs_code_6109").

Only this module reads or writes those strings; everything past it works
with ClassificationMetadata.
"""
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from app.config import settings

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_MODIFIED = "modified"
STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_MODIFIED)

# Named filters accepted by list/count/search. "classified" = approved or modified.
FILTER_CLASSIFIED = "classified"
FILTERS = STATUSES + (FILTER_CLASSIFIED,)


@dataclass(frozen=True)
class ClassificationMetadata:
    code: Optional[str] = None
    confidence: Optional[int] = None
    status: Optional[str] = None

    def __post_init__(self):
        # Blank strings mean "unset" so an encode/decode round trip is exact
        for name in ("code", "status"):
            value = getattr(self, name)
            if value is not None:
                value = str(value).strip()
                # Shopify splits tags on commas
                if "," in value:
                    raise ValueError(f"{name} must not contain a comma, got {value!r}")
                object.__setattr__(self, name, value or None)
        if self.confidence is not None:
            confidence = int(self.confidence)
            if not 0 <= confidence <= 100:
                raise ValueError(f"confidence must be between 0 and 100, got {confidence}")
            object.__setattr__(self, "confidence", confidence)

    @property
    def effective_status(self) -> str:
        """Status used for filtering: no status tag means pending."""
        return self.status or STATUS_PENDING

    def merged(self, other: "ClassificationMetadata") -> "ClassificationMetadata":
        """Fields set on other override ours."""
        return ClassificationMetadata(
            code=other.code if other.code is not None else self.code,
            confidence=other.confidence if other.confidence is not None else self.confidence,
            status=other.status if other.status is not None else self.status,
        )

    def to_dict(self) -> dict:
        return {"hsCode": self.code, "confidence": self.confidence, "status": self.effective_status}


def normalize_tags(raw: Union[str, Iterable[str], None]) -> list[str]:
    """
    Shopify REST returns tags as one comma-joined string, GraphQL as a list.
    Both become an ordered list of trimmed, non-empty, de-duplicated tags.
    A list entry containing commas is split the way Shopify would store it.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        parts = raw.split(",")
    else:
        parts = [part for t in raw if t is not None for part in str(t).split(",")]
    seen = set()
    tags = []
    for part in parts:
        tag = part.strip()
        if tag and tag not in seen:
            seen.add(tag)
            tags.append(tag)
    return tags


def normalize_filter(name: Optional[str]) -> Optional[str]:
    """'hs_approved' / 'Approved' -> 'approved'; unknown or empty -> None (no filtering)."""
    if not name:
        return None
    value = str(name).strip().lower()
    if value.startswith("hs_"):
        value = value[3:]
    return value if value in FILTERS else None


class TagCodec:
    """Decode/encode ClassificationMetadata to and from a tag list."""

    def __init__(self, namespace: str = ""):
        self.namespace = namespace or ""
        self.code_prefix = f"{self.namespace}code_"
        self.confidence_prefix = f"{self.namespace}confidence_"
        self.status_prefix = f"{self.namespace}status_"
        self._reserved = (self.code_prefix, self.confidence_prefix, self.status_prefix)

    def is_metadata_tag(self, tag: str) -> bool:
        return tag.startswith(self._reserved)

    def decode(self, tags: Union[str, Iterable[str], None]) -> ClassificationMetadata:
        """
        Pure function of the tags. Tags are processed in order and the last
        tag per prefix wins; an empty "code_" or "status_" clears the field.
        A confidence that is not an integer in 0..100 is skipped (never raises)
        and leaves any earlier value in place.
        """
        code = confidence = status = None
        for tag in normalize_tags(tags):
            if tag.startswith(self.code_prefix):
                code = tag[len(self.code_prefix):] or None
            elif tag.startswith(self.confidence_prefix):
                try:
                    value = int(tag[len(self.confidence_prefix):])
                except ValueError:
                    continue
                if 0 <= value <= 100:
                    confidence = value
            elif tag.startswith(self.status_prefix):
                status = tag[len(self.status_prefix):] or None
        return ClassificationMetadata(code=code, confidence=confidence, status=status)

    def strip(self, tags: Union[str, Iterable[str], None]) -> list[str]:
        """Non-metadata tags in original relative order."""
        return [t for t in normalize_tags(tags) if not self.is_metadata_tag(t)]

    def encode(self, tags: Union[str, Iterable[str], None], metadata: ClassificationMetadata) -> list[str]:
        """
        Remove every reserved-prefix tag, then append code, confidence, status
        (in that order) for whichever fields are set.
        """
        out = self.strip(tags)
        if metadata.code is not None:
            out.append(f"{self.code_prefix}{metadata.code}")
        if metadata.confidence is not None:
            out.append(f"{self.confidence_prefix}{metadata.confidence}")
        if metadata.status is not None:
            out.append(f"{self.status_prefix}{metadata.status}")
        return out

    @staticmethod
    def matches(metadata: ClassificationMetadata, status_filter: Optional[str]) -> bool:
        """Filter predicate over decoded metadata; unknown/None filter matches everything."""
        name = normalize_filter(status_filter)
        if name is None:
            return True
        if name == STATUS_PENDING:
            return metadata.status is None or metadata.status == STATUS_PENDING
        if name == FILTER_CLASSIFIED:
            return metadata.status in (STATUS_APPROVED, STATUS_MODIFIED)
        return metadata.status == name


default_codec = TagCodec(settings.HS_TAG_NAMESPACE)


def decode_tags(tags) -> ClassificationMetadata:
    return default_codec.decode(tags)


def encode_tags(tags, metadata: ClassificationMetadata) -> list[str]:
    return default_codec.encode(tags, metadata)


def matches_filter(metadata: ClassificationMetadata, status_filter: Optional[str]) -> bool:
    return TagCodec.matches(metadata, status_filter)

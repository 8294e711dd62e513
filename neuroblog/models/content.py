"""Content models for the suggestion pipeline."""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate an opaque entity id."""
    return uuid4().hex


class SuggestionStatus(str, Enum):
    """Moderation state of a suggestion."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PUBLISHED = "published"


class PostStatus(str, Enum):
    """Publication state of a post."""

    DRAFT = "draft"
    PUBLISHED = "published"


class GenerationMode(str, Enum):
    """What triggered a generation cycle."""

    ON_DEMAND = "on_demand"
    AUTONOMOUS = "autonomous"


class TopicCandidate(BaseModel):
    """A normalized trending subject used to seed one generation attempt."""

    title: str = Field(..., description="Headline")
    description: str = Field(..., description="Short description or lede")
    source: str = Field(..., description="Publisher or provider name")
    url: Optional[str] = Field(None, description="Origin URL")
    published_at: datetime = Field(default_factory=utcnow)
    category: str = Field("General", description="Coarse subject category")
    unique_id: str = Field(..., description="Hash of title and timestamp")


class ImageAttachment(BaseModel):
    """An illustrative image attached to a suggestion."""

    url: str
    caption: str = ""
    credit: str = ""
    credit_url: Optional[str] = None


class Caller(BaseModel):
    """Identity of whoever invokes a lifecycle operation."""

    user_id: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class _DraftFields(BaseModel):
    title: str
    body: str
    summary: str
    tags: List[str] = Field(default_factory=list)
    category: str = "General"
    read_time: str = "8-10 min read"
    publish_date: str = ""


class ParsedDraft(_DraftFields):
    """Draft decoded from a well-formed upstream completion."""

    kind: Literal["parsed"] = "parsed"


class FallbackDraft(_DraftFields):
    """Draft synthesized when the completion could not be used."""

    kind: Literal["fallback"] = "fallback"
    reason: str = ""


Draft = Annotated[Union[ParsedDraft, FallbackDraft], Field(discriminator="kind")]


class Suggestion(BaseModel):
    """An AI-generated blog post awaiting moderation."""

    id: str = Field(default_factory=new_id)
    title: str = Field(..., min_length=1, max_length=120)
    body: str = Field(..., description="Formatted long-form text")
    summary: str
    tags: List[str] = Field(default_factory=list)
    category: str = "General"
    images: List[ImageAttachment] = Field(default_factory=list)
    source: str = Field(..., description="Originating source and topic title")
    origin_url: Optional[str] = None
    external_id: Optional[str] = None
    read_time: str = "8-10 min read"
    publish_date: str = ""
    status: SuggestionStatus = SuggestionStatus.PENDING
    generated_at: datetime = Field(default_factory=utcnow)
    approved_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    moderator_notes: Optional[str] = None
    post_id: Optional[str] = None

    @model_validator(mode="after")
    def check_post_link(self) -> "Suggestion":
        """A post is linked exactly when the suggestion was approved or published."""
        materialized = self.status in (
            SuggestionStatus.APPROVED,
            SuggestionStatus.PUBLISHED,
        )
        if materialized != (self.post_id is not None):
            raise ValueError(
                f"post_id must be set if and only if status is approved or "
                f"published (status={self.status.value}, post_id={self.post_id})"
            )
        return self

    def transitioned(self, **changes: Any) -> "Suggestion":
        """Return a validated copy with ``changes`` applied."""
        data = self.model_dump()
        data.update(changes)
        return Suggestion.model_validate(data)


class Post(BaseModel):
    """A blog article created from a moderated suggestion."""

    id: str = Field(default_factory=new_id)
    title: str
    body: str
    summary: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    status: PostStatus = PostStatus.DRAFT
    author_id: str
    news_source: Optional[str] = None
    featured: bool = True
    read_time: Optional[str] = None
    publish_date: Optional[str] = None
    featured_image: Optional[ImageAttachment] = None
    created_at: datetime = Field(default_factory=utcnow)


class GenerationResult(BaseModel):
    """Outcome of one generation cycle."""

    mode: GenerationMode
    suggestions: List[Suggestion] = Field(default_factory=list)
    skipped_reason: Optional[str] = None

    @property
    def count(self) -> int:
        return len(self.suggestions)


class ModerationResult(BaseModel):
    """A suggestion after a moderation action, with the post it produced."""

    suggestion: Suggestion
    post: Optional[Post] = None

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List


class NewsProvider(str, Enum):
    SKY = "sky"
    BBC = "bbc"
    # Items coming from an ad-hoc source URL rather than a known provider.
    OTHER = "other"


class Category(str, Enum):
    GENERAL = "general"
    TECHNOLOGY = "technology"


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True)
class FeedWorkItem:
    """One feed to fetch: consumed exactly once by a fetch task."""
    provider: NewsProvider
    url: str


@dataclass(frozen=True)
class Guid:
    value: str = ""
    is_permalink: bool = False


@dataclass(frozen=True)
class RawItem:
    title: str = ""
    link: str = ""
    description: str = ""
    pub_date: str = ""
    guid: Guid = field(default_factory=Guid)


@dataclass(frozen=True)
class RawChannel:
    title: str = ""
    description: str = ""
    link: str = ""
    image_url: str = ""
    language: str = ""
    ttl: int = 0
    items: List[RawItem] = field(default_factory=list)


@dataclass(frozen=True)
class RawFeed:
    """A decoded feed document, before normalization."""
    channel: RawChannel = field(default_factory=RawChannel)


@dataclass(frozen=True)
class NewsItem:
    """
    Stable public model representing a normalized news item.

    WARNING: Do not change fields lightly. The HTTP layer and the cache serialize it.
    """
    title: str
    description: str
    link: str
    published_at: datetime
    provider: NewsProvider
    provider_logo_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "link": self.link,
            "publish_date": self.published_at.isoformat(),
            "provider": self.provider.value,
            "provider_logo_url": self.provider_logo_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NewsItem":
        return cls(
            title=data.get("title", ""),
            description=data.get("description", ""),
            link=data.get("link", ""),
            published_at=datetime.fromisoformat(data["publish_date"]),
            provider=NewsProvider(data["provider"]),
            provider_logo_url=data.get("provider_logo_url", ""),
        )


@dataclass(frozen=True)
class Article:
    title: str
    description: str
    content: str
    link: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "content": self.content,
            "link": self.link,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Article":
        return cls(
            title=data.get("title", ""),
            description=data.get("description", ""),
            content=data.get("content", ""),
            link=data.get("link", ""),
        )

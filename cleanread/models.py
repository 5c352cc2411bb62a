"""Data models passed between the pipeline stages."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class FetchResult:
    """Raw response handed from the fetcher to the DOM builder."""

    status_code: int
    url: str
    content: bytes
    content_type: Optional[str] = None


@dataclass
class PageMetadata:
    """Metadata read from the untouched document."""

    title: Optional[str] = None
    byline: Optional[str] = None
    excerpt: Optional[str] = None
    site_name: Optional[str] = None
    published_time: Optional[str] = None


@dataclass
class ExtractedContent:
    """Draft article produced by the extractor, before sanitizing."""

    title: Optional[str]
    content: str
    byline: Optional[str] = None
    excerpt: Optional[str] = None
    site_name: Optional[str] = None
    published_time: Optional[str] = None


@dataclass(frozen=True)
class Article:
    """Final, immutable extraction result."""

    title: str
    content: str
    length: int
    reading_time: int
    byline: Optional[str] = None
    excerpt: Optional[str] = None
    site_name: Optional[str] = None
    published_time: Optional[str] = None

    def to_dict(self) -> dict:
        """Return the record exposed to HTTP clients."""
        return {
            "title": self.title,
            "byline": self.byline,
            "content": self.content,
            "excerpt": self.excerpt,
            "length": self.length,
            "siteName": self.site_name,
            "publishedTime": self.published_time,
            "readingTime": self.reading_time,
        }

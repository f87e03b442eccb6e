"""Coverage comment discovery, anti-spam decisions and lifecycle."""

from covguard.comments.antispam import AntiSpamEngine, has_significant_coverage_change
from covguard.comments.discovery import LEGACY_MARKERS, CommentDiscovery
from covguard.comments.manager import PRCommentManager
from covguard.comments.metadata import embed_metadata, extract_metadata

__all__ = [
    "LEGACY_MARKERS",
    "AntiSpamEngine",
    "CommentDiscovery",
    "PRCommentManager",
    "embed_metadata",
    "extract_metadata",
    "has_significant_coverage_change",
]

"""
Source-category handling.

Two static tables live here:
- CATEGORY_SLUGS maps a source-site category label onto a catalog
  category slug (used when importing items).
- NAV_KEYWORD_LABELS infers a category label from breadcrumb and
  navigation text when a detail page states none explicitly.

The label-to-slug table sits behind the CategoryMapper interface so it can
be replaced without touching extraction or import code.
"""

import re
from abc import ABC, abstractmethod
from typing import Dict, Optional, Sequence, Tuple

DEFAULT_CATEGORY_SLUG = "utilities"

# Insertion order matters for the substring scan
CATEGORY_SLUGS: Dict[str, str] = {
    "productivity": "productivity",
    "development": "development",
    "design": "design",
    "utilities": "utilities",
    "entertainment": "entertainment",
    "education": "education",
    "business": "business",
    "graphics": "graphics-design",
    "graphic design": "graphics-design",
    "video": "video-audio",
    "audio": "video-audio",
    "music & audio": "video-audio",
    "social": "social-networking",
    "games": "games",
    "health": "health-fitness",
    "health & fitness": "health-fitness",
    "lifestyle": "lifestyle",
    "lifestyle & hobby": "lifestyle",
    "finance": "finance",
    "reference": "reference",
    "security": "security",
    "system utilities": "utilities",
    "internet utilities": "utilities",
    "developer tools": "development",
    "photography": "graphics-design",
    "ai": "productivity",
    "browsing": "utilities",
    "customization": "utilities",
    "medical software": "health-fitness",
    "travel": "lifestyle",
}

# (keywords, label); first entry with any keyword present wins
NAV_KEYWORD_LABELS: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("music", "audio"), "Music & Audio"),
    (("system", "utilities"), "System Utilities"),
    (("video",), "Video"),
    (("photo",), "Photography"),
    (("productivity",), "Productivity"),
    (("development", "developer"), "Developer Tools"),
    (("games",), "Games"),
    (("education",), "Education"),
    (("business",), "Business"),
    (("customization",), "Customization"),
    (("finance",), "Finance"),
    (("graphic", "design"), "Graphic Design"),
    (("health", "fitness"), "Health & Fitness"),
    (("internet",), "Internet Utilities"),
    (("lifestyle", "hobby"), "Lifestyle & Hobby"),
    (("medical",), "Medical Software"),
    (("security",), "Security"),
    (("travel",), "Travel"),
    (("dvd",), "DVD Software"),
    (("converter",), "Video Converters"),
    (("editor",), "Video Editors"),
    (("player",), "Video Players"),
    (("recording",), "Video Recording"),
    (("streaming",), "Video Streaming"),
    (("dj", "mixing"), "DJ Mixing Software"),
    (("radio",), "Radio"),
    (("automation",), "Automation"),
    (("backup",), "Backup"),
    (("cleaner",), "Cleaners"),
    (("clock", "alarm"), "Clocks & Alarms"),
    (("compression",), "Compression"),
    (("contextual menu",), "Contextual Menus"),
    (("diagnostic",), "Diagnostic Software"),
    (("disk utility",), "Disk Utilities"),
    (("emulation",), "Emulation"),
    (("file management",), "File Management"),
    (("font manager",), "Font Managers"),
    (("maintenance", "optimization"), "Maintenance & Optimization"),
    (("network software",), "Network Software"),
    (("printer", "scanner"), "Printer & Scanner Drivers"),
    (("recovery",), "Recovery"),
    (("synchronization",), "Synchronization"),
    (("usb driver",), "USB Drivers"),
    (("virtualization",), "Virtualization"),
)


def infer_category_label(text: Optional[str]) -> Optional[str]:
    """
    Guess a category label from breadcrumb/navigation text.

    Keywords match at a word start, so "photo" also matches "Photography".

    Example:
        >>> infer_category_label("Home > Audio > Players")
        'Music & Audio'
    """
    if not text:
        return None
    lowered = text.lower()
    for keywords, label in NAV_KEYWORD_LABELS:
        if any(re.search(rf"\b{re.escape(kw)}", lowered) for kw in keywords):
            return label
    return None


class CategoryMapper(ABC):
    """Maps a source category label onto a catalog category slug."""

    @abstractmethod
    def slug_for(self, label: Optional[str]) -> str:
        raise NotImplementedError


class StaticCategoryMapper(CategoryMapper):
    """
    Table-driven mapper: exact label match first, then the first table key
    contained in the label.

    Example:
        >>> StaticCategoryMapper().slug_for("Music & Audio")
        'video-audio'
        >>> StaticCategoryMapper().slug_for("Something Else")
        'utilities'
    """

    def __init__(self, table: Optional[Dict[str, str]] = None, default: str = DEFAULT_CATEGORY_SLUG):
        self.table = {k.lower(): v for k, v in (table or CATEGORY_SLUGS).items()}
        self.default = default

    def slug_for(self, label: Optional[str]) -> str:
        key = (label or "").strip().lower()
        if not key:
            return self.default
        if key in self.table:
            return self.table[key]
        # whole-word containment keeps "ai" from matching "email"
        for name, slug in self.table.items():
            if re.search(rf"\b{re.escape(name)}\b", key):
                return slug
        return self.default

"""Topic classification and the navigation structure consumed by the viewer."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from docpipe.config import Settings
from docpipe.errors import ManifestError
from docpipe.processor.normalizer import NormalizedItem
from docpipe.storage import read_json

logger = logging.getLogger(__name__)

DEFAULT_TOPIC = "core-concepts"


@dataclass(frozen=True)
class Topic:
    id: str
    title: str
    description: str
    icon: str


# Navigation order.
TOPICS: tuple[Topic, ...] = (
    Topic("getting-started", "Getting Started",
          "Begin your journey with Experience Builder", "🚀"),
    Topic("core-concepts", "Core Concepts",
          "Understand the fundamental building blocks", "📚"),
    Topic("widgets", "Widgets & Components",
          "Learn about available widgets and how to use them", "🧩"),
    Topic("data-sources", "Data Sources",
          "Connect and manage your data", "📊"),
    Topic("actions-triggers", "Actions & Triggers",
          "Create interactive experiences", "⚡"),
    Topic("deployment", "Deployment",
          "Share your applications with the world", "🌐"),
    Topic("humanitarian", "Humanitarian Use Cases",
          "Real-world applications for disaster response", "🏥"),
)

# Classification priority; first rule with a matching keyword wins.
_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("getting-started", ("getting started", "introduction", "basics")),
    ("widgets", ("widget",)),
    ("data-sources", ("data", "source", "layer")),
    ("actions-triggers", ("action", "trigger", "event")),
    ("deployment", ("deploy", "publish", "share")),
    ("humanitarian", ("humanitarian", "disaster", "emergency", "red cross")),
)


def classify_topic(content: str) -> str:
    """Return the topic id for *content* by case-insensitive keyword match."""
    lowered = content.lower()
    for topic_id, keywords in _RULES:
        if any(keyword in lowered for keyword in keywords):
            return topic_id
    return DEFAULT_TOPIC


def build_structure(items: Iterable[NormalizedItem]) -> dict[str, Any]:
    """Group *items* by topic; topics with no items are left out entirely."""
    grouped: dict[str, list[NormalizedItem]] = {topic.id: [] for topic in TOPICS}
    for item in items:
        grouped[classify_topic(item.content)].append(item)

    sections: list[dict[str, Any]] = []
    navigation: list[dict[str, str]] = []
    for topic in TOPICS:
        members = grouped[topic.id]
        if not members:
            continue
        sections.append({
            "id": topic.id,
            "title": topic.title,
            "description": topic.description,
            "content": [item.to_dict() for item in members],
            "icon": topic.icon,
        })
        navigation.append({"id": topic.id, "title": topic.title, "icon": topic.icon})

    return {
        "sections": sections,
        "navigation": navigation,
        "metadata": {
            "generated": datetime.now(timezone.utc).isoformat(),
            "totalSections": len(sections),
        },
    }


def build_index(structure: dict[str, Any], settings: Settings) -> dict[str, Any]:
    """Summarise *structure* for the viewer's landing page."""
    return {
        "title": settings.site_title,
        "description": settings.site_description,
        "lastUpdated": datetime.now(timezone.utc).isoformat(),
        "sections": [
            {
                "id": s["id"],
                "title": s["title"],
                "description": s["description"],
                "icon": s["icon"],
                "contentCount": len(s["content"]),
            }
            for s in structure["sections"]
        ],
    }


# ---------------------------------------------------------------------------
# Viewer consumption
# ---------------------------------------------------------------------------

_DEFAULT_CONTENT: dict[str, Any] = {
    "manifest": None,
    "content": [],
    "structure": {
        "sections": [
            {
                "id": "getting-started",
                "title": "Getting Started",
                "description": "Begin your journey with Experience Builder",
                "icon": "🚀",
                "content": [{
                    "id": "welcome",
                    "content": (
                        "# Welcome to Experience Builder\n\n"
                        "Experience Builder lets you create web apps by arranging "
                        "widgets on a page and connecting them to your maps and data, "
                        "without writing code.\n"
                    ),
                }],
            },
            {
                "id": "core-concepts",
                "title": "Core Concepts",
                "description": "Understand the fundamental building blocks",
                "icon": "📚",
                "content": [{
                    "id": "building-blocks",
                    "content": (
                        "# The Building Blocks\n\n"
                        "Every app is made of pages, widgets that show information, "
                        "data sources that feed them, and actions that connect them.\n"
                    ),
                }],
            },
        ],
        "navigation": [
            {"id": "getting-started", "title": "Getting Started", "icon": "🚀"},
            {"id": "core-concepts", "title": "Core Concepts", "icon": "📚"},
        ],
    },
}


def default_content() -> dict[str, Any]:
    return copy.deepcopy(_DEFAULT_CONTENT)


def load_viewer_content(path: Path) -> dict[str, Any]:
    """Load ``content.json`` the way the viewer does.

    Falls back to the built-in default content when the file is missing,
    unreadable, or has fewer than two sections.
    """
    try:
        data = read_json(path)
    except (OSError, ManifestError) as exc:
        logger.warning("Error loading content from %s: %s", path, exc)
        return default_content()

    sections = None
    if isinstance(data, dict) and isinstance(data.get("structure"), dict):
        sections = data["structure"].get("sections")
    if not isinstance(sections, list) or len(sections) < 2:
        return default_content()
    return data

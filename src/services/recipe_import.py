# src/services/recipe_import.py
import logging
from dataclasses import dataclass
from typing import List

from .fetcher import import_from_platform, scrape_recipe
from .ids import detect_platform_and_id, validate_http_url
from .types import RecipeDraft

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreationOption:
    key: str
    label: str
    available: bool = True


# Order matches the "Create Recipe From" menu
CREATION_OPTIONS: List[CreationOption] = [
    CreationOption("web-scrape", "Web Scrape URL"),
    CreationOption("ai-assistant", "AI Assistant", available=False),
    CreationOption("instagram", "Import from Instagram"),
    CreationOption("youtube", "Import from YouTube"),
]


def creation_options() -> List[CreationOption]:
    return list(CREATION_OPTIONS)


def import_recipe(url: str, timeout: float = 15.0) -> RecipeDraft:
    """
    Turn a link into an unsaved recipe draft.

    YouTube and Instagram links are read from the platform metadata
    (source "imported"); any other page is scraped (source "scraped").
    """
    target = validate_http_url(url)
    if detect_platform_and_id(target):
        return import_from_platform(target)

    logger.info("Scraping recipe page: %s", target)
    return scrape_recipe(target, timeout=timeout)

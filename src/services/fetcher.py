from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterable

import httpx
import yt_dlp
from bs4 import BeautifulSoup

from .errors import (
    FetchFailedError,
    InvalidURLError,
    NetworkTimeoutError,
    NoRecipeFoundError,
    PrivateOrUnavailableError,
)
from .ids import detect_platform_and_id
from .types import RecipeDraft

logger = logging.getLogger(__name__)

WHITESPACE_PATTERN = re.compile(r"\s+")
HASHTAG_PATTERN = re.compile(r"#(\w+)")
USER_AGENT = "Mozilla/5.0 (compatible; RecipeShareBot/1.0)"
MAX_TAGS = 6


def _clean_string(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = WHITESPACE_PATTERN.sub(" ", value).strip()
    return stripped or None


def _clean_list(values: Iterable[object]) -> list[str]:
    out: list[str] = []
    for value in values:
        text = _clean_string(value)
        if text:
            out.append(text)
    return out


def _as_list(value: object) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


# ---------------------------------------------------------------------------
# Web pages (schema.org Recipe)
# ---------------------------------------------------------------------------


def fetch_html(url: str, timeout: float = 15.0) -> str:
    try:
        with httpx.Client(timeout=timeout, follow_redirects=True, headers={"User-Agent": USER_AGENT}) as client:
            response = client.get(url)
            response.raise_for_status()
            return response.text
    except httpx.TimeoutException as error:
        raise NetworkTimeoutError(url, timeout) from error
    except httpx.HTTPStatusError as error:
        raise FetchFailedError(f"HTTP error fetching page: {error}") from error
    except httpx.HTTPError as error:
        raise FetchFailedError(f"Network error fetching page: {error}") from error


def _is_recipe_node(node: dict) -> bool:
    node_type = node.get("@type")
    types = node_type if isinstance(node_type, list) else [node_type]
    return "Recipe" in types


def _find_recipe_node(data: object) -> dict | None:
    if isinstance(data, list):
        for item in data:
            found = _find_recipe_node(item)
            if found:
                return found
        return None

    if not isinstance(data, dict):
        return None

    if _is_recipe_node(data):
        return data

    return _find_recipe_node(data.get("@graph"))


def _json_ld_blocks(soup: BeautifulSoup) -> Iterable[object]:
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        if not raw:
            continue
        try:
            yield json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("Skipping malformed JSON-LD block")


def _instruction_texts(value: object) -> list[str]:
    steps: list[str] = []
    for entry in _as_list(value):
        if isinstance(entry, str):
            steps.extend(_clean_list(entry.split("\n")))
        elif isinstance(entry, dict):
            if entry.get("@type") == "HowToSection":
                steps.extend(_instruction_texts(entry.get("itemListElement")))
            else:
                text = _clean_string(entry.get("text")) or _clean_string(entry.get("name"))
                if text:
                    steps.append(text)
    return steps


def _image_url(value: object) -> str | None:
    for entry in _as_list(value):
        if isinstance(entry, str):
            return _clean_string(entry)
        if isinstance(entry, dict):
            url = _clean_string(entry.get("url"))
            if url:
                return url
    return None


def _keywords(node: dict) -> list[str]:
    tags: list[str] = []
    for key in ("recipeCategory", "recipeCuisine", "keywords"):
        for entry in _as_list(node.get(key)):
            if isinstance(entry, str):
                tags.extend(_clean_list(entry.split(",")))
    unique: list[str] = []
    for tag in tags:
        if tag.lower() not in {item.lower() for item in unique}:
            unique.append(tag)
    return unique[:MAX_TAGS]


def _author_name(value: object) -> str | None:
    for entry in _as_list(value):
        if isinstance(entry, str):
            return _clean_string(entry)
        if isinstance(entry, dict):
            name = _clean_string(entry.get("name"))
            if name:
                return name
    return None


def _meta_content(soup: BeautifulSoup, *names: str) -> str | None:
    for name in names:
        tag = soup.find("meta", attrs={"property": name}) or soup.find("meta", attrs={"name": name})
        if tag and tag.get("content"):
            content = _clean_string(tag["content"])
            if content:
                return content
    return None


def parse_recipe_html(html: str, url: str) -> RecipeDraft:
    """
    Build a draft from a recipe page.

    Prefers a schema.org Recipe JSON-LD block; falls back to the Open Graph
    and <title> tags when the page has none.

    Raises:
        NoRecipeFoundError: When the page yields no title at all
    """
    soup = BeautifulSoup(html, features="html.parser")

    node = None
    for block in _json_ld_blocks(soup):
        node = _find_recipe_node(block)
        if node:
            break

    if node:
        return RecipeDraft(
            source="scraped",
            source_url=url,
            title=_clean_string(node.get("name")),
            description=_clean_string(node.get("description")),
            ingredients=_clean_list(_as_list(node.get("recipeIngredient") or node.get("ingredients"))),
            instructions=_instruction_texts(node.get("recipeInstructions")),
            tags=_keywords(node),
            image_url=_image_url(node.get("image")),
            author=_author_name(node.get("author")),
        )

    title = _meta_content(soup, "og:title") or (_clean_string(soup.title.string) if soup.title else None)
    if not title:
        raise NoRecipeFoundError(url)

    return RecipeDraft(
        source="scraped",
        source_url=url,
        title=title,
        description=_meta_content(soup, "og:description", "description"),
        image_url=_meta_content(soup, "og:image"),
    )


def scrape_recipe(url: str, timeout: float = 15.0) -> RecipeDraft:
    html = fetch_html(url, timeout=timeout)
    draft = parse_recipe_html(html, url)
    logger.info("Scraped recipe draft: url=%s, title=%r, ingredients=%d", url, draft.title, len(draft.ingredients))
    return draft


# ---------------------------------------------------------------------------
# Video platforms (YouTube / Instagram)
# ---------------------------------------------------------------------------


def _create_ydl_options() -> dict:
    return {
        "quiet": True,
        "noprogress": True,
        "check_formats": False,
        "skip_download": True,
    }


def _check_video_availability(info: dict) -> None:
    is_private = info.get("is_private")
    availability = info.get("availability")
    if is_private or availability in {"private", "needs_auth"}:
        raise PrivateOrUnavailableError("Video is private or requires login.")


def _extract_thumbnail(info: dict) -> str | None:
    direct_url = _clean_string(info.get("thumbnail")) or _clean_string(info.get("thumbnail_url"))
    if direct_url:
        return direct_url
    for entry in reversed(_as_list(info.get("thumbnails"))):
        if isinstance(entry, dict) and _clean_string(entry.get("url")):
            return _clean_string(entry.get("url"))
    return None


def draft_from_video_info(info: dict, url: str, platform: str) -> RecipeDraft:
    description = info.get("description") if isinstance(info.get("description"), str) else None
    hashtags = HASHTAG_PATTERN.findall(description or "")
    tags = _clean_list([*_as_list(info.get("tags")), *hashtags])[:MAX_TAGS]

    return RecipeDraft(
        source="imported",
        source_url=url,
        title=_clean_string(info.get("title")),
        description=_clean_string(description),
        tags=tags,
        image_url=_extract_thumbnail(info),
        author=_clean_string(info.get("uploader")) or _clean_string(info.get("channel")),
        platform=platform,
    )


def import_from_platform(url: str) -> RecipeDraft:
    detected = detect_platform_and_id(url)
    if detected is None:
        raise InvalidURLError(f"URL is not a YouTube or Instagram link: {url}")
    platform, _item_id = detected

    try:
        with yt_dlp.YoutubeDL(_create_ydl_options()) as ydl:
            info = ydl.extract_info(url, download=False)
    except yt_dlp.utils.DownloadError as error:
        raise FetchFailedError(f"Error reading {platform} metadata: {error}") from error
    except (ConnectionError, TimeoutError) as error:
        raise FetchFailedError(f"Network error reading {platform} metadata: {error}") from error

    if not info:
        raise PrivateOrUnavailableError("Post is private or unavailable")
    _check_video_availability(info)

    draft = draft_from_video_info(info, url, platform)
    logger.info("Imported %s draft: url=%s, title=%r", platform, url, draft.title)
    return draft

"""
Lyrics extraction from HTML pages

Each known lyrics site has an adapter that knows where the lyrics live in
its markup; pages from any other host go through a generic heuristic that
looks for the largest multi-line text block. Adapters are registered by
host domain, so supporting a new site means adding one class:

    class ExampleAdapter(SiteAdapter):
        domain = "example.com"
        selectors = ("div.song-lyrics",)

    extractor = ContentExtractor()
    extractor.register(ExampleAdapter())

An extraction that yields ten characters or fewer is treated as "not
found" (None), never as an error.
"""

import re
from typing import Dict, Iterable, List, Optional

from bs4 import BeautifulSoup, Tag

from ..config.settings import ExtractionConfig, get_settings
from ..utils.helpers import host_matches, host_of
from ..utils.logger import get_logger
from .normalizer import DEFAULT_NORMALIZER, LyricsNormalizer


logger = get_logger(__name__)

BR_RE = re.compile(r"\s*<br[^>]*>\s*", re.I)

# Elements considered by the generic heuristic
GENERIC_TAGS = ["div", "p", "section", "article", "pre", "td"]


def get_soup(html: str) -> BeautifulSoup:
    """Parse HTML with line breaks turned into newlines"""
    html = BR_RE.sub("\n", html or "")
    return BeautifulSoup(html, "html.parser")


def element_text(element: Tag) -> str:
    """Text of an element with scripts and styles dropped"""
    for junk in element.find_all(["script", "style", "noscript"]):
        junk.decompose()
    return element.get_text().strip()


def join_texts(elements: Iterable[Tag], separator: str = "\n") -> str:
    texts = [element_text(el) for el in elements]
    return separator.join(t for t in texts if t).strip()


class SiteAdapter:
    """
    Extraction strategy for one lyrics site

    selectors are CSS selectors tried in order; the first one that yields
    text wins. Subclasses override scrape() when a site needs more than a
    selector list.
    """

    domain = ""
    selectors = ()
    separator = "\n"

    def scrape(self, soup: BeautifulSoup) -> Optional[str]:
        for selector in self.selectors:
            elements = soup.select(selector)
            if not elements:
                continue
            text = join_texts(elements, self.separator)
            if text:
                return text
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.domain})"


class MojimAdapter(SiteAdapter):
    """mojim.com (魔鏡歌詞網), Big5 pages with lyrics in #fsZx3 or #fsZx1/#fsZx2"""

    domain = "mojim.com"
    selectors = ("#fsZx3", "#fsZx1", "#fsZx2")

    # Site watermark and annotation lines
    NOISE_RE = re.compile(r"^(?:[※●].*|.*mojim\.com.*|.*魔鏡歌詞網.*)$", re.I | re.M)

    def scrape(self, soup: BeautifulSoup) -> Optional[str]:
        text = super().scrape(soup)
        if not text:
            return None
        return self.NOISE_RE.sub("", text).strip() or None


class KKBoxAdapter(SiteAdapter):
    """kkbox.com, one <p> per paragraph inside .lyrics"""

    domain = "kkbox.com"
    selectors = (".lyrics p", "div.lyrics")
    separator = "\n\n"


class GeniusAdapter(SiteAdapter):
    """genius.com, lyrics split over several containers"""

    domain = "genius.com"
    selectors = (
        "[data-lyrics-container=true]",
        "div.lyrics",
        "div[class*=Lyrics__Container]",
    )

    def scrape(self, soup: BeautifulSoup) -> Optional[str]:
        # Song headers and contributor notes inside the containers
        for excluded in soup.select("[data-exclude-from-selection=true]"):
            excluded.decompose()
        return super().scrape(soup)


class AZLyricsAdapter(SiteAdapter):
    """azlyrics.com, unlabelled <div> right after the ringtone banner"""

    domain = "azlyrics.com"
    selectors = ("div.col-xs-12.col-lg-8.text-center > div:not([class])",)

    def scrape(self, soup: BeautifulSoup) -> Optional[str]:
        ringtone = soup.select_one(".ringtone")
        if ringtone is not None:
            lyrics_div = ringtone.find_next_sibling("div")
            if lyrics_div is not None:
                text = element_text(lyrics_div)
                if text:
                    return text
        return super().scrape(soup)


class LyricsComAdapter(SiteAdapter):
    domain = "lyrics.com"
    selectors = ("#lyric-body-text", "pre.lyric-body")


class MusixmatchAdapter(SiteAdapter):
    domain = "musixmatch.com"
    selectors = (
        "span.lyrics__content__ok",
        "span.lyrics__content__warning",
        "div.mxm-lyrics span",
    )


class MetroLyricsAdapter(SiteAdapter):
    domain = "metrolyrics.com"
    selectors = (".verse",)
    separator = "\n\n"


class GenericAdapter(SiteAdapter):
    """
    Heuristic for unknown hosts

    Candidate blocks are sorted by trimmed text length, longest first. The
    first of the top scan_limit blocks that spans several lines and is
    longer than min_length wins; otherwise the longest block is used.
    """

    domain = "*"

    def __init__(self, scan_limit: int = 15, min_length: int = 100):
        self.scan_limit = scan_limit
        self.min_length = min_length

    def scrape(self, soup: BeautifulSoup) -> Optional[str]:
        for junk in soup.find_all(["script", "style", "noscript"]):
            junk.decompose()

        blocks = [el.get_text().strip() for el in soup.find_all(GENERIC_TAGS)]
        blocks = [b for b in blocks if b]
        if not blocks:
            return None

        blocks.sort(key=len, reverse=True)
        for text in blocks[:self.scan_limit]:
            if "\n" in text and len(text) > self.min_length:
                return text

        return blocks[0]


DEFAULT_ADAPTERS = (
    MojimAdapter,
    KKBoxAdapter,
    GeniusAdapter,
    AZLyricsAdapter,
    LyricsComAdapter,
    MusixmatchAdapter,
    MetroLyricsAdapter,
)


class ContentExtractor:
    """Pick a site adapter by URL host and extract lyrics text from HTML"""

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        normalizer: Optional[LyricsNormalizer] = None,
        adapters: Optional[Iterable[SiteAdapter]] = None
    ):
        """
        Initialize content extractor

        Args:
            config: Extraction thresholds, defaults to the global settings
            normalizer: Normalizer applied by extract()
            adapters: Site adapters to register instead of the built-in set
        """
        self.config = config or get_settings().extraction
        self.normalizer = normalizer or DEFAULT_NORMALIZER
        self.generic = GenericAdapter(
            scan_limit=self.config.generic_scan_limit,
            min_length=self.config.generic_min_length
        )

        self.adapters: Dict[str, SiteAdapter] = {}
        for adapter in (adapters if adapters is not None else [cls() for cls in DEFAULT_ADAPTERS]):
            self.register(adapter)

    def register(self, adapter: SiteAdapter) -> None:
        """Register (or replace) the adapter for adapter.domain"""
        if not adapter.domain:
            raise ValueError(f"Adapter without domain: {adapter!r}")
        self.adapters[adapter.domain.lower()] = adapter

    @property
    def domains(self) -> List[str]:
        return sorted(self.adapters)

    def adapter_for(self, url: str) -> SiteAdapter:
        """
        Find the adapter for a URL

        The most specific registered domain wins, so "lyrics.com" never
        captures "azlyrics.com" pages.

        Args:
            url: Page URL

        Returns:
            Matching site adapter, or the generic adapter
        """
        host = host_of(url)
        matches = [d for d in self.adapters if host_matches(host, d)]
        if matches:
            return self.adapters[max(matches, key=len)]
        return self.generic

    def extract_raw(self, html: str, url: str) -> Optional[str]:
        """
        Extract lyrics text without normalization

        Args:
            html: Page HTML
            url: Page URL, used to choose the adapter

        Returns:
            Extracted text, or None when nothing longer than the minimum
            length was found
        """
        if not html:
            return None

        adapter = self.adapter_for(url)
        try:
            text = adapter.scrape(get_soup(html))
        except Exception as e:
            logger.warning(f"Extraction with {adapter!r} failed for {url}: {e}")
            return None

        text = (text or "").strip()
        if len(text) <= self.config.min_length:
            logger.debug(f"No lyrics block found by {adapter!r} for {url}")
            return None

        logger.debug(f"Extracted {len(text)} characters with {adapter!r}")
        return text

    def extract(self, html: str, url: str) -> Optional[str]:
        """
        Extract and normalize lyrics text

        Args:
            html: Page HTML
            url: Page URL, used to choose the adapter

        Returns:
            Normalized lyrics, or None when not found
        """
        text = self.extract_raw(html, url)
        if text is None:
            return None
        return self.normalizer.clean(text) or None

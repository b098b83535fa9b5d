"""
Deterministic lyrics text normalization

Scraped pages, cached records and generated text all arrive with different
kinds of noise: section labels, bracketed notes, markdown emphasis, composer
and copyright lines, CJK sentence punctuation. This module turns any of them
into the canonical form used for slide generation:

- "\\n" between lines of a paragraph
- "\\n\\n" between paragraphs, only where the source already had a blank line
- no attribution or section-label lines
- no runs of blank lines, no leading or trailing whitespace

Pipeline (each step assumes the previous ones ran):
1. Protect every blank line (exact double newline) with a sentinel
2. Remove bracketed spans "[...]"
3. Remove markdown emphasis spans (**...**, *...*, __...__)
4. Remove every line containing a marker word (attribution or section label)
5. Collapse runs of spaces, trim
6. Convert CJK punctuation into line/space structure
7. Collapse runs of three or more newlines to two
8. Restore the sentinel as a blank line

Steps 2-7 are repeated until the text stops changing, so cleaning an
already clean text returns it unchanged. clean() never raises: anything
that is not a string becomes "".

Usage:
    from lyrics_slides.lyrics.normalizer import clean_lyrics
    text = clean_lyrics(raw_text)
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..utils.logger import get_logger


logger = get_logger(__name__)


# Private-use code points never produced by the sites we scrape.
PARAGRAPH_SENTINEL = "\ue000\ue001"

# Attribution / copyright words (Chinese and English)
ATTRIBUTION_MARKERS = (
    "作詞", "作曲", "編曲", "詞曲", "填詞", "監製", "製作人", "版權", "歌詞",
    "作词", "编曲", "词曲", "填词", "监制", "版权", "歌词",
    "Lyrics", "Lyricist", "Composer", "Copyright", "All Rights Reserved", "Paroles", "©",
)

# Structural section labels (Chinese and English)
SECTION_MARKERS = (
    "Verse", "Chorus", "Bridge", "Interlude",
    "主歌", "副歌", "導歌", "导歌", "橋段", "桥段", "間奏", "间奏", "前奏", "尾奏",
)

DEFAULT_MARKERS = ATTRIBUTION_MARKERS + SECTION_MARKERS

# Bound on the repeat-until-stable loop; every extra pass only deletes text.
MAX_PASSES = 8

FULL_STOP = "。"
FULLWIDTH_COMMA = "，"
FULLWIDTH_COLON = "："
FULLWIDTH_SEMICOLON = "；"
IDEOGRAPHIC_COMMA = "、"

LRC_TIMESTAMP_RE = re.compile(r"\[\d{1,3}:\d{1,2}(?:[.:]\d{1,3})?\]")
PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n+")


class LyricsNormalizer:
    """
    Pure, total lyrics cleaner

    The marker list and sentinel are configurable so the aggressive
    whole-line removal can be tuned per deployment. Marker matching is a
    case-insensitive substring test, so a marker word inside an ordinary
    lyric line removes that line as well.
    """

    def __init__(self, markers: Optional[Iterable[str]] = None, sentinel: str = PARAGRAPH_SENTINEL):
        if not sentinel or any(ch in "\n \t" for ch in sentinel):
            raise ValueError("sentinel must be a non-empty sequence without whitespace")

        self.markers = tuple(m.casefold() for m in (DEFAULT_MARKERS if markers is None else markers) if m)
        self.sentinel = sentinel

        s = re.escape(sentinel)
        chars = re.escape("".join(sorted(set(sentinel))))

        self._blank_line_re = re.compile(r"(?<!\n)\n\n(?!\n)")
        self._separator_re = re.compile(rf"(\n|{s})")
        self._bracket_re = re.compile(rf"\[[^\[\]\n{chars}]*\]")
        self._emphasis_res = (
            re.compile(rf"\*\*[^\n{chars}]*?\*\*"),
            re.compile(rf"__[^\n{chars}]*?__"),
            re.compile(rf"\*[^*\n{chars}]+\*"),
        )
        self._spaces_re = re.compile(r"[ \t]{2,}")
        self._edges_re = re.compile(rf"^[\s{chars}]+|[\s{chars}]+$")
        self._stop_at_break_re = re.compile(rf"{FULL_STOP}[ \t]*(?=\n|{s}|$)")
        self._comma_at_break_re = re.compile(rf"{FULLWIDTH_COMMA}[ \t]*(?=\n|{s}|$)")
        self._break_spaces_re = re.compile(rf"[ \t]*(\n|{s})[ \t]*")
        self._newline_run_re = re.compile(r"\n{3,}")
        self._sentinel_run_re = re.compile(rf"\n*{s}(?:\n*{s})*\n*")

    def clean(self, text) -> str:
        """
        Clean lyrics text

        Args:
            text: Raw lyrics (any value; non-strings yield "")

        Returns:
            Normalized lyrics, "" for empty or unusable input
        """
        if not isinstance(text, str) or not text:
            return ""

        try:
            return self._clean(text)
        except Exception as e:
            logger.warning(f"Lyrics normalization failed, returning empty text: {e}")
            return ""

    def _clean(self, text: str) -> str:
        text = text.replace("\r\n", "\n").replace("\r", "\n")

        # A sentinel already present in the input would be restored as a
        # paragraph break that never existed, so its characters are dropped.
        if any(ch in text for ch in self.sentinel):
            logger.debug("Input contains paragraph sentinel characters, removing them")
            for ch in set(self.sentinel):
                text = text.replace(ch, "")

        text = "\n".join(line.rstrip() for line in text.split("\n"))

        # 1. protect paragraph breaks
        text = self._blank_line_re.sub(self.sentinel, text)

        # 2-7. repeat until stable
        for _ in range(MAX_PASSES):
            cleaned = self._clean_pass(text)
            if cleaned == text:
                break
            text = cleaned

        # 8. restore paragraph breaks
        text = text.replace(self.sentinel, "\n\n")
        return self._tidy(text)

    def _clean_pass(self, text: str) -> str:
        text = self._strip_lines(text)
        text = self._collapse_spaces(text)
        text = self._convert_punctuation(text)
        return self._collapse_breaks(text)

    def _strip_lines(self, text: str) -> str:
        """Steps 2-4: bracket and emphasis removal, then marker-line removal"""
        parts = self._separator_re.split(text)
        segments = parts[0::2]
        separators = parts[1::2]

        out = []
        for index, segment in enumerate(segments):
            separator = separators[index] if index < len(separators) else ""
            stripped = self._remove_emphasis(self._remove_brackets(segment))

            emptied = segment.strip() and not stripped.strip()
            if emptied or self.has_marker(stripped):
                # The line goes together with its newline; a paragraph break survives
                if separator == self.sentinel:
                    out.append(separator)
                continue

            out.append(stripped)
            out.append(separator)

        return "".join(out)

    def _remove_brackets(self, line: str) -> str:
        count = 1
        while count:
            line, count = self._bracket_re.subn("", line)
        return line

    def _remove_emphasis(self, line: str) -> str:
        changed = True
        while changed:
            changed = False
            for pattern in self._emphasis_res:
                line, count = pattern.subn("", line)
                changed = changed or count > 0
        return line

    def has_marker(self, line: str) -> bool:
        """Return True if the line contains any marker word"""
        folded = line.casefold()
        return any(marker in folded for marker in self.markers)

    def _collapse_spaces(self, text: str) -> str:
        """Step 5"""
        text = self._spaces_re.sub(" ", text)
        return self._edges_re.sub("", text)

    def _convert_punctuation(self, text: str) -> str:
        """Step 6"""
        # A full stop that already ends a line only ends the sentence
        text = self._stop_at_break_re.sub("", text)
        text = text.replace(FULL_STOP, "\n")
        text = self._comma_at_break_re.sub("", text)
        text = text.replace(FULLWIDTH_COMMA, " ")
        text = text.replace(FULLWIDTH_COLON, "")
        text = text.replace(FULLWIDTH_SEMICOLON, " ")
        text = text.replace(IDEOGRAPHIC_COMMA, " ")
        return text

    def _collapse_breaks(self, text: str) -> str:
        """Step 7"""
        text = self._break_spaces_re.sub(r"\1", text)
        text = self._newline_run_re.sub("\n\n", text)
        text = self._sentinel_run_re.sub(self.sentinel, text)
        return self._edges_re.sub("", text)

    def _tidy(self, text: str) -> str:
        lines = [line.strip() for line in text.split("\n")]
        text = "\n".join(lines).strip()
        return self._newline_run_re.sub("\n\n", text)


@dataclass
class LyricsParagraph:
    """
    One paragraph of lyrics, ready to become a slide

    Attributes:
        id: Stable identifier in source order (p0, p1, ...)
        text: Paragraph text, lines separated by "\\n"
        type: metadata, section, instruction or lyrics
    """
    id: str
    text: str
    type: str = "lyrics"


def detect_paragraph_type(text: str) -> str:
    """
    Classify a paragraph by its content

    Args:
        text: Paragraph text

    Returns:
        "metadata" for composer/lyricist credits, "section" for section
        labels, "instruction" for repeat markers, otherwise "lyrics"
    """
    lowered = text.lower()

    if (":" in text or FULLWIDTH_COLON in text) and any(
        word in lowered for word in ("composer", "lyricist", "作曲", "作詞", "作词")
    ):
        return "metadata"

    if any(word in lowered for word in ("chorus", "verse", "副歌", "主歌")):
        return "section"

    if any(word in lowered for word in ("repeat", "重複", "重复")):
        return "instruction"

    return "lyrics"


def split_paragraphs(text: str) -> List[LyricsParagraph]:
    """
    Split lyrics into typed paragraphs on blank lines

    LRC timestamps ("[00:12.34]") are removed and empty paragraphs dropped.

    Args:
        text: Lyrics text, normally the output of clean_lyrics

    Returns:
        Paragraphs in source order
    """
    if not isinstance(text, str) or not text.strip():
        return []

    paragraphs = []
    for raw in PARAGRAPH_SPLIT_RE.split(text.strip()):
        lines = [LRC_TIMESTAMP_RE.sub("", line).strip() for line in raw.split("\n")]
        body = "\n".join(line for line in lines if line)
        if not body:
            continue
        paragraphs.append(LyricsParagraph(id=f"p{len(paragraphs)}", text=body, type=detect_paragraph_type(body)))

    return paragraphs


DEFAULT_NORMALIZER = LyricsNormalizer()


def clean_lyrics(text) -> str:
    """
    Clean lyrics with the default marker set

    Args:
        text: Raw lyrics (any value)

    Returns:
        Normalized lyrics text, never raises
    """
    return DEFAULT_NORMALIZER.clean(text)

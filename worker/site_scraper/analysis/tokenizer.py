"""HTML to text conversion and token stream helpers."""

from __future__ import annotations

import re
from typing import List

from bs4 import BeautifulSoup, Comment

STOP_WORDS = frozenset(
    {
        "и", "в", "на", "с", "по", "для", "от", "к", "из", "о", "об", "до", "за", "при",
        "не", "что", "как", "это", "все", "он", "она", "они", "мы", "вы", "я", "ты",
        "а", "но", "или", "если", "то", "же", "бы", "ли", "ни", "так", "уже", "еще",
        "его", "её", "их", "наш", "ваш", "свой", "мой", "твой", "который", "какой",
        "также", "можно", "нужно", "есть", "быть", "было", "будет", "были", "более",
        "только", "очень", "просто", "всего", "того", "этого", "чтобы", "после",
        "другой", "другие", "каждый", "любой", "между", "через", "такой", "сейчас",
        "тут", "там", "здесь", "где", "когда", "почему", "сколько", "весь",
        "под", "над", "без", "про", "ещё", "вот", "даже", "www", "http", "https",
        "ru", "com", "рф", "html", "php", "asp", "page", "index", "главная", "контакты",
        "new", "the", "and", "for", "you", "are", "this", "that", "with", "your",
    }
)

NON_CONTENT_TAGS = ("script", "style", "noscript", "svg")
HTML_ENTITY_REGEX = re.compile(r"&[a-z]+;|&#\d+;", re.IGNORECASE)
WORD_REGEX = re.compile(r"[а-яёa-z]{3,}")
WHITESPACE_REGEX = re.compile(r"\s+")
NUMERIC_ONLY_REGEX = re.compile(r"^[\s\d.,]+$")


def clean_soup(html: str) -> BeautifulSoup:
    """Parse HTML with scripts, styles, inline SVG and comments removed."""
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup.find_all(NON_CONTENT_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda node: isinstance(node, Comment)):
        comment.extract()
    return soup


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_REGEX.sub(" ", text or "").strip()


def html_to_text(html: str) -> str:
    """Strip markup, scripts and styles and return whitespace-collapsed text."""
    soup = clean_soup(html)
    return collapse_whitespace(soup.get_text(" "))


def extract_visible_text(html: str) -> str:
    """Return only reader-facing text: title, description, headings, paragraphs,
    list items, short labels and image alt texts."""
    soup = BeautifulSoup(html or "", "html.parser")
    parts: List[str] = []

    if soup.title and soup.title.string and soup.title.string.strip():
        parts.append(soup.title.string.strip())

    description = soup.find("meta", attrs={"name": re.compile(r"^description$", re.IGNORECASE)})
    if description and description.get("content", "").strip():
        parts.append(description["content"].strip())

    alts = [img["alt"].strip() for img in soup.find_all("img", alt=True) if len(img["alt"].strip()) > 3]

    soup = clean_soup(html)
    for heading in soup.find_all(re.compile(r"^h[1-6]$")):
        text = collapse_whitespace(heading.get_text(" "))
        if text:
            parts.append(text)

    for paragraph in soup.find_all("p"):
        text = collapse_whitespace(paragraph.get_text(" "))
        if len(text) > 10:
            parts.append(text)

    for item in soup.find_all("li"):
        text = collapse_whitespace(item.get_text(" "))
        if len(text) > 3:
            parts.append(text)

    for node in soup.find_all(["div", "span"]):
        if node.find(True) is not None:
            continue
        text = node.get_text().strip()
        if 10 <= len(text) <= 200 and not NUMERIC_ONLY_REGEX.match(text):
            parts.append(collapse_whitespace(text))

    parts.extend(alts)
    return " ".join(parts)


def tokenize(text: str) -> List[str]:
    """Lowercase the text and return Cyrillic/Latin words without stop words."""
    cleaned = HTML_ENTITY_REGEX.sub(" ", text or "").lower()
    return [
        word
        for word in WORD_REGEX.findall(cleaned)
        if word not in STOP_WORDS and not word.isdigit()
    ]

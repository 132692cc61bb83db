"""Business category tables and classifiers."""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

# Lemma-driven table: category -> dictionary forms expected among frequent lemmas.
CATEGORY_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "Магазин сантехники": ("сантехника", "унитаз", "ванна", "смеситель", "раковина", "душ", "плитка", "инсталляция"),
    "Продажа и доставка цветов": ("цветы", "букет", "роза", "флорист", "доставка цветов", "цветок"),
    "Автобусные перевозки": ("автобус", "перевозки", "пассажир", "рейс", "маршрут", "билет"),
    "Грузоперевозки": ("груз", "перевозка", "доставка", "транспорт", "логистика", "фура"),
    "Автосервис": ("автосервис", "ремонт авто", "сто", "шиномонтаж", "диагностика"),
    "Автошины и диски": ("шина", "диск", "колесо", "резина", "покрышка"),
    "Ресторан": ("ресторан", "меню", "кухня", "блюдо", "повар", "банкет"),
    "Кафе": ("кафе", "кофе", "завтрак", "обед", "десерт"),
    "Салон красоты": ("салон", "красота", "маникюр", "педикюр", "стрижка", "парикмахер"),
    "Стоматология": ("стоматология", "зуб", "лечение зубов", "имплант", "протез"),
    "Юридические услуги": ("юрист", "адвокат", "право", "консультация", "договор"),
    "Недвижимость": ("недвижимость", "квартира", "дом", "аренда", "продажа", "риэлтор"),
    "Строительство": ("строительство", "ремонт", "отделка", "стройматериалы"),
    "Мебельный магазин": ("мебель", "диван", "кровать", "шкаф", "стол", "стул"),
    "Магазин электроники": ("электроника", "телефон", "компьютер", "ноутбук", "телевизор"),
}

MIN_LEMMA_CATEGORY_SCORE = 2

# Content-driven table: ordered, first category with any matching stem wins.
CATEGORY_MARKERS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Магазин сантехники", ("сантехник", "санфаянс", "унитаз", "ванн", "смесител")),
    ("Продажа и доставка цветов", ("цвет", "букет", "флорист", "роз")),
    ("Автошины и диски", ("автошин", "шиномонтаж", "шины", "колёс", "колес", "диск")),
    ("Автозапчасти", ("автозапчаст", "запчаст", "автодетал")),
    ("Мебельный магазин", ("мебел", "диван", "кроват", "шкаф")),
    ("Магазин одежды", ("одежд", "обув", "fashion", "бутик")),
    ("Магазин электроники", ("электроник", "бытов", "техник", "телевизор", "холодильник")),
    ("Продуктовый магазин", ("продукт", "grocery", "супермаркет", "магазин")),
    ("Автобусные перевозки", ("автобус", "пассажир", "перевоз", "рейс", "маршрут")),
    ("Грузоперевозки", ("груз", "доставк", "логистик", "транспорт", "cargo")),
    ("Такси", ("такси", "taxi", "трансфер")),
    ("Автосервис", ("автосервис", " сто ", "ремонт авто", "автомобил")),
    ("Салон красоты", ("салон красот", "парикмахер", "маникюр", "косметолог", "beauty")),
    ("Стоматология", ("стоматолог", "зубн", "dental", "дентал")),
    ("Юридические услуги", ("юрист", "адвокат", "юридич", "право")),
    ("Фитнес-клуб", ("фитнес", "спортзал", "тренажёр", "gym", "fitness")),
    ("Медицинский центр", ("клиник", "медицин", "врач", "больниц", "health")),
    ("Строительство и ремонт", ("строител", "ремонт", "отделк")),
    ("Ресторан", ("ресторан", "restaurant", "кухн")),
    ("Кафе", ("кафе", "cafe", "coffee", "кофейн")),
    ("Пиццерия", ("пицц", "pizza", "пиццер")),
    ("Суши-бар", ("суши", "sushi", "роллы", "японск")),
    ("Доставка еды", ("доставка еды", "food delivery")),
    ("Гостиница", ("отел", "гостиниц", "hotel", "хостел")),
    ("Туристическое агентство", ("турист", "туризм", "тур ", "путешеств", "travel")),
    ("Образование", ("образован", "школ", "курс", "обучен")),
    ("Недвижимость", ("недвижимост", "квартир", "аренд", "риэлтор", "realty")),
)

GENERIC_CATEGORY_WORDS = frozenset({"магазин", "салон", "центр", "компания", "фирма", "услуги", "сервис"})


def classify_by_lemmas(lemmas: Iterable[str]) -> Optional[str]:
    """Score each category by bidirectional containment against the lemma set."""
    unique: List[str] = list(dict.fromkeys(lemma.lower() for lemma in lemmas if lemma))

    best_category: Optional[str] = None
    best_score = 0
    for category, keywords in CATEGORY_KEYWORDS.items():
        score = sum(
            1
            for keyword in keywords
            for lemma in unique
            if keyword in lemma or lemma in keyword
        )
        if score > best_score:
            best_score = score
            best_category = category

    return best_category if best_score >= MIN_LEMMA_CATEGORY_SCORE else None


def classify_by_content(metadata: Mapping[str, object], content: str) -> Optional[str]:
    """Return the first category whose stems appear in the title, description or content."""
    text = f"{metadata.get('title') or ''} {metadata.get('description') or ''} {content or ''}".lower()
    for category, markers in CATEGORY_MARKERS:
        if any(marker in text for marker in markers):
            return category
    return None


def significant_category_words(category: str) -> List[str]:
    return [
        word
        for word in re.split(r"\s+", category.lower())
        if len(word) > 3 and word not in GENERIC_CATEGORY_WORDS
    ]


def category_matches_content(category: str, content: str) -> bool:
    """True when the category has significant words and all of them occur in the content."""
    words = significant_category_words(category)
    lowered = (content or "").lower()
    return bool(words) and all(word in lowered for word in words)


def reconcile_category(current: Optional[str], suggested: Optional[str], content: str) -> Optional[str]:
    """Replace a declared category that the page content does not back up."""
    if not suggested:
        return current
    if not current:
        return suggested
    if category_matches_content(current, content):
        return current

    logger.info("Category %r does not match page content; using %r", current, suggested)
    return suggested

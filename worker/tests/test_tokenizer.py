from site_scraper.analysis import tokenizer

PAGE = """
<html>
  <head>
    <title>Мебель Дом</title>
    <meta name="description" content="Диваны и кровати с доставкой">
    <style>.hidden { display: none }</style>
    <script>var trackingCode = "секретный";</script>
  </head>
  <body>
    <!-- комментарий разработчика -->
    <h1>Каталог мебели</h1>
    <p>Мы продаём диваны, шкафы и столы уже десять лет.</p>
    <p>Коротко</p>
    <ul><li>Диваны</li><li>Шкафы</li><li>ок</li></ul>
    <div>Бесплатная сборка мебели</div>
    <div><span>Кровати на заказ</span></div>
    <span>1 234,50</span>
    <img src="/sofa.jpg" alt="Угловой диван">
    <img src="/x.jpg" alt="фон">
  </body>
</html>
"""


def test_extract_visible_text_collects_content_in_order():
    text = tokenizer.extract_visible_text(PAGE)

    assert text.startswith("Мебель Дом Диваны и кровати с доставкой Каталог мебели")
    assert "Мы продаём диваны, шкафы и столы уже десять лет." in text
    assert "Диваны" in text and "Шкафы" in text
    assert "Бесплатная сборка мебели" in text
    assert "Кровати на заказ" in text
    assert text.endswith("Угловой диван")


def test_extract_visible_text_skips_code_comments_and_noise():
    text = tokenizer.extract_visible_text(PAGE)

    assert "trackingCode" not in text
    assert "display" not in text
    assert "комментарий" not in text
    assert "Коротко" not in text
    assert "1 234,50" not in text
    assert "фон" not in text


def test_html_to_text_drops_scripts_and_collapses_whitespace():
    html = "<div>Привет,\n\n   мир<script>alert(1)</script></div>"
    assert tokenizer.html_to_text(html) == "Привет, мир"


def test_tokenize_filters_stop_words_short_words_and_entities():
    tokens = tokenizer.tokenize("Купить &nbsp; диван для дома и 2024 Sofa &#171; на www")
    assert tokens == ["купить", "диван", "дома", "sofa"]

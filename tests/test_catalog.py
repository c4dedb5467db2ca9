# tests/test_catalog.py

from __future__ import annotations

from opsdesk.orders.catalog import Article, ArticleSelection, categories_of, filter_articles
from opsdesk.orders.order_models import LineStatus, OrderLine

ARTICLES = [
    Article.from_api({"_id": "A1", "art_id": "LAP-01", "art_designation": "Premium Laptop", "art_cat_niv_1": "Electronics", "art_famille": "Laptops"}),
    Article.from_api({"_id": "A2", "art_id": "MOU-02", "art_designation": "Wireless Mouse", "art_cat_niv_1": "Accessories"}),
    Article.from_api({"_id": "A3", "art_id": "MON-03", "art_designation": "External Monitor", "art_cat_niv_1": "Electronics"}),
]


def test_filter_by_search_text_and_category() -> None:
    assert [a.id for a in filter_articles(ARTICLES, "mo")] == ["A2", "A3"]
    assert [a.id for a in filter_articles(ARTICLES, "lap-01")] == ["A1"]
    assert [a.id for a in filter_articles(ARTICLES, "", "Electronics")] == ["A1", "A3"]
    assert [a.id for a in filter_articles(ARTICLES, "mo", "Electronics")] == ["A3"]
    assert len(filter_articles(ARTICLES, "", "all")) == 3
    assert filter_articles(ARTICLES, "chair") == []


def test_categories_in_first_seen_order() -> None:
    assert categories_of(ARTICLES) == ["Electronics", "Laptops", "Accessories"]


def test_same_article_added_twice_merges_into_one_line() -> None:
    selection = ArticleSelection()

    selection.select("A1", 2)
    lines = selection.apply([])
    selection.select("A1", 3)
    lines = selection.apply(lines)

    assert len(lines) == 1
    assert lines[0].quantite_cmd == 5


def test_new_lines_start_unvalidated_and_pending() -> None:
    existing = [OrderLine(article_id="A1", quantite_cmd=1, quantite_valid=1, quantite_confr=1)]
    selection = ArticleSelection()
    selection.toggle("A2", True)
    selection.toggle("A1", True)

    lines = selection.apply(existing)

    assert [line.article_id for line in lines] == ["A1", "A2"]
    assert lines[0].quantite_cmd == 2
    assert lines[0].quantite_valid == 1
    assert lines[1] == OrderLine(article_id="A2", quantite_cmd=1, quantite_valid=0, quantite_confr=0, status=LineStatus.PENDING)
    assert len(selection) == 0
    assert existing[0].quantite_cmd == 1


def test_selection_quantities_floor_at_one() -> None:
    selection = ArticleSelection()
    selection.select("A1")

    assert selection.adjust("A1", 2) == 3
    assert selection.adjust("A1", -10) == 1
    assert selection.quantity("A9") == 1


def test_select_all_keeps_known_quantities_and_deselect() -> None:
    selection = ArticleSelection()
    selection.select("A1", 4)

    selection.select_all(a.id for a in ARTICLES)
    assert selection.selected == ["A1", "A2", "A3"]
    assert selection.quantity("A1") == 4

    selection.toggle("A2", False)
    assert "A2" not in selection
    assert selection.apply([])[-1].article_id == "A3"

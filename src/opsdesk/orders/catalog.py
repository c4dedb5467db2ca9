# src/opsdesk/orders/catalog.py

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .order_models import LineStatus, OrderLine, QuantityField

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"


@dataclass(slots=True, frozen=True)
class Article:
    id: str
    code: str
    designation: str
    family: str | None = None
    category_1: str | None = None
    category_2: str | None = None
    brand: str | None = None
    unit: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Article:
        code = str(data.get("art_id") or "")
        article_id = data.get("_id") or code
        if not article_id:
            raise ValueError("Article payload has no id")
        return cls(
            id=str(article_id),
            code=code,
            designation=str(data.get("art_designation") or ""),
            family=data.get("art_famille") or None,
            category_1=data.get("art_cat_niv_1") or None,
            category_2=data.get("art_cat_niv_2") or None,
            brand=data.get("art_marque") or None,
            unit=data.get("art_unite_vente") or None,
        )

    @property
    def categories(self) -> tuple[str, ...]:
        return tuple(c for c in (self.category_1, self.category_2, self.family) if c)


def categories_of(articles: Iterable[Article]) -> list[str]:
    """Distinct categories, in first-seen order (for the category picker)."""
    seen: dict[str, None] = {}
    for a in articles:
        for c in a.categories:
            seen.setdefault(c, None)
    return list(seen)


def filter_articles(
    articles: Iterable[Article],
    search: str = "",
    category: str | None = None,
) -> list[Article]:
    needle = (search or "").strip().lower()
    cat = (category or "").strip()
    use_category = bool(cat) and cat.lower() != ALL_CATEGORIES

    out: list[Article] = []
    for a in articles:
        if needle and needle not in a.designation.lower() and needle not in a.code.lower():
            continue
        if use_category and cat not in a.categories:
            continue
        out.append(a)
    return out


class ArticleSelection:
    """
    Articles ticked in the "add articles" dialog, each with its own quantity.

    apply() merges the selection into the order lines: an article already on
    the order gets its quantite_cmd increased, never a second line.
    """

    def __init__(self) -> None:
        # dict keeps selection order
        self._selected: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, article_id: object) -> bool:
        return article_id in self._selected

    @property
    def selected(self) -> list[str]:
        return list(self._selected)

    def quantity(self, article_id: str) -> int:
        return self._selected.get(article_id, 1)

    def select(self, article_id: str, quantity: int = 1) -> None:
        self._selected[article_id] = max(1, int(quantity))

    def deselect(self, article_id: str) -> None:
        self._selected.pop(article_id, None)

    def toggle(self, article_id: str, checked: bool) -> None:
        if checked:
            self._selected.setdefault(article_id, 1)
        else:
            self.deselect(article_id)

    def select_all(self, article_ids: Iterable[str]) -> None:
        self._selected = {aid: self._selected.get(aid, 1) for aid in article_ids}

    def adjust(self, article_id: str, delta: int) -> int:
        qty = max(1, self.quantity(article_id) + int(delta))
        self._selected[article_id] = qty
        return qty

    def clear(self) -> None:
        self._selected.clear()

    def apply(self, lines: list[OrderLine]) -> list[OrderLine]:
        out = list(lines)
        index = {line.article_id: i for i, line in enumerate(out)}

        for article_id, qty in self._selected.items():
            i = index.get(article_id)
            if i is not None:
                line = out[i]
                out[i] = line.with_quantity(QuantityField.ORDERED, line.quantite_cmd + qty)
            else:
                index[article_id] = len(out)
                out.append(
                    OrderLine(
                        article_id=article_id,
                        quantite_cmd=qty,
                        quantite_valid=0,
                        quantite_confr=0,
                        status=LineStatus.PENDING,
                    )
                )

        logger.debug("Applied %d selected articles -> %d lines", len(self._selected), len(out))
        self.clear()
        return out

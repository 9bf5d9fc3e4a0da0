"""
Product catalogue contract: filters and helpers for the storefront listings.

Used by both the public catalog endpoints and the admin console:
- ProductFilter mirrors the storefront controls (category tab + search box)
- category_counts feeds the per-category badges in the admin console
- listings are shown in name order (products and categories alike)
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .interfaces import Category, Product

ALL_CATEGORIES = "All"
UNCATEGORIZED = "Uncategorized"


@dataclass
class ProductFilter:
    """Optional filters when querying the product catalogue."""
    category: Optional[str] = None               # None or "All" means every category
    search: Optional[str] = None                 # matched against name and description
    admin_search: Optional[str] = None           # matched against name and category


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def filter_products(products: List[Product], f: ProductFilter) -> List[Product]:
    """Apply a ProductFilter to a list of products and return matching ones."""
    result = products

    if f.category and f.category != ALL_CATEGORIES:
        result = [p for p in result if p.category == f.category]
    if f.search:
        term = f.search.strip().lower()
        result = [p for p in result if term in p.name.lower() or term in p.description.lower()]
    if f.admin_search:
        term = f.admin_search.strip().lower()
        result = [p for p in result if term in p.name.lower() or term in p.category.lower()]

    return result


def category_counts(products: Iterable[Product]) -> Dict[str, int]:
    stats: Dict[str, int] = {}
    for p in products:
        stats[p.category] = stats.get(p.category, 0) + 1
    return stats


def fallback_category_name(categories: List[Category], removed_name: str) -> Optional[str]:
    """First category left after removing ``removed_name``; None when nothing remains."""
    for c in categories:
        if c.name != removed_name:
            return c.name
    return None


def sort_categories(categories: List[Category]) -> List[Category]:
    return sorted(categories, key=lambda c: c.name.lower())


def sort_products(products: List[Product]) -> List[Product]:
    return sorted(products, key=lambda p: p.name.lower())

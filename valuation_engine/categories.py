"""
Investment category taxonomy.

Each category carries a capability flag telling the valuation engine whether
its value follows a rate formula or is marked externally (stocks, funds,
real estate).
"""

import logging
from dataclasses import dataclass
from typing import Dict, List

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvestmentCategory:
    key: str
    label: str
    supports_formulaic_yield: bool = True


OTHER = InvestmentCategory("other", "Outros")

_REGISTRY: Dict[str, InvestmentCategory] = {}


def register_category(category: InvestmentCategory) -> InvestmentCategory:
    """Add or replace a category in the taxonomy."""
    _REGISTRY[category.key] = category
    return category


def get_category(tag: str) -> InvestmentCategory:
    """
    Look up a category by its tag.

    Tags are free-form; unknown tags fall back to 'other', which is valued
    by formula.
    """
    key = (tag or "").strip().lower().replace("-", "_").replace(" ", "_")
    category = _REGISTRY.get(key)
    if category is None:
        logger.debug(f"Unknown investment category '{tag}', treating as '{OTHER.key}'")
        return OTHER
    return category


def list_categories() -> List[InvestmentCategory]:
    return sorted(_REGISTRY.values(), key=lambda c: c.key)


for _category in (
    InvestmentCategory("stocks", "Ações", supports_formulaic_yield=False),
    InvestmentCategory("funds", "Fundos", supports_formulaic_yield=False),
    InvestmentCategory("real_estate", "Imóveis", supports_formulaic_yield=False),
    InvestmentCategory("bonds", "Títulos"),
    InvestmentCategory("crypto", "Criptomoedas"),
    InvestmentCategory("savings", "Poupança"),
    InvestmentCategory("cdb", "CDB"),
    InvestmentCategory("tesouro_direto", "Tesouro Direto"),
    InvestmentCategory("lci_lca", "LCI/LCA"),
    OTHER,
):
    register_category(_category)

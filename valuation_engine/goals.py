"""
Financial goals and their links to vaults and investments.

When a goal has links, its current amount is the sum of the linked vaults'
reserved amounts and the linked investments' current values; the stored
number is only used for goals without links.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Iterable, Mapping, Optional

from valuation_engine.investment import Investment
from valuation_engine.metrics import goal_progress

logger = logging.getLogger(__name__)

LINK_VAULT = "vault"
LINK_INVESTMENT = "investment"


@dataclass(frozen=True)
class Vault:
    id: str
    name: str
    reserved_amount: float


@dataclass(frozen=True)
class GoalLink:
    goal_id: str
    link_type: str
    target_id: str

    def __post_init__(self):
        if self.link_type not in (LINK_VAULT, LINK_INVESTMENT):
            raise ValueError(f"Invalid link type '{self.link_type}'")


@dataclass(frozen=True)
class Goal:
    id: str
    title: str
    target_amount: float
    current_amount: float = 0.0
    deadline: Optional[date] = None

    @property
    def progress(self) -> float:
        return goal_progress(self.current_amount, self.target_amount)

    @property
    def remaining(self) -> float:
        return max(self.target_amount - self.current_amount, 0.0)


def linked_amount(goal: Goal, links: Iterable[GoalLink],
                  vaults: Mapping[str, Vault], investments: Mapping[str, Investment]) -> Optional[float]:
    """
    Sum of the values linked to a goal.

    Args:
        goal: Goal to evaluate
        links: All goal links (links of other goals are ignored)
        vaults: Vaults by id
        investments: Investments by id

    Returns:
        Optional[float]: Linked total, or None when the goal has no links
    """
    own_links = [link for link in links if link.goal_id == goal.id]
    if not own_links:
        return None

    total = 0.0
    for link in own_links:
        if link.link_type == LINK_VAULT:
            vault = vaults.get(link.target_id)
            if vault is None:
                logger.warning(f"Goal {goal.title} links missing vault {link.target_id}")
                continue
            total += vault.reserved_amount
        else:
            investment = investments.get(link.target_id)
            if investment is None:
                logger.warning(f"Goal {goal.title} links missing investment {link.target_id}")
                continue
            total += investment.current_value
    return total


def refresh_goal(goal: Goal, links: Iterable[GoalLink],
                 vaults: Mapping[str, Vault], investments: Mapping[str, Investment]) -> Goal:
    """Goal with current_amount recomputed from its links, if it has any."""
    amount = linked_amount(goal, links, vaults, investments)
    if amount is None:
        return goal
    return replace(goal, current_amount=amount)

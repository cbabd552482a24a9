# marketplace/services/grouping.py
from typing import Iterable, Optional

from marketplace.domain.checkout import CartLine, GroupingResult, SellerGroup
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


def group_by_seller(
    cart_lines: Iterable[CartLine],
    seller_filter: Optional[int] = None,
) -> GroupingResult:
    """
    Partition cart lines into one group per seller.

    Groups come out in first-appearance order of their seller, and lines keep
    their cart order inside a group, so the same snapshot always yields the
    same iteration order. Lines without a seller are returned in
    ``skipped``. With ``seller_filter`` only that seller's lines are grouped;
    the other sellers' lines are dropped without being reported.
    """
    buckets: dict[int, list[CartLine]] = {}
    skipped: list[CartLine] = []

    for line in cart_lines:
        if line.seller_id is None:
            skipped.append(line)
            continue
        if seller_filter is not None and line.seller_id != seller_filter:
            continue
        #dict keeps insertion order -> first appearance wins
        buckets.setdefault(line.seller_id, []).append(line)

    if skipped:
        logger.warning(
            f"Skipping {len(skipped)} cart lines without a seller: "
            f"{[line.cart_line_id for line in skipped]}"
        )

    groups = tuple(SellerGroup(seller_id=s, lines=tuple(lines)) for s, lines in buckets.items())
    return GroupingResult(groups=groups, skipped=tuple(skipped))

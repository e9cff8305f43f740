"""AGREE II scaled domain score."""

from __future__ import annotations

import math
from collections.abc import Sequence

from appraiser.appraisal.schemas import DomainItem
from appraiser.constants import ITEM_SCORE_MAX, ITEM_SCORE_MIN


def calculate_domain_score(items: Sequence[DomainItem]) -> int:
    """Rescale summed 1-7 item scores onto 0-100.

    (obtained - minimum) / (maximum - minimum) * 100 with a single
    appraiser, rounded half up. An empty domain scores 0.
    """
    count = len(items)
    if count == 0:
        return 0
    obtained = sum(item.score for item in items)
    minimum = ITEM_SCORE_MIN * count
    maximum = ITEM_SCORE_MAX * count
    scaled = 100 * (obtained - minimum) / (maximum - minimum)
    return math.floor(scaled + 0.5)

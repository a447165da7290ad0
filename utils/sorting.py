"""
Sort option handling shared by the talk listings and the speaker search.

Requested ``order_by`` / ``sort`` values come straight from query strings, so they are checked
against a whitelist and silently replaced by defaults when they are missing or unknown.
"""

from collections.abc import Collection, Mapping
from typing import Any

import structlog


logger = structlog.get_logger(__name__)

ORDER_BY_WHITELIST = ("created_at", "title", "type", "category")
SORT_DIRECTIONS = ("ASC", "DESC")


def resolve_sort_options(
    options: Mapping[str, Any] | None,
    defaults: Mapping[str, Any],
    whitelist: Collection[str] = ORDER_BY_WHITELIST,
) -> dict[str, Any]:
    """
    Return ``options`` with a valid ``order_by`` and ``sort``, merged over ``defaults``.

    Args:
        options: Options requested by the caller. May be ``None``, empty or partial.
        defaults: Default options. Must contain ``order_by`` and ``sort``.
        whitelist: Columns a caller is allowed to order by.

    Returns:
        dict: The defaults updated with the (corrected) requested options.

    """
    resolved = dict(options or {})

    order_by = resolved.get("order_by")
    if order_by not in whitelist:
        if order_by is not None:
            logger.debug("sort_option_fallback", option="order_by", requested=order_by)
        resolved["order_by"] = defaults["order_by"]

    sort = resolved.get("sort")
    if sort not in SORT_DIRECTIONS:
        if sort is not None:
            logger.debug("sort_option_fallback", option="sort", requested=sort)
        resolved["sort"] = defaults["sort"]

    return {**defaults, **resolved}

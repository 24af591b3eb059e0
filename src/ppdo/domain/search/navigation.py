"""Where a search hit lives in the dashboard."""

from ppdo.domain.search.types import EntityType, page_depth_text

__all__ = ["page_depth_text", "source_url"]

_LIST_PAGES: dict[EntityType, str] = {
    EntityType.BUDGET_ITEM: "/dashboard/project",
    EntityType.TWENTY_PERCENT_DF: "/dashboard/20_percent_df",
    EntityType.TRUST_FUND: "/dashboard/trust-funds",
    EntityType.SPECIAL_EDUCATION_FUND: "/dashboard/special-education-funds",
    EntityType.SPECIAL_HEALTH_FUND: "/dashboard/special-health-funds",
}

_FIXED_PAGES: dict[EntityType, str] = {
    EntityType.DEPARTMENT: "/dashboard/departments",
    EntityType.AGENCY: "/dashboard/office",
    EntityType.USER: "/dashboard/settings/user-management",
}


def _base_path(entity_type: EntityType, year: int | None, parent_slug: str | None) -> str:
    if entity_type in _FIXED_PAGES:
        return _FIXED_PAGES[entity_type]

    if entity_type in _LIST_PAGES:
        base = _LIST_PAGES[entity_type]
        return f"{base}/{year}" if year else base

    if entity_type in (EntityType.PROJECT_ITEM, EntityType.PROJECT_BREAKDOWN):
        if year and parent_slug:
            return f"/dashboard/project/{year}/{parent_slug}"
        if year:
            return f"/dashboard/project/{year}"
        return "/dashboard/project"

    return "/dashboard"


def source_url(
    entity_type: EntityType,
    entity_id: str,
    year: int | None = None,
    parent_slug: str | None = None,
) -> str:
    """Dashboard URL of the page showing the entity, with the row highlighted.

    Examples:
        source_url(EntityType.TRUST_FUND, "abc", 2024)
        -> "/dashboard/trust-funds/2024?highlight=abc"
    """
    return f"{_base_path(entity_type, year, parent_slug)}?highlight={entity_id}"

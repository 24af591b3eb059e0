"""Unit tests for entity types and result navigation."""

import pytest

from ppdo.domain.search.navigation import page_depth_text, source_url
from ppdo.domain.search.types import CallerScope, EntityType, ordinal


class TestEntityType:
    """Test the entity type registry."""

    def test_ten_entity_types(self):
        assert len(EntityType.values()) == 10
        assert "twentyPercentDF" in EntityType.values()

    def test_parse_known_value(self):
        assert EntityType.parse("trustFund") is EntityType.TRUST_FUND
        assert EntityType.parse(EntityType.USER) is EntityType.USER

    def test_parse_unknown_value_raises(self):
        with pytest.raises(ValueError):
            EntityType.parse("contract")

    def test_labels(self):
        assert EntityType.AGENCY.label == "Implementing Agency"
        assert EntityType.PROJECT_ITEM.plural_label == "Projects"


class TestPageDepth:
    """Test "Found in Nth page" texts."""

    @pytest.mark.parametrize(
        ("n", "expected"),
        [
            (1, "1st"),
            (2, "2nd"),
            (3, "3rd"),
            (4, "4th"),
            (11, "11th"),
            (22, "22nd"),
            (113, "113th"),
        ],
    )
    def test_ordinal(self, n, expected):
        assert ordinal(n) == expected

    def test_page_depth_text(self):
        assert page_depth_text(EntityType.BUDGET_ITEM) == "Found in 1st page"
        assert page_depth_text(EntityType.PROJECT_ITEM) == "Found in 2nd page"
        assert page_depth_text(EntityType.PROJECT_BREAKDOWN) == "Found in 3rd page"


class TestSourceUrl:
    """Test dashboard URLs of search hits."""

    def test_fund_list_page_with_year(self):
        url = source_url(EntityType.TRUST_FUND, "abc", 2024)

        assert url == "/dashboard/trust-funds/2024?highlight=abc"

    def test_fund_list_page_without_year(self):
        assert source_url(EntityType.TWENTY_PERCENT_DF, "abc") == (
            "/dashboard/20_percent_df?highlight=abc"
        )

    def test_fixed_pages_ignore_year(self):
        assert source_url(EntityType.DEPARTMENT, "d1", 2024) == (
            "/dashboard/departments?highlight=d1"
        )
        assert source_url(EntityType.USER, "u1") == (
            "/dashboard/settings/user-management?highlight=u1"
        )

    def test_project_detail_page(self):
        url = source_url(EntityType.PROJECT_ITEM, "p1", 2024, "bi1")

        assert url == "/dashboard/project/2024/bi1?highlight=p1"

    def test_breakdown_without_parent(self):
        url = source_url(EntityType.PROJECT_BREAKDOWN, "x", 2024)

        assert url == "/dashboard/project/2024?highlight=x"


class TestCallerScope:
    """Test department visibility."""

    def test_unrestricted_caller_sees_everything(self):
        assert CallerScope(department_id="d1").visible_department_ids is None

    def test_restricted_caller_sees_own_department(self):
        scope = CallerScope(department_id="d1", restrict_to_department=True)

        assert scope.visible_department_ids == ["d1"]

    def test_restricted_caller_without_department_sees_nothing(self):
        assert CallerScope(restrict_to_department=True).visible_department_ids == []

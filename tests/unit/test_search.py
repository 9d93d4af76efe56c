"""
Unit Tests: Search builder and Filter values
"""

import pytest

from genericdao.common.enums import FieldOperator, FilterOperator, ResultMode
from genericdao.common.exceptions import NullArgument
from genericdao.search import Field, Filter, Search
from tests.models import Person


@pytest.mark.unit
class TestSearchBuilder:
    def test_defaults(self):
        search = Search(Person)

        assert search.search_class is Person
        assert search.filters == []
        assert search.fields == []
        assert search.sorts == []
        assert search.fetches == []
        assert search.result_mode is ResultMode.ENTITY_OR_SINGLE
        assert search.disjunction is False
        assert search.distinct is False
        assert search.is_paged() is False

    def test_mutators_chain_and_keep_order(self):
        search = (
            Search(Person)
            .add_filter_equal("first_name", "Bob")
            .add_filter_greater_than("age", 30)
            .add_field("first_name")
            .add_field("age", FieldOperator.MAX, key="oldest")
            .add_sort_desc("age")
            .add_sort_asc("last_name", ignore_case=True)
        )

        assert [f.operator for f in search.filters] == [FilterOperator.EQUAL, FilterOperator.GREATER_THAN]
        assert [f.result_key() for f in search.fields] == ["first_name", "oldest"]
        assert [(s.property, s.desc, s.ignore_case) for s in search.sorts] == [
            ("age", True, False),
            ("last_name", False, True),
        ]

    def test_builder_helpers_create_expected_filters(self):
        search = (
            Search(Person)
            .add_filter_null("father")
            .add_filter_not_null("age")
            .add_filter_in("first_name", ["Bob", "Fred"])
            .add_filter_some("pets", Filter.equal("species", "dog"))
        )

        assert search.filters == [
            Filter("father", True, FilterOperator.IS_NULL),
            Filter("age", True, FilterOperator.IS_NOT_NULL),
            Filter("first_name", ["Bob", "Fred"], FilterOperator.IN),
            Filter("pets", Filter("species", "dog", FilterOperator.EQUAL), FilterOperator.SOME),
        ]

    def test_add_filter_none_raises(self):
        with pytest.raises(NullArgument):
            Search(Person).add_filter(None)

    def test_remove_filter_by_identity(self):
        keep = Filter.equal("first_name", "Bob")
        drop = Filter.equal("first_name", "Bob")
        search = Search(Person).add_filters(keep, drop)

        search.remove_filter(drop)

        assert len(search.filters) == 1
        assert search.filters[0] is keep

    def test_clear_resets_filters_only(self):
        search = (
            Search(Person)
            .add_filter_equal("first_name", "Bob")
            .add_field("first_name")
            .add_sort_asc("age")
            .add_fetch("pets")
            .set_max_results(10)
        )

        search.clear()

        assert search.filters == []
        assert len(search.fields) == 1
        assert len(search.sorts) == 1
        assert len(search.fetches) == 1
        assert search.max_results == 10

    def test_specific_clears(self):
        search = Search(Person).add_field("age").add_sort_asc("age").add_fetch("pets").set_first_result(5)

        search.clear_fields().clear_sorts().clear_fetches().clear_paging()

        assert (search.fields, search.sorts, search.fetches) == ([], [], [])
        assert search.is_paged() is False

    def test_duplicate_fetch_ignored(self):
        search = Search(Person).add_fetch("pets").add_fetch("pets")

        assert len(search.fetches) == 1

    def test_copy_is_independent(self):
        original = Search(Person).add_filter_equal("first_name", "Bob")
        copy = original.copy().add_filter_equal("last_name", "Jones").set_distinct()

        assert len(original.filters) == 1
        assert original.distinct is False
        assert len(copy.filters) == 2

    def test_result_mode_aliases(self):
        assert Search.RESULT_SINGLE is ResultMode.SINGLE_FIELD
        assert Search.RESULT_LIST is Search.RESULT_ARRAY
        assert Search(Person).set_result_mode("FIELD_MAP").result_mode is ResultMode.FIELD_MAP

    def test_repr_describes_search(self):
        search = Search(Person).add_filter_equal("first_name", "Bob").set_max_results(5)

        text = repr(search)

        assert "class=Person" in text
        assert "`first_name` EQUAL 'Bob'" in text
        assert "max=5" in text


@pytest.mark.unit
class TestPaging:
    @pytest.mark.parametrize(
        "first_result, max_results, page, expected",
        [
            (0, 0, 0, 0),
            (0, 10, 0, 0),
            (0, 10, 2, 20),
            (7, 10, 2, 7),
            (0, 0, 3, 0),
        ],
    )
    def test_calc_first_result(self, first_result, max_results, page, expected):
        search = Search(Person).set_first_result(first_result).set_max_results(max_results).set_page(page)

        assert search.calc_first_result() == expected

    @pytest.mark.parametrize("setter", ["set_first_result", "set_max_results", "set_page"])
    def test_negative_values_rejected(self, setter):
        with pytest.raises(ValueError):
            getattr(Search(Person), setter)(-1)


@pytest.mark.unit
class TestFilter:
    def test_composites_hold_nested_filters(self):
        a = Filter.equal("first_name", "Bob")
        b = Filter.less_than("age", 40)

        conj = Filter.and_(a).add(b)

        assert conj.is_composite() is True
        assert conj.filters() == [a, b]
        assert Filter.not_(a).filters() == [a]
        assert Filter.some("pets", a).takes_collection() is True

    def test_add_to_simple_filter_rejected(self):
        with pytest.raises(TypeError):
            Filter.equal("first_name", "Bob").add(Filter.equal("age", 3))

    def test_add_none_rejected(self):
        with pytest.raises(NullArgument):
            Filter.or_().add(None)

    def test_str(self):
        flt = Filter.or_(Filter.equal("first_name", "Bob"), Filter.is_null("father"))

        assert str(flt) == "(`first_name` EQUAL 'Bob' or `father` is null)"
        assert str(Filter.and_()) == "(and)"

    def test_field_result_key(self):
        assert Field("age").result_key() == "age"
        assert Field("age", FieldOperator.MAX, "oldest").result_key() == "oldest"
        assert Field().result_key() == ""

    def test_in_values_from_iterator_are_kept(self):
        flt = Filter.not_in("age", (age for age in [58, 35]))

        assert flt.value == (58, 35)
        assert Filter.in_("age", [1, 2]).value == [1, 2]

"""
Integration Tests: DAODispatcher routing and GenericDAO binding
"""

import pytest
from sqlalchemy.orm import Session

from genericdao.common.exceptions import DAODispatcherException, InvalidSearch, NullArgument
from genericdao.dao import DAODispatcher, GeneralDAO, GenericDAO
from genericdao.search import Search
from tests.models import Person, Pet


class AuditedPersonDAO(GenericDAO[Person]):
    """Normalizes names on save."""

    def save(self, entity: Person) -> bool:
        entity.last_name = entity.last_name.strip().title()
        return super().save(entity)


class CountOnlyService:
    """Registered DAO that implements a single operation."""

    def __init__(self, total: int) -> None:
        self.total = total

    def count(self, search: Search) -> int:
        return self.total


@pytest.fixture
def audited_dao(general_dao: GeneralDAO) -> AuditedPersonDAO:
    return AuditedPersonDAO(Person, general_dao.session, general_dao=general_dao)


@pytest.fixture
def routed(dispatcher: DAODispatcher, audited_dao: AuditedPersonDAO) -> DAODispatcher:
    dispatcher.set_specific_daos({Person: audited_dao})
    return dispatcher


@pytest.mark.integration
class TestRegistry:
    def test_class_keys_use_qualified_names(self, routed: DAODispatcher, audited_dao: AuditedPersonDAO):
        assert list(routed.specific_daos) == ["tests.models.Person"]
        assert routed.specific_dao_for(Person) is audited_dao
        assert routed.specific_dao_for(Pet) is None

    def test_short_name_keys_are_matched(self, dispatcher: DAODispatcher, audited_dao: AuditedPersonDAO):
        dispatcher.set_specific_daos({"Person": audited_dao})

        assert dispatcher.specific_dao_for(Person) is audited_dao

    def test_none_dao_rejected(self, dispatcher: DAODispatcher):
        with pytest.raises(NullArgument):
            dispatcher.set_specific_daos({Person: None})

    def test_set_specific_daos_replaces_registry(self, routed: DAODispatcher):
        routed.set_specific_daos({})

        assert routed.specific_daos == {}
        assert routed.specific_dao_for(Person) is None

    def test_general_dao_required(self):
        with pytest.raises(ValueError):
            DAODispatcher(None)


@pytest.mark.integration
class TestRouting:
    def test_save_routes_to_specific_dao(self, routed: DAODispatcher, audited_dao: AuditedPersonDAO, mocker):
        spy = mocker.spy(audited_dao, "save")
        person = Person(first_name="Ann", last_name="  lee ", age=20)

        assert routed.save(person) is True

        spy.assert_called_once_with(person)
        assert person.last_name == "Lee"

    def test_unregistered_class_falls_back(self, routed: DAODispatcher, mocker):
        spy = mocker.spy(routed.general_dao, "save")
        pet = Pet(name="Rex", species="dog")

        assert routed.save(pet) is True

        spy.assert_called_once_with(pet)

    def test_missing_operation_falls_back(self, dispatcher: DAODispatcher, family: dict[str, Person], mocker):
        dispatcher.set_specific_daos({Person: CountOnlyService(total=42)})
        spy = mocker.spy(dispatcher.general_dao, "search")

        assert dispatcher.count(Search(Person)) == 42
        assert len(dispatcher.search(Search(Person))) == 5
        spy.assert_called_once()

    def test_lookups_call_typed_form(self, routed: DAODispatcher, audited_dao: AuditedPersonDAO, family, mocker):
        fred = family["fred"]
        find = mocker.spy(audited_dao, "find")
        find_all = mocker.spy(audited_dao, "find_all")

        assert routed.find(Person, fred.id) is fred
        assert len(routed.find_all(Person)) == 5

        find.assert_called_once_with(fred.id)
        find_all.assert_called_once_with()

    def test_save_all_groups_by_class_and_keeps_order(
        self, routed: DAODispatcher, audited_dao: AuditedPersonDAO, mocker
    ):
        save_all = mocker.spy(audited_dao, "save_all")
        ann = Person(first_name="Ann", last_name="lee", age=20)
        rex = Pet(name="Rex", species="dog")
        ben = Person(first_name="Ben", last_name="kim", age=22)
        routed.general_dao.save(ben)

        assert routed.save_all([ann, rex, ben]) == [True, True, False]

        save_all.assert_called_once_with([ann, ben])
        assert (ann.last_name, ben.last_name) == ("Lee", "Kim")

    def test_remove_all_mixed_classes(self, routed: DAODispatcher, family: dict[str, Person]):
        loner = family["loner"]
        pets = routed.find_all(Pet)
        tweety = next(p for p in pets if p.name == "Tweety")

        assert routed.remove_all([tweety, Pet(name="Ghost", species="cat"), loner]) == [True, False, True]
        assert routed.find(Person, loner.id) is None

    def test_references_route_by_entity_class(
        self, routed: DAODispatcher, audited_dao: AuditedPersonDAO, family, mocker
    ):
        bob = family["bob"]
        spy = mocker.spy(audited_dao, "save")

        reference = routed.get_reference(Person, bob.id)
        assert routed.save(reference) is False

        spy.assert_called_once_with(reference)

    def test_example_filter_routes_by_example_class(
        self, routed: DAODispatcher, audited_dao: AuditedPersonDAO, family, mocker
    ):
        spy = mocker.spy(audited_dao, "get_filter_from_example")
        example = Person(first_name="Jane")

        search = Search(Person).add_filter(routed.get_filter_from_example(example))

        spy.assert_called_once_with(example, None)
        assert routed.search_unique(search) is family["jane"]

    def test_search_without_class_fails_before_routing(
        self, routed: DAODispatcher, audited_dao: AuditedPersonDAO, mocker
    ):
        spy = mocker.spy(audited_dao, "search")

        with pytest.raises(NullArgument):
            routed.search(Search())
        with pytest.raises(NullArgument):
            routed.search_and_count(None)

        spy.assert_not_called()

    def test_none_entity_rejected(self, routed: DAODispatcher):
        with pytest.raises(NullArgument):
            routed.save(None)
        with pytest.raises(NullArgument):
            routed.save_all([Person(first_name="Ann"), None])

    @pytest.mark.parametrize(
        "operation, args",
        [
            ("find", (None, 1)),
            ("find_by_ids", (None, [1])),
            ("find_all", (None,)),
            ("remove_by_id", (None, 1)),
            ("remove_by_ids", (None, [1])),
            ("get_reference", (None, 1)),
            ("get_references", (None, [1])),
        ],
    )
    def test_none_entity_class_rejected(self, routed: DAODispatcher, general_dao: GeneralDAO, operation, args):
        for dao in (routed, DAODispatcher(general_dao)):
            with pytest.raises(NullArgument):
                getattr(dao, operation)(*args)


@pytest.mark.integration
class TestFlush:
    def test_flush_without_class_and_empty_registry(self, dispatcher: DAODispatcher, mocker):
        spy = mocker.spy(dispatcher.general_dao, "flush")

        dispatcher.flush()

        spy.assert_called_once_with()

    def test_flush_without_class_and_registered_daos(self, routed: DAODispatcher):
        with pytest.raises(DAODispatcherException):
            routed.flush()

    def test_flush_with_class(self, routed: DAODispatcher, audited_dao: AuditedPersonDAO, mocker):
        specific = mocker.spy(audited_dao, "flush")
        general = mocker.spy(routed.general_dao, "flush")

        routed.flush(Person)
        specific.assert_called_once_with()

        routed.flush(Pet)
        # Person's flush delegates to the shared GeneralDAO, Pet's goes there directly
        assert general.call_count == 2


@pytest.mark.integration
class TestGenericDAO:
    def test_search_without_class_is_bound_to_model(self, person_dao: GenericDAO[Person], family):
        search = Search().add_filter_equal("first_name", "Bob")

        assert person_dao.search_unique(search) is family["bob"]
        assert search.search_class is None

    def test_search_for_other_class_rejected(self, person_dao: GenericDAO[Person]):
        with pytest.raises(InvalidSearch):
            person_dao.search(Search(Pet))

    def test_typed_operations(self, person_dao: GenericDAO[Person], family: dict[str, Person]):
        bob, fred = family["bob"], family["fred"]

        assert person_dao.find(bob.id) is bob
        assert person_dao.find_by_ids([fred.id, bob.id]) == [fred, bob]
        assert person_dao.count(Search().add_filter_greater_than("age", 50)) == 2
        assert person_dao.search_and_count(Search().set_max_results(1)).total_count == 5
        assert person_dao.get_reference(bob.id).first_name == "Bob"
        assert person_dao.is_attached(bob) is True

        assert person_dao.remove_by_ids([family["loner"].id]) == [True]
        assert len(person_dao.find_all()) == 4

    def test_model_required(self, session: Session):
        with pytest.raises(ValueError):
            GenericDAO(None, session)

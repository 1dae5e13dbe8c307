"""Model class and instance operations against a recording channel."""

import re

import pytest

from fluent_graph.core.config import settings
from fluent_graph.core.errors import ConfigurationError, DeletedInstanceError, ModelNotFoundError, RelationNotFoundError
from fluent_graph.domain import Collection, RelatedToMany
from fluent_graph.infrastructure.neo4j.query_builder import AccessMode
from tests.fakes import FakeChannel, make_node, make_relationship
from tests.sample_models import Employee, Movie, Person, Tag

pytestmark = pytest.mark.usefixtures("registry")


@pytest.fixture(autouse=True)
def frozen_clock(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "date_format", "NOW")


def stored(model_cls, identity: int, **properties):
    return model_cls().hydrate(str(identity), properties)


class TestDefinition:
    def test_label_defaults_to_class_name(self) -> None:
        assert Tag().label == "Tag"
        assert Employee().label == "Person:Employee"

    def test_variables_are_unique(self) -> None:
        assert Person().variable != Person().variable
        assert re.fullmatch(r"person\d+", Person().variable)

    def test_as(self) -> None:
        assert Person.as_("p").variable == "p"

    def test_attributes(self) -> None:
        person = Person({"name": "Keanu"})
        person["born"] = 1964

        assert person["name"] == "Keanu"
        assert person.get("born") == 1964
        assert person.get("missing", "x") == "x"
        assert "name" in person
        assert not person.is_persisted

    def test_fill(self) -> None:
        person = stored(Person, 1, name="Keanu")
        person.fill({"name": "Carrie"})

        assert person.attributes == {"name": "Carrie"}
        assert not person.is_persisted

    def test_hydrate(self) -> None:
        person = stored(Person, 3, name="Keanu")

        assert person.primary_key == 3
        assert person.attributes == {"name": "Keanu", "_id": 3}
        assert person.is_persisted

    def test_to_dict(self) -> None:
        person = stored(Person, 1, name="Keanu")
        movie = Movie().hydrate("2", {"title": "The Matrix"}, {"role": "Neo", "_id": 9})
        person.relations["acted_in_movies"] = Collection([movie])
        person.relations["directed_moviesCount"] = 0

        assert person.to_dict() == {
            "name": "Keanu",
            "_id": 1,
            "acted_in_movies": [
                {"title": "The Matrix", "_id": 2, "__relationProperties": {"role": "Neo", "_id": 9}, "_label": "Movie"}
            ],
            "directed_moviesCount": 0,
            "_label": "Person",
        }


class TestRelationResolution:
    def test_resolves_relation_method(self) -> None:
        relation = Person().resolve_relation("acted_in_movies")

        assert isinstance(relation, RelatedToMany)
        assert relation.attached_to is Movie
        assert relation.relation_name == "ACTED_IN"

    def test_resolves_named_target_through_registry(self) -> None:
        assert Movie().resolve_relation("actors").attached_to is Person

    @pytest.mark.parametrize("name", ["missing", "nickname", "_sync", "save"])
    def test_rejects_non_relations(self, name: str) -> None:
        with pytest.raises(RelationNotFoundError):
            Person().resolve_relation(name)

    def test_named_target_needs_registry(self, registry) -> None:
        Movie.registry = None

        with pytest.raises(ConfigurationError, match="without a registry"):
            Movie().actors()


class TestReads:
    async def test_all(self, channel: FakeChannel) -> None:
        channel.respond({"p": make_node(1, "Person", name="a")}, {"p": make_node(2, "Person", name="b")})

        people = await Person.all()

        assert re.fullmatch(
            r"MATCH \((person\d+):Person\) WHERE NOT exists\(\1.deleted_at\) RETURN \1", channel.last_query
        )
        assert channel.last_mode is AccessMode.READ
        assert [person.get("name") for person in people] == ["a", "b"]
        assert [person.primary_key for person in people] == [1, 2]

    async def test_first(self, channel: FakeChannel) -> None:
        channel.respond({"t": make_node(1, "Tag")})

        tag = await Tag.first()

        assert re.fullmatch(r"MATCH \((tag\d+):Tag\) RETURN \1 LIMIT 1", channel.last_query)
        assert tag.primary_key == 1

    async def test_last(self, channel: FakeChannel) -> None:
        await Tag.last()
        assert re.fullmatch(r"MATCH \((tag\d+):Tag\) RETURN \1 ORDER BY id\(\1\) DESC LIMIT 1", channel.last_query)

    @pytest.mark.parametrize("identity", [7, "7"])
    async def test_find(self, channel: FakeChannel, identity) -> None:
        channel.respond({"p": make_node(7, "Person", name="Keanu")})

        person = await Person.find(identity)

        assert re.fullmatch(
            r"MATCH \((person\d+):Person\) WHERE NOT exists\(\1.deleted_at\) AND \(id\(\1\) = 7\) RETURN \1 LIMIT 1",
            channel.last_query,
        )
        assert person.get("name") == "Keanu"

    async def test_find_missing(self) -> None:
        assert await Person.find(7) is None

    async def test_find_or_fail(self) -> None:
        with pytest.raises(ModelNotFoundError, match="Cannot find node for 5 model"):
            await Person.find_or_fail(5)

    async def test_count(self, channel: FakeChannel) -> None:
        channel.respond({"total": 4})

        assert await Person.count() == 4
        assert re.fullmatch(
            r"MATCH \((person\d+):Person\) WHERE NOT exists\(\1.deleted_at\) RETURN count\(\1\) as __count\d+ LIMIT 1",
            channel.last_query,
        )


class TestWrites:
    async def test_create(self, channel: FakeChannel) -> None:
        channel.respond({"p": make_node(1, "Person", name="Keanu", created_at="NOW", updated_at="NOW")})

        person = await Person.create({"name": "Keanu"})

        assert re.fullmatch(
            r"CREATE \((person\d+):Person \{ name: 'Keanu', created_at: 'NOW', updated_at: 'NOW' \}\) "
            r"RETURN \1 LIMIT 1",
            channel.last_query,
        )
        assert channel.last_mode is AccessMode.WRITE
        assert person.primary_key == 1
        assert person.is_persisted

    async def test_create_without_timestamps(self, channel: FakeChannel) -> None:
        await Tag.create({"name": "python"})
        assert re.fullmatch(r"CREATE \((tag\d+):Tag \{ name: 'python' \}\) RETURN \1 LIMIT 1", channel.last_query)

    async def test_create_many(self, channel: FakeChannel) -> None:
        channel.respond({"p": make_node(1, "Person", name="a")}, {"p": make_node(2, "Person", name="b")})

        people = await Person.create_many([{"name": "a"}, {"name": "b"}])

        assert re.fullmatch(
            r"UNWIND \[\{ name: 'a' \},\{ name: 'b' \}\] AS map CREATE \((person\d+):Person\) SET \1 = map RETURN \1",
            channel.last_query,
        )
        assert len(people) == 2

    async def test_create_many_requires_list(self) -> None:
        with pytest.raises(ConfigurationError, match="data must be a list"):
            await Person.create_many({"name": "a"})

    async def test_save_inserts_new_instance(self, channel: FakeChannel) -> None:
        channel.respond({"p": make_node(4, "Person", name="Keanu")})
        person = Person({"name": "Keanu"})

        await person.save()

        assert channel.last_query.startswith("CREATE ")
        assert person.primary_key == 4
        assert person.is_persisted

    async def test_save_updates_stored_instance(self, channel: FakeChannel) -> None:
        person = stored(Person, 4, name="Keanu")
        person.set("name", "Keanu Reeves")

        await person.save()

        v = person.variable
        assert channel.last_query == (
            f"MATCH ({v}:Person) WHERE NOT exists({v}.deleted_at) AND (id({v}) = 4) "
            f"SET {v} += {{ name: 'Keanu Reeves', updated_at: 'NOW' }} RETURN {v} LIMIT 1"
        )

    async def test_update(self, channel: FakeChannel) -> None:
        channel.respond({"t": make_node(4, "Tag", name="py", level=2)})
        tag = stored(Tag, 4, name="py")

        await tag.update({"level": 2})

        v = tag.variable
        assert channel.last_query == f"MATCH ({v}:Tag) WHERE id({v}) = 4 SET {v} += {{ level: 2 }} RETURN {v} LIMIT 1"
        assert tag.get("level") == 2
        assert tag.is_persisted

    async def test_update_all(self, channel: FakeChannel) -> None:
        await Tag.update_all({"seen": True})
        assert re.fullmatch(r"MATCH \((tag\d+):Tag\) SET \1 \+= \{ seen: true \} RETURN \1", channel.last_query)


class TestDeletes:
    async def test_soft_delete(self, channel: FakeChannel) -> None:
        person = stored(Person, 1, name="Keanu")

        await person.delete()

        v = person.variable
        assert channel.last_query == (
            f"MATCH ({v}:Person) WHERE NOT exists({v}.deleted_at) AND (id({v}) = 1) SET {v}.deleted_at = 'NOW'"
        )
        assert person.is_deleted

    async def test_deleted_instance_refuses_writes(self) -> None:
        person = stored(Person, 1)
        await person.delete()

        with pytest.raises(DeletedInstanceError, match="deleted instance"):
            person.set("name", "x")
        with pytest.raises(DeletedInstanceError):
            person["name"] = "x"
        with pytest.raises(DeletedInstanceError):
            person.fill({"name": "x"})

    async def test_hard_delete(self, channel: FakeChannel) -> None:
        tag = stored(Tag, 2)

        await tag.delete(detach=False)

        v = tag.variable
        assert channel.last_query == f"MATCH ({v}:Tag) WHERE id({v}) = 2 DELETE {v}"

    async def test_force_delete(self, channel: FakeChannel) -> None:
        person = stored(Person, 1)

        await person.force_delete()

        v = person.variable
        assert channel.last_query == (
            f"MATCH ({v}:Person) WHERE NOT exists({v}.deleted_at) AND (id({v}) = 1) DETACH DELETE {v}"
        )

    async def test_restore(self, channel: FakeChannel) -> None:
        person = stored(Person, 1)
        await person.delete()

        await person.restore()

        v = person.variable
        assert channel.last_query == f"MATCH ({v}:Person) WHERE id({v}) = 1 SET {v}.deleted_at = null"
        assert channel.last_mode is AccessMode.WRITE
        assert not person.is_deleted
        person.set("name", "back")

    async def test_destroy_one(self, channel: FakeChannel) -> None:
        await Tag.destroy(3)
        assert re.fullmatch(r"MATCH \((tag\d+):Tag\) WHERE id\(\1\) = 3 DETACH DELETE \1", channel.last_query)

    async def test_destroy_many(self, channel: FakeChannel) -> None:
        await Person.destroy([1, "2"])
        assert re.fullmatch(
            r"MATCH \((person\d+):Person\) WHERE NOT exists\(\1.deleted_at\) AND \(id\(\1\) IN \[1,2\]\) "
            r"SET \1.deleted_at = 'NOW'",
            channel.last_query,
        )

    @pytest.mark.parametrize("identity", [None, [], ""])
    async def test_destroy_requires_ids(self, identity) -> None:
        with pytest.raises(ConfigurationError, match="you must specify the id"):
            await Tag.destroy(identity)

    async def test_truncate(self, channel: FakeChannel) -> None:
        await Tag.truncate()
        assert re.fullmatch(r"MATCH \((tag\d+):Tag\) DETACH DELETE \1", channel.last_query)

    async def test_force_truncate(self, channel: FakeChannel) -> None:
        await Person.force_truncate()
        assert re.fullmatch(
            r"MATCH \((person\d+):Person\) WHERE NOT exists\(\1.deleted_at\) DETACH DELETE \1", channel.last_query
        )


class TestLoadRelation:
    async def test_load_keeps_result(self, channel: FakeChannel) -> None:
        person = stored(Person, 1, name="Keanu")
        matrix = make_node(2, "Movie", title="The Matrix")
        edge = make_relationship(9, "ACTED_IN", make_node(1, "Person"), matrix)
        channel.respond_with(lambda q: [{re.search(r"RETURN (\w+),", q).group(1): matrix, "__relationProperty": edge}])

        movies = await person.load("acted_in_movies")

        assert person.get_related("acted_in_movies") is movies
        assert movies.first().get("title") == "The Matrix"
        assert movies.first().relation_properties == {"_id": 9}

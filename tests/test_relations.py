"""Relation loading, attaching and detaching."""

import re

import pytest

from fluent_graph.core.config import settings
from fluent_graph.core.errors import ConfigurationError, RelationNotFoundError, RelationTypeMismatchError
from fluent_graph.domain import Collection, RelatedToMany, RelatedToOne
from fluent_graph.infrastructure.neo4j.query_builder import AccessMode
from tests.fakes import FakeChannel, make_node, make_relationship
from tests.sample_models import Movie, Person, Role, Tag, User

pytestmark = pytest.mark.usefixtures("registry")


@pytest.fixture(autouse=True)
def frozen_clock(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "date_format", "NOW")


@pytest.fixture
def keanu() -> Person:
    return Person().hydrate("1", {"name": "Keanu Reeves"})


@pytest.fixture
def matrix() -> Movie:
    return Movie().hydrate("2", {"title": "The Matrix"})


class TestDefinition:
    def test_outgoing(self, keanu: Person) -> None:
        relation = keanu.acted_in_movies()

        assert relation.direction == "->"
        assert relation.label == "ACTED_IN"
        assert relation.registry is Person.registry
        assert re.fullmatch(r"person_movie\d+", relation.variable)
        assert not relation.is_singular

    def test_reverse_with_named_target(self, matrix: Movie) -> None:
        relation = matrix.actors()

        assert relation.attached_to is Person
        assert relation.direction == "<-"

    def test_singular(self) -> None:
        assert isinstance(User().role(), RelatedToOne)
        assert User().role().is_singular

    def test_relations_have_no_relations(self, keanu: Person) -> None:
        with pytest.raises(RelationNotFoundError):
            keanu.acted_in_movies().resolve_relation("anything")

    def test_spawn_keeps_definition(self, keanu: Person) -> None:
        relation = keanu.acted_in_movies()
        copy = relation.spawn()

        assert isinstance(copy, RelatedToMany)
        assert (copy.parent, copy.attached_to, copy.relation_name) == (keanu, Movie, "ACTED_IN")


class TestLoad:
    async def test_load_many(self, keanu: Person, channel: FakeChannel) -> None:
        relation = keanu.acted_in_movies()
        matrix_node = make_node(2, "Movie", title="The Matrix")
        edge = make_relationship(9, "ACTED_IN", make_node(1, "Person"), matrix_node, roles=["Neo"])
        channel.respond_with(
            lambda q: [{re.search(r"RETURN (\w+),", q).group(1): matrix_node, "__relationProperty": edge}]
        )

        movies = await relation.load()

        pv, rv = keanu.variable, relation.variable
        assert re.fullmatch(
            rf"MATCH \({pv}:Person\) -\[{rv}:ACTED_IN\]-> \((movie\d+):Movie\) "
            rf"WHERE NOT exists\(\1\.deleted_at\) AND \(id\({pv}\) = 1\) RETURN \1,{rv} as __relationProperty",
            channel.last_query,
        )
        assert channel.last_mode is AccessMode.READ
        assert isinstance(movies, Collection)
        assert movies.first().get("title") == "The Matrix"
        assert movies.first().relation_properties == {"roles": ["Neo"], "_id": 9}

    async def test_load_reverse(self, matrix: Movie, channel: FakeChannel) -> None:
        relation = matrix.actors()

        await relation.load()

        assert re.match(
            rf"MATCH \({matrix.variable}:Movie\) <-\[{relation.variable}:ACTED_IN\]- \(person\d+:Person\)",
            channel.last_query,
        )

    async def test_load_one(self, channel: FakeChannel) -> None:
        user = User().hydrate("1", {})
        channel.respond_with(lambda q: [{re.search(r"RETURN (\w+),", q).group(1): make_node(3, "Role", name="admin")}])

        role = await user.role().load()

        assert isinstance(role, Role)
        assert role.get("name") == "admin"

    async def test_load_one_missing(self) -> None:
        assert await User().hydrate("1", {}).role().load() is None


class TestAttach:
    async def test_attach(self, keanu: Person, matrix: Movie, channel: FakeChannel) -> None:
        relation = keanu.acted_in_movies()
        channel.respond_with(
            lambda q: [
                {
                    relation.variable: make_relationship(
                        9, "ACTED_IN", make_node(1, "Person"), make_node(2, "Movie"), roles=["Neo"]
                    )
                }
            ]
        )

        edge = await relation.attach(matrix, {"roles": ["Neo"]})

        pv, mv, rv = keanu.variable, matrix.variable, relation.variable
        assert channel.last_query == (
            f"MATCH ({pv}:Person), ({mv}:Movie) WHERE (id({pv}) = 1 AND id({mv}) = 2) "
            f"CREATE ({pv}) -[{rv}:ACTED_IN {{ roles: ['Neo'], created_at: 'NOW', updated_at: 'NOW' }}]-> ({mv}) "
            f"RETURN {rv} LIMIT 1"
        )
        assert channel.last_mode is AccessMode.WRITE
        assert isinstance(edge, RelatedToMany)
        assert edge.primary_key == 9
        assert edge.get("roles") == ["Neo"]
        assert edge.to_dict() == {"roles": ["Neo"], "_id": 9}

    async def test_attach_reverse(self, keanu: Person, matrix: Movie, channel: FakeChannel) -> None:
        relation = matrix.actors()

        await relation.attach(keanu)

        assert f"CREATE ({matrix.variable}) <-[{relation.variable}:ACTED_IN" in channel.last_query
        assert f"]- ({keanu.variable}) RETURN" in channel.last_query

    async def test_attach_without_timestamps(self, channel: FakeChannel) -> None:
        class Label(Tag):
            def tagged(self) -> RelatedToMany:
                return self.related_to_many(Movie, "TAGS")

        tag = Label().hydrate("5", {})
        relation = tag.tagged()

        await relation.attach(Movie().hydrate("2", {}))

        assert f"-[{relation.variable}:TAGS]->" in channel.last_query

    async def test_attach_wrong_model(self, keanu: Person) -> None:
        with pytest.raises(RelationTypeMismatchError, match="can't attach to the wrong model") as excinfo:
            await keanu.acted_in_movies().attach(Tag())

        assert excinfo.value.details.expected == "Movie"
        assert excinfo.value.details.actual_value == "Tag"

    async def test_attach_many(self, keanu: Person, channel: FakeChannel) -> None:
        movies = [Movie().hydrate("2", {}), Movie().hydrate("3", {})]

        result = await keanu.acted_in_movies().attach_many(movies, [{"role": "Neo"}])

        assert len(channel.executed) == 2
        assert "{ role: 'Neo', created_at: 'NOW', updated_at: 'NOW' }" in channel.queries[0]
        assert "{ created_at: 'NOW', updated_at: 'NOW' }" in channel.queries[1]
        assert len(result) == 2

    async def test_attach_many_requires_list(self, keanu: Person, matrix: Movie) -> None:
        with pytest.raises(ConfigurationError, match="first argument must be a valid models array"):
            await keanu.acted_in_movies().attach_many(matrix)


class TestEdgeOperations:
    async def test_update(self, channel: FakeChannel) -> None:
        user, admin = User().hydrate("1", {}), Role().hydrate("2", {})
        relation = user.role()

        await relation.update(admin, {"since": 2020})

        uv, rv, av = user.variable, relation.variable, admin.variable
        assert channel.last_query == (
            f"MATCH ({uv}:User) -[{rv}:IS]-> ({av}:Role) WHERE (id({uv}) = 1 AND id({av}) = 2) "
            f"SET {rv} += {{ since: 2020, updated_at: 'NOW' }} RETURN {rv} LIMIT 1"
        )

    async def test_detach(self, keanu: Person, matrix: Movie, channel: FakeChannel) -> None:
        relation = keanu.acted_in_movies()

        await relation.detach(matrix)

        pv, mv, rv = keanu.variable, matrix.variable, relation.variable
        assert channel.last_query == (
            f"MATCH ({pv}:Person) -[{rv}:ACTED_IN]-> ({mv}:Movie) "
            f"WHERE NOT exists({pv}.deleted_at) AND ((id({pv}) = 1 AND id({mv}) = 2)) DELETE {rv}"
        )
        assert channel.last_mode is AccessMode.WRITE

    async def test_detach_wrong_model(self, keanu: Person) -> None:
        with pytest.raises(RelationTypeMismatchError, match="can't detach the wrong model"):
            await keanu.acted_in_movies().detach(Tag())

    async def test_exists(self, keanu: Person, matrix: Movie, channel: FakeChannel) -> None:
        channel.respond({"total": 1})
        relation = keanu.acted_in_movies()

        assert await relation.exists(matrix) is True
        assert re.search(rf"RETURN count\({relation.variable}\) as __count\d+ LIMIT 1$", channel.last_query)

    async def test_not_exists(self, keanu: Person, matrix: Movie) -> None:
        assert await keanu.acted_in_movies().exists(matrix) is False

"""Result collections."""

from fluent_graph.domain import Collection
from tests.sample_models import Tag


class TestCollection:
    def test_sequence_protocol(self) -> None:
        items = Collection([1, 2, 3])

        assert len(items) == 3
        assert list(items) == [1, 2, 3]
        assert items[1] == 2
        assert items[-1] == 3
        assert items[:2] == Collection([1, 2])

    def test_first_and_count(self) -> None:
        assert Collection(["a", "b"]).first() == "a"
        assert Collection().first() is None
        assert Collection(["a", "b"]).count() == 2

    def test_to_list_is_a_copy(self) -> None:
        items = Collection([1])
        items.to_list().append(2)

        assert items.to_list() == [1]

    def test_map(self) -> None:
        assert Collection([1, 2]).map(lambda x: x * 10) == [10, 20]

    def test_to_dict(self) -> None:
        tag = Tag().hydrate("3", {"name": "python"})

        assert Collection([tag, 4]).to_dict() == [{"name": "python", "_id": 3, "_label": "Tag"}, 4]

    def test_repr(self) -> None:
        assert repr(Collection([1])) == "Collection([1])"

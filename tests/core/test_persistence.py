import pytest

from folio_core.db.models import Article, Topic
from folio_core.errors import Conflict, InvalidArgument, NotFound
from folio_core.identity import new_entity_id


def _topic(name, parent=None, **kwargs):
    return Topic(
        id=new_entity_id(),
        name=name,
        parent_id=parent.id if parent else None,
        ancestors=[*parent.ancestors, parent.id] if parent else [],
        created_by="creator",
        **kwargs,
    )


def test_insert_get_and_find(db):
    root = db.insert(_topic("Science"))
    child = db.insert(_topic("Physics", root))

    assert db.get(Topic, root.id) is root
    assert [t.name for t in db.find(Topic, {"parent_id": root.id})] == ["Physics"]
    assert [t.name for t in db.find(Topic, {"parent_id": None})] == ["Science"]
    assert [t.id for t in db.find(Topic, {"ancestors__contains": root.id})] == [child.id]
    assert db.count(Topic) == 2


def test_find_ordering_and_limit(db):
    for name in ["b", "c", "a"]:
        db.insert(_topic(name))
    assert [t.name for t in db.find(Topic, order_by=["name"])] == ["a", "b", "c"]
    assert [t.name for t in db.find(Topic, order_by=["-name"], limit=2)] == ["c", "b"]
    assert db.find_one(Topic, {"name": "zzz"}) is None


def test_unknown_field_or_operator_is_rejected(db):
    with pytest.raises(InvalidArgument):
        list(db.find(Topic, {"colour": "red"}))
    with pytest.raises(InvalidArgument):
        list(db.find(Topic, {"name__regex": "x"}))


def test_update_one_missing_entity(db):
    with pytest.raises(NotFound):
        db.update_one(Topic, new_entity_id(), {"name": "x"})


def test_conditional_update_detects_stale_version(db):
    article = db.insert(
        Article(id=new_entity_id(), title="t", content="c", author="a", ancestors=[], version=1)
    )
    db.update_one(Article, article.id, {"version": 2, "title": "t2"}, expected_version=1)
    assert db.get(Article, article.id).version == 2

    with pytest.raises(Conflict):
        db.update_one(Article, article.id, {"version": 2, "title": "lost"}, expected_version=1)
    assert db.get(Article, article.id).title == "t2"


def test_transactionally_rolls_back_on_failure(db):
    topic = db.insert(_topic("Keep"))

    def _work(tx):
        tx.update_one(Topic, topic.id, {"name": "Changed"})
        tx.insert(_topic("Orphan"))
        raise NotFound("boom")

    with pytest.raises(NotFound):
        db.transactionally(_work)

    assert db.get(Topic, topic.id).name == "Keep"
    assert db.count(Topic) == 1


def test_nested_transactions_join_the_outer_one(db):
    def _inner(tx):
        tx.insert(_topic("Inner"))

    def _outer(tx):
        tx.transactionally(_inner)
        raise Conflict("abort")

    with pytest.raises(Conflict):
        db.transactionally(_outer)
    assert db.count(Topic) == 0


def test_integrity_error_maps_to_conflict(db):
    topic = db.insert(_topic("One"))
    db.session.expunge_all()
    with pytest.raises(Conflict):
        db.insert(Topic(id=topic.id, name="Dup", ancestors=[], created_by="x"))
    assert db.count(Topic) == 1

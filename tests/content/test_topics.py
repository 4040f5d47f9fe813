import pytest

from folio_core.db.models import Article, Topic
from folio_core.errors import CycleDetected, Forbidden, InvalidArgument, NotFound
from folio_core.identity import new_entity_id
from folio_core.tree import TreeModel

from content_service.schemas import TopicPatch


def assert_ancestry_consistent(db):
    """Every live topic's ancestors equal its parent's ancestors plus the parent."""
    for topic in db.find(Topic, {"deleted": False}):
        if topic.parent_id is None:
            assert topic.ancestors == [], topic.name
            continue
        parent = db.get(Topic, topic.parent_id)
        assert topic.ancestors == [*parent.ancestors, parent.id], topic.name


def test_create_root_and_child(topics, editor, db):
    science = topics.create("Science", editor, description="  Natural sciences ")
    physics = topics.create("Physics", editor, parent_id=science.id)

    assert science.parent_id is None
    assert science.ancestors == []
    assert science.description == "Natural sciences"
    assert science.created_by == editor.id
    assert physics.parent_id == science.id
    assert physics.ancestors == [science.id]
    assert_ancestry_consistent(db)


def test_create_requires_writer_and_valid_input(topics, editor, viewer):
    with pytest.raises(Forbidden):
        topics.create("Nope", viewer)
    with pytest.raises(Forbidden):
        topics.create("Nope", None)
    with pytest.raises(InvalidArgument):
        topics.create("   ", editor)
    with pytest.raises(NotFound):
        topics.create("Orphan", editor, parent_id=new_entity_id())


def test_duplicate_names_are_allowed(topics, editor):
    a = topics.create("History", editor)
    b = topics.create("History", editor)
    assert a.id != b.id


def test_update_fields_and_permissions(topics, editor, other_editor, admin):
    topic = topics.create("Mathematics", editor)

    updated = topics.update(topic.id, {"name": "Maths", "description": "Numbers"}, editor)
    assert updated.name == "Maths"
    assert updated.description == "Numbers"

    with pytest.raises(Forbidden):
        topics.update(topic.id, TopicPatch(name="Hijack"), other_editor)

    assert topics.update(topic.id, TopicPatch(description=None), admin).description is None


def test_update_rejects_unknown_patch_fields(topics, editor):
    topic = topics.create("Art", editor)
    with pytest.raises(InvalidArgument):
        topics.update(topic.id, {"colour": "red"}, editor)


def test_reparent_through_update(topics, editor, db):
    a = topics.create("A", editor)
    b = topics.create("B", editor, parent_id=a.id)
    c = topics.create("C", editor, parent_id=b.id)
    x = topics.create("X", editor)

    topics.update(b.id, {"parent_id": x.id}, editor)
    assert_ancestry_consistent(db)

    assert topics.get(b.id).ancestors == [x.id]
    assert topics.get(c.id).ancestors == [x.id, b.id]

    moved = topics.update(b.id, {"parent_id": None}, editor)
    assert_ancestry_consistent(db)
    assert moved.parent_id is None
    assert topics.get(c.id).ancestors == [b.id]


def test_reparent_under_descendant_is_rejected(topics, editor, db):
    a = topics.create("A", editor)
    b = topics.create("B", editor, parent_id=a.id)
    c = topics.create("C", editor, parent_id=b.id)

    with pytest.raises(CycleDetected):
        topics.update(a.id, {"parent_id": c.id}, editor)

    assert topics.get(a.id).parent_id is None
    assert topics.get(c.id).ancestors == [a.id, b.id]
    assert_ancestry_consistent(db)


def test_delete_cascades_and_keeps_articles(topics, articles, editor, admin):
    a = topics.create("A", editor)
    b = topics.create("B", editor, parent_id=a.id)
    article = articles.create("Doc", "<p>x</p>", editor, topic_id=b.id)

    with pytest.raises(Forbidden):
        topics.delete(a.id, editor)

    assert topics.delete(a.id, admin) == 2
    assert topics.delete(a.id, admin) == 0
    with pytest.raises(NotFound):
        topics.get(b.id)
    assert articles.get(article.id, editor).topic_id == b.id


def test_get_with_children_and_counts(topics, articles, editor):
    parent = topics.create("Parent", editor)
    zeta = topics.create("Zeta", editor, parent_id=parent.id)
    alpha = topics.create("Alpha", editor, parent_id=parent.id)
    topics.create("Grandchild", editor, parent_id=alpha.id)

    published = articles.create("P", "<p>p</p>", editor, topic_id=alpha.id)
    articles.publish(published.id, editor)
    articles.create("Draft", "<p>d</p>", editor, topic_id=alpha.id)

    result = topics.get_with_children(parent.id)

    assert result.topic.id == parent.id
    assert result.article_count == 0
    assert [c.topic.id for c in result.children] == [alpha.id, zeta.id]
    assert [c.article_count for c in result.children] == [1, 0]


def test_get_path_is_root_first(topics, editor):
    a = topics.create("A", editor)
    b = topics.create("B", editor, parent_id=a.id)
    c = topics.create("C", editor, parent_id=b.id)

    assert [t.name for t in topics.get_path(c.id)] == ["A", "B", "C"]
    assert [t.name for t in topics.get_path(a.id)] == ["A"]


def test_list_topics_skips_deleted(topics, editor, admin):
    keep = topics.create("Keep", editor)
    drop = topics.create("Drop", editor)
    topics.delete(drop.id, admin)

    assert [s.topic.id for s in topics.list_topics()] == [keep.id]


def test_merge_moves_articles_and_children(topics, articles, editor, admin, db):
    science = topics.create("Science", editor)
    physics = topics.create("Physics", editor, parent_id=science.id)
    quantum = topics.create("Quantum", editor, parent_id=physics.id)
    natural = topics.create("Natural Sciences", editor)
    article = articles.create("Atoms", "<p>a</p>", editor, topic_id=science.id)

    report = topics.merge(science.id, natural.id, admin)

    assert report.moved_articles == 1
    assert report.reparented_topics == 1
    assert not report.dry_run
    assert articles.get(article.id, editor).topic_id == natural.id
    assert topics.get(physics.id).parent_id == natural.id
    assert topics.get(physics.id).ancestors == [natural.id]
    assert topics.get(quantum.id).ancestors == [natural.id, physics.id]
    assert_ancestry_consistent(db)
    with pytest.raises(NotFound):
        topics.get(science.id)


def test_merge_into_own_parent(topics, editor, admin, db):
    science = topics.create("Science", editor)
    physics = topics.create("Physics", editor, parent_id=science.id)
    quantum = topics.create("Quantum", editor, parent_id=physics.id)
    assert science.ancestors == []
    assert physics.ancestors == [science.id]
    assert quantum.ancestors == [science.id, physics.id]
    assert_ancestry_consistent(db)

    report = topics.merge(physics.id, science.id, admin)

    assert report.reparented_topics == 1
    assert topics.get(quantum.id).parent_id == science.id
    assert topics.get(quantum.id).ancestors == [science.id]
    assert db.get(Topic, physics.id).deleted
    assert [c.topic.id for c in topics.get_with_children(science.id).children] == [quantum.id]
    assert_ancestry_consistent(db)


def test_merge_dry_run_changes_nothing(topics, articles, editor, admin):
    source = topics.create("Source", editor)
    child = topics.create("Child", editor, parent_id=source.id)
    target = topics.create("Target", editor)
    article = articles.create("Doc", "<p>d</p>", editor, topic_id=source.id)

    report = topics.merge(source.id, target.id, admin, dry_run=True)

    assert report.dry_run
    assert (report.moved_articles, report.reparented_topics) == (1, 1)
    assert topics.get(source.id).deleted is False
    assert topics.get(child.id).parent_id == source.id
    assert articles.get(article.id, editor).topic_id == source.id


def test_merge_validation(topics, editor, admin):
    a = topics.create("A", editor)
    b = topics.create("B", editor, parent_id=a.id)

    with pytest.raises(InvalidArgument):
        topics.merge(a.id, a.id, admin)
    with pytest.raises(CycleDetected):
        topics.merge(a.id, b.id, admin)
    with pytest.raises(Forbidden):
        topics.merge(b.id, a.id, editor)
    with pytest.raises(NotFound):
        topics.merge(a.id, new_entity_id(), admin)


def test_merge_is_all_or_nothing(topics, articles, editor, admin, monkeypatch, db):
    source = topics.create("Source", editor)
    child = topics.create("Child", editor, parent_id=source.id)
    target = topics.create("Target", editor)
    article = articles.create("Doc", "<p>d</p>", editor, topic_id=source.id)

    def _boom(self, node_id, actor_id):
        raise NotFound("simulated failure")

    monkeypatch.setattr(TreeModel, "soft_delete_subtree", _boom)

    with pytest.raises(NotFound):
        topics.merge(source.id, target.id, admin)

    assert db.get(Article, article.id).topic_id == source.id
    assert db.get(Topic, child.id).parent_id == source.id
    assert db.get(Topic, child.id).ancestors == [source.id]
    assert not db.get(Topic, source.id).deleted
    assert_ancestry_consistent(db)


def test_ensure_default_topic_assigns_topicless_articles(topics, articles, editor, admin):
    loose = articles.create("Loose", "<p>l</p>", editor)

    topic, created, assigned = topics.ensure_default_topic(admin)
    assert created and assigned == 1
    assert topic.name == "Uncategorized"
    assert articles.get(loose.id, editor).topic_id == topic.id

    again, created, assigned = topics.ensure_default_topic(admin)
    assert again.id == topic.id
    assert not created and assigned == 0

import pytest

from folio_core.errors import Forbidden

from content_service.settings_store import SettingsKey


def test_defaults_apply_until_set(settings_store):
    assert settings_store.guest_access_enabled() is True
    assert settings_store.require_email_verification() is False
    assert settings_store.all_settings() == {
        "guestAccessEnabled": True,
        "requireEmailVerification": False,
    }


def test_set_is_an_upsert(settings_store):
    settings_store.set(SettingsKey.guest_access_enabled, False)
    settings_store.set(SettingsKey.guest_access_enabled, True)
    settings_store.set("requireEmailVerification", True)
    assert settings_store.get(SettingsKey.guest_access_enabled) is True
    assert settings_store.require_email_verification() is True


def test_public_settings_only_expose_guest_flag(settings_store):
    assert settings_store.public_settings() == {"guestAccessEnabled": True}


def test_update_requires_admin(settings_store, admin, editor):
    with pytest.raises(Forbidden):
        settings_store.update(editor, guest_access_enabled=False)
    with pytest.raises(Forbidden):
        settings_store.update(None, guest_access_enabled=False)

    values = settings_store.update(admin, guest_access_enabled=False)
    assert values["guestAccessEnabled"] is False


def test_guest_reads_follow_the_setting(settings_store, topics, articles, admin, editor, viewer):
    topic = topics.create("Public", editor)
    article = articles.create("Hello", "<p>Hi</p>", editor, topic_id=topic.id)
    articles.publish(article.id, editor)

    assert topics.get(topic.id, None).name == "Public"
    assert articles.get(article.id, None).title == "Hello"

    settings_store.update(admin, guest_access_enabled=False)

    with pytest.raises(Forbidden):
        topics.get(topic.id, None)
    with pytest.raises(Forbidden):
        topics.list_topics(None)
    with pytest.raises(Forbidden):
        articles.get(article.id, None)
    with pytest.raises(Forbidden):
        list(articles.list_articles(actor=None))

    # Signed-in readers are unaffected.
    assert articles.get(article.id, viewer).title == "Hello"

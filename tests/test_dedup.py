import asyncio

import pendulum

from newsdesk.db import generate_external_id
from newsdesk.ingestion import DuplicateDetector, RawFeedItem, jaccard_similarity, story_similarity
from newsdesk.ingestion.dedup import extract_key_phrases, has_common_key_phrases
from newsdesk.models import Article

SHARED_DESCRIPTION = "The city council voted to approve the downtown development project on Tuesday."


def _stored(store, title, link, feed_name="KOAT News", excerpt="", hours_old=0):
    created = pendulum.now("UTC").subtract(hours=hours_old)
    return store.add_article(
        Article(
            title=title,
            slug=f"stored-{len(store.posts) + 1}",
            content="<p>body</p>",
            excerpt=excerpt,
            external_id=generate_external_id(link, feed_name),
            external_source=feed_name,
            external_url=link,
            author_id=1,
        ),
        created_at=created,
    )


def test_jaccard_ignores_short_words():
    assert jaccard_similarity("the cat sat", "a dog ran") == 0.0
    assert jaccard_similarity("", "anything here") == 0.0
    assert jaccard_similarity("city council meets", "council meets today") == 0.5


def test_key_phrases():
    phrases = extract_key_phrases("City Council Approves Downtown Project")
    assert "city council" in phrases
    assert "council approves downtown" in phrases
    assert has_common_key_phrases("Downtown Project stalls", "Council backs Downtown Project")
    assert not has_common_key_phrases("City Council Approves", "Council OKs Downtown")


def test_similarity_reaches_threshold_with_matching_description():
    score = story_similarity(
        "City Council Approves Downtown Project",
        SHARED_DESCRIPTION,
        "Council OKs Downtown Development Project",
        SHARED_DESCRIPTION,
    )
    assert score == 0.65


def test_similarity_below_threshold_with_different_description():
    score = story_similarity(
        "City Council Approves Downtown Project",
        "Traffic will be rerouted during construction.",
        "Council OKs Downtown Development Project",
        SHARED_DESCRIPTION,
    )
    assert score < 0.65


def test_exact_identity_is_duplicate(store, make_feed):
    feed = make_feed(name="KRQE News")
    link = "https://news.test/story"
    _stored(store, "Stored story title", link, feed_name="KRQE News")
    item = RawFeedItem(title="Stored story title", link=link)

    detector = DuplicateDetector(store)
    assert asyncio.run(detector.is_duplicate(item, feed, generate_external_id(link, feed.name)))


def test_stale_copy_allows_reimport(store, make_feed):
    feed = make_feed(name="KRQE News", max_duplicate_age_hours=1)
    link = "https://news.test/story"
    _stored(store, "Stored story title", link, feed_name="KRQE News", hours_old=2)
    item = RawFeedItem(title="Stored story title", link=link)

    detector = DuplicateDetector(store)
    assert not asyncio.run(detector.is_duplicate(item, feed, generate_external_id(link, feed.name)))


def test_recent_copy_within_age_window_is_duplicate(store, make_feed):
    feed = make_feed(name="KRQE News", max_duplicate_age_hours=12)
    link = "https://news.test/story"
    _stored(store, "Stored story title", link, feed_name="KRQE News", hours_old=2)
    item = RawFeedItem(title="Stored story title", link=link)

    detector = DuplicateDetector(store)
    assert asyncio.run(detector.is_duplicate(item, feed, generate_external_id(link, feed.name)))


def test_similar_story_from_other_source(store, make_feed):
    _stored(
        store,
        "Council OKs Downtown Development Project",
        "https://koat.test/council",
        excerpt=SHARED_DESCRIPTION,
    )
    item = RawFeedItem(
        title="City Council Approves Downtown Project",
        link="https://krqe.test/council",
        description=SHARED_DESCRIPTION,
    )
    external_id = generate_external_id(item.link, "KRQE News")
    detector = DuplicateDetector(store)

    strict = make_feed(content_similarity_threshold=0.65)
    assert asyncio.run(detector.is_duplicate(item, strict, external_id))

    disabled = make_feed(content_similarity_threshold=1.0)
    assert not asyncio.run(detector.is_duplicate(item, disabled, external_id))

    allowed = make_feed(content_similarity_threshold=0.65, allow_duplicates_from_different_sources=True)
    assert not asyncio.run(detector.is_duplicate(item, allowed, external_id))


def test_short_titles_skip_similarity(store):
    _stored(store, "Fire news", "https://koat.test/fire", excerpt="A fire broke out downtown tonight.")
    item = RawFeedItem(title="Fire news", link="https://krqe.test/fire")

    detector = DuplicateDetector(store)
    assert asyncio.run(detector.find_similar(item, 0.1)) == []


def test_old_posts_fall_outside_similarity_window(store):
    _stored(
        store,
        "Council OKs Downtown Development Project",
        "https://koat.test/council",
        excerpt=SHARED_DESCRIPTION,
        hours_old=24 * 5,
    )
    item = RawFeedItem(
        title="City Council Approves Downtown Project",
        link="https://krqe.test/council",
        description=SHARED_DESCRIPTION,
    )

    detector = DuplicateDetector(store, similarity_window_days=3)
    assert asyncio.run(detector.find_similar(item, 0.65)) == []

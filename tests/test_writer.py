import asyncio

import pendulum
import pytest

from newsdesk.db import ArticleWriter, MemoryStore, generate_external_id
from newsdesk.errors import PersistenceError
from newsdesk.ingestion import NormalizedItem
from newsdesk.models import Article, PostStatus


def _normalized(title="City Council Approves Downtown Project", link="https://krqe.test/council"):
    return NormalizedItem(
        title=title,
        content="<p>Body</p>",
        excerpt="Council approved the project.",
        link=link,
        published_at=pendulum.datetime(2025, 10, 14, 15),
        feed_name="KRQE News",
    )


def test_external_id_is_stable_and_source_scoped():
    a = generate_external_id("https://krqe.test/council", "KRQE News")
    assert a == generate_external_id("https://krqe.test/council", "KRQE News")
    assert a.startswith("krqe-news-")
    assert a != generate_external_id("https://krqe.test/council", "KOAT News")
    assert a != generate_external_id("https://krqe.test/other", "KRQE News")


def test_save_writes_draft_with_source_fields(store):
    saved = asyncio.run(ArticleWriter(store).save(_normalized(), author_id=1, category_id=2))

    assert saved.status is PostStatus.DRAFT
    assert saved.featured is False
    assert saved.slug == "city-council-approves-downtown-project"
    assert saved.external_source == "KRQE News"
    assert saved.external_url == "https://krqe.test/council"
    assert saved.published_at == pendulum.datetime(2025, 10, 14, 15)
    assert saved.category_id == 2


def test_slug_collision_gets_suffix(store):
    writer = ArticleWriter(store)
    first = asyncio.run(writer.save(_normalized(link="https://krqe.test/1"), author_id=1))
    second = asyncio.run(writer.save(_normalized(link="https://krqe.test/2"), author_id=1))

    assert first.slug == "city-council-approves-downtown-project"
    assert second.slug.startswith("city-council-approves-downtown-project-")
    assert second.slug != first.slug


def test_untitled_slug_falls_back(store):
    saved = asyncio.run(ArticleWriter(store).save(_normalized(title="!!!"), author_id=1))
    assert saved.slug == "rss-item"


def test_reimport_supersedes_but_keeps_published_status(store):
    writer = ArticleWriter(store)
    first = asyncio.run(writer.save(_normalized(), author_id=1))
    store.posts[first.id] = first.model_copy(update={"status": PostStatus.PUBLISHED})

    again = asyncio.run(writer.save(_normalized(title="City Council Approves Downtown Project (update)"), author_id=1))

    assert again.id == first.id
    assert again.slug == first.slug
    assert again.status is PostStatus.PUBLISHED
    assert again.title.endswith("(update)")
    assert len(store.posts) == 1


def test_memory_store_rejects_duplicate_slug(store):
    article = Article(title="One", slug="taken", content="<p>x</p>", author_id=1, external_id="a")
    asyncio.run(store.upsert_article(article))

    with pytest.raises(PersistenceError):
        asyncio.run(store.upsert_article(article.model_copy(update={"external_id": "b"})))


class SlowSlugStore(MemoryStore):
    """Memory store whose slug lookup yields to the event loop like a real database."""

    async def slug_exists(self, slug: str) -> bool:
        taken = await super().slug_exists(slug)
        await asyncio.sleep(0.01)
        return taken


def test_concurrent_saves_get_distinct_slugs():
    store = SlowSlugStore()
    writer = ArticleWriter(store)

    async def scenario():
        return await asyncio.gather(
            writer.save(_normalized(link="https://krqe.test/budget"), author_id=1),
            writer.save(_normalized(link="https://koat.test/budget"), author_id=1),
        )

    first, second = asyncio.run(scenario())

    assert first.slug != second.slug
    assert len(store.posts) == 2

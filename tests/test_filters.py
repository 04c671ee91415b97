from newsdesk.ingestion import FilterDecision, KeywordFilter, RawFeedItem, is_valid, passes_filter
from newsdesk.ingestion.filters import has_bounded_match


def _item(title, description="", content="", link="https://news.test/a", categories=None):
    return RawFeedItem(
        title=title,
        link=link,
        description=description,
        content=content,
        categories=categories or [],
    )


def test_is_valid_requires_title_and_link():
    assert is_valid(_item("Title"))
    assert not is_valid(_item("   "))
    assert not is_valid(RawFeedItem(title="Title", link=None))
    assert not is_valid(RawFeedItem(title=None, link="https://news.test/a"))


def test_bounded_match_edges():
    assert has_bounded_match("obituaries for the week", "obituaries")
    assert has_bounded_match("local obituaries", "obituaries")
    assert has_bounded_match("see obituaries: monday", "obituaries")
    assert has_bounded_match("from the sponsored.", "sponsored")
    assert not has_bounded_match("unsponsoredcontent here", "sponsored")


def test_priority_overrides_exclude(make_feed):
    feed = make_feed(
        keywords=["albuquerque"],
        exclude_keywords=["obituaries"],
        priority_keywords=["breaking"],
    )
    item = _item("BREAKING: obituaries section moved online")

    assert KeywordFilter().evaluate(item, feed) is FilterDecision.PRIORITY
    assert passes_filter(item, feed)


def test_exclude_rejects_without_priority(make_feed):
    feed = make_feed(keywords=["albuquerque"], exclude_keywords=["obituaries"])
    item = _item("Albuquerque obituaries for October")

    assert KeywordFilter().evaluate(item, feed) is FilterDecision.EXCLUDED
    assert not passes_filter(item, feed)


def test_keyword_matches_title_link_and_categories(make_feed):
    feed = make_feed(keywords=["rio rancho"])
    f = KeywordFilter(local_markers=[])

    assert f.evaluate(_item("Rio Rancho opens new park"), feed) is FilterDecision.KEYWORD_MATCH
    assert f.evaluate(_item("New park", link="https://news.test/rio rancho/park"), feed).accepted
    assert f.evaluate(_item("New park", categories=["Rio Rancho"]), feed).accepted
    assert f.evaluate(_item("New park in Denver"), feed) is FilterDecision.NOT_RELEVANT


def test_local_fallback_when_keywords_miss(make_feed):
    feed = make_feed(keywords=["santa fe"])
    item = _item("State budget hearing", description="Lawmakers in New Mexico met Monday.")

    assert KeywordFilter().evaluate(item, feed) is FilterDecision.LOCAL_FALLBACK
    assert not KeywordFilter(local_markers=[]).passes(item, feed)


def test_no_rules_accepts_everything(make_feed):
    feed = make_feed()
    assert KeywordFilter().evaluate(_item("Anything at all"), feed) is FilterDecision.NO_RULES

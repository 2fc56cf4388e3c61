from datetime import date, timedelta

import pytest

from bidpilot.ingest.base import FeedFormatError
from bidpilot.ingest.parsers.rss import derive_source_id, iter_items, RssItem
from bidpilot.ingest.sources import etenders, publicprocurement, tendersnigeria

from conftest import NOW
from feeds import ETENDERS_FEED, PUBLICPROCUREMENT_FEED, TENDERSNIGERIA_FEED


def _wrap(items: str) -> bytes:
    return f"<rss version=\"2.0\"><channel><title>t</title>{items}</channel></rss>".encode("utf-8")


def test_federal_ministry_of_works_item():
    result = publicprocurement.parse(PUBLICPROCUREMENT_FEED, now=NOW)
    works = result.candidates[0]

    assert works.source == "publicprocurement.ng"
    assert works.organization == "Federal Ministry of Works"
    assert works.category == "Construction"
    assert works.categories == ["Construction"]
    assert works.deadline == date(2026, 3, 10)
    assert works.source_id == "123"
    assert works.source_url == "https://example.com/tenders/123"
    assert works.location == "Nigeria"
    assert works.budget == 0


def test_publicprocurement_wordpress_item():
    result = publicprocurement.parse(PUBLICPROCUREMENT_FEED, now=NOW)
    assert len(result.candidates) == 2
    assert result.dropped == 0

    npa = result.candidates[1]
    assert npa.title == "Nigerian Ports Authority – Supply of Office Furniture"
    assert npa.organization == "Nigerian Ports Authority"
    assert npa.source_id == "post-48211"
    assert npa.source_url == "https://www.publicprocurement.ng/nigerian-ports-authority-office-furniture/"
    # N/A and the date tag are not categories
    assert npa.categories == ["Supplies", "ICT"]
    assert npa.deadline == date(2026, 3, 20)
    assert npa.published_at == date(2026, 2, 24)
    assert npa.description == "The Nigerian Ports Authority invites qualified firms to tender."


def test_missing_description_uses_template():
    works = publicprocurement.parse(PUBLICPROCUREMENT_FEED, now=NOW).candidates[0]
    assert works.description == (
        "Tender opportunity from Federal Ministry of Works (Construction). View full details at source."
    )
    assert works.published_at == NOW.date()


def test_deadline_falls_back_to_thirty_days():
    raw = _wrap(
        "<item><title>Kano State Government - Borehole Drilling</title>"
        "<link>https://example.com/tenders/77</link>"
        "<category>Construction</category></item>"
    )
    candidate = publicprocurement.parse(raw, now=NOW).candidates[0]
    assert candidate.deadline == NOW.date() + timedelta(days=30)


def test_impossible_date_tag_is_ignored():
    raw = _wrap(
        "<item><title>Kano State Government - Borehole Drilling</title>"
        "<link>https://example.com/tenders/77</link>"
        "<category>31/02/2026</category><category>05/04/2026</category></item>"
    )
    candidate = publicprocurement.parse(raw, now=NOW).candidates[0]
    assert candidate.deadline == date(2026, 4, 5)


def test_categories_are_deduplicated_and_capped():
    raw = _wrap(
        "<item><title>Agency - Works</title><link>https://example.com/t/9</link>"
        "<category>Construction</category>"
        "<category>Construction &amp; Engineering</category>"
        "<category>Consultancy</category>"
        "<category>Dredging Works</category>"
        "<category>Healthcare</category></item>"
    )
    candidate = publicprocurement.parse(raw, now=NOW).candidates[0]
    assert candidate.categories == ["Construction", "Consultancy", "Dredging Works"]


def test_items_without_title_or_link_are_dropped():
    result = etenders.parse(ETENDERS_FEED, now=NOW)
    assert len(result.candidates) == 1
    assert result.dropped == 1
    assert result.total == 2


def test_feed_without_items_is_empty_not_an_error():
    result = publicprocurement.parse(_wrap(""), now=NOW)
    assert result.candidates == []
    assert result.dropped == 0


def test_non_feed_document_raises():
    with pytest.raises(FeedFormatError):
        publicprocurement.parse(b"<html><body>502 Bad Gateway</body></html>", now=NOW)
    with pytest.raises(FeedFormatError):
        iter_items("")


def test_tendersnigeria_free_text_heuristics():
    candidate = tendersnigeria.parse(TENDERSNIGERIA_FEED, now=NOW).candidates[0]
    assert candidate.organization == "Lagos State Water Corporation"
    assert candidate.category == "Supplies"
    assert candidate.deadline == date(2026, 4, 15)
    assert candidate.source_id == "lagos-water-chemicals.html"
    assert candidate.published_at == date(2026, 2, 23)


def test_tendersnigeria_unmatched_title_uses_placeholder_org():
    raw = _wrap("<item><title>RFQ</title><link>https://example.com/a/b</link></item>")
    candidate = tendersnigeria.parse(raw, now=NOW).candidates[0]
    assert candidate.organization == "Nigerian Organization"
    assert candidate.category == "General"


def test_etenders_labels_and_text_deadline():
    candidate = etenders.parse(ETENDERS_FEED, now=NOW).candidates[0]
    assert candidate.organization == "NNPC Limited"
    assert candidate.categories == ["Oil & Gas"]
    assert candidate.deadline == date(2026, 4, 20)
    assert candidate.source_id == "123"


def test_source_id_falls_back_to_title_hash():
    item = RssItem(title="Some Tender", link="https://example.com/")
    sid = derive_source_id(item)
    assert sid.startswith("hash-")
    assert len(sid) == len("hash-") + 12
    assert derive_source_id(RssItem(title="Some Tender", link="https://example.com/")) == sid


def test_cp1252_body_is_decoded():
    raw = _wrap(
        "<item><title>Ministry of Finance – Audit Services</title>"
        "<link>https://example.com/t/5</link></item>"
    ).decode("utf-8").encode("cp1252")
    candidate = publicprocurement.parse(raw, now=NOW).candidates[0]
    assert candidate.organization == "Ministry of Finance"

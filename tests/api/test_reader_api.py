from __future__ import annotations


def test_healthz(api):
    response = api.client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "KnotShorts"}


def test_search_requires_minimum_query(api, article_payload):
    api.client.post("/api/articles", json=article_payload())

    response = api.client.get("/api/search", params={"q": " g "})
    assert response.status_code == 200
    assert response.json() == {"query": "g", "count": 0, "results": [], "message": "Query too short"}


def test_search_matches_text_and_tags(api, article_payload):
    gdp = api.client.post("/api/articles", json=article_payload(tags=["economy"])).json()
    api.client.post(
        "/api/articles",
        json=article_payload(title="Cricket final", summary="A late win.", body="Match report.", category="Sports"),
    )
    draft = api.client.post(
        "/api/articles",
        json=article_payload(title="Economy outlook", status="draft"),
    ).json()

    by_title = api.client.get("/api/search", params={"q": "gdp"}).json()
    assert [a["id"] for a in by_title["results"]] == [gdp["id"]]
    assert by_title["count"] == 1

    by_tag = api.client.get("/api/search", params={"q": "ECONOMY"}).json()
    assert [a["id"] for a in by_tag["results"]] == [gdp["id"]]

    with_drafts = api.client.get("/api/search", params={"q": "economy", "include_draft": "true"}).json()
    assert {a["id"] for a in with_drafts["results"]} == {gdp["id"], draft["id"]}


def test_categories_and_category_articles(api, article_payload):
    categories = api.client.get("/api/categories").json()
    assert categories[0] == {"slug": "world", "label": "World"}
    assert {"slug": "india", "label": "India"} in categories

    india = api.client.post("/api/articles", json=article_payload()).json()
    api.client.post("/api/articles", json=article_payload(title="Draft India", status="draft"))
    api.client.post("/api/articles", json=article_payload(title="Markets", category="Business"))

    listed = api.client.get("/api/categories/india/articles").json()
    assert [a["id"] for a in listed] == [india["id"]]

    missing = api.client.get("/api/categories/weather/articles")
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Category not found"


def test_homepage_sections_in_order(api, article_payload):
    api.client.post("/api/articles", json=article_payload(title="Lead", featured=True, ticker=True))
    api.client.post(
        "/api/articles",
        json=article_payload(
            title="Pinned",
            category="World",
            placements=[{"container": 2, "enabled": True, "slot": "after_india_section"}],
        ),
    )
    api.client.post("/api/articles", json=article_payload(title="Hidden draft", status="draft"))

    plan = api.client.get("/api/homepage").json()
    kinds = [s["kind"] for s in plan["sections"]]

    assert plan["published_count"] == 2
    assert kinds == [
        "ticker",
        "insta_strip",
        "top_stories",
        "category_block",
        "category_block",
        "hero_container",
    ]
    assert [s["category"] for s in plan["sections"] if s["kind"] == "category_block"] == ["World", "India"]
    assert plan["sections"][-1]["container"] == 2

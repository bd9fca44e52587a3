from database import ACTIVITIES, PORTFOLIO


def _item(**overrides):
    body = {"title": "Nyarutarama valuation", "category": "valuation", "date": "2024-02-29"}
    body.update(overrides)
    return body


def test_create_portfolio_item(client, admin_headers):
    r = client.post("/api/portfolio", json=_item(client="BK"), headers=admin_headers)
    assert r.status_code == 201
    body = r.json()
    assert body["date"] == "2024-02-29"
    assert body["status"] == "completed"
    assert body["client"] == "BK"


def test_impossible_date_is_rejected(client, db, admin_headers):
    r = client.post("/api/portfolio", json=_item(date="2024-02-30"), headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["fields"] == ["date"]
    assert db[PORTFOLIO].count_documents({}) == 0


def test_invalid_category_is_rejected(client, db, admin_headers):
    r = client.post("/api/portfolio", json=_item(category="catering"), headers=admin_headers)
    assert r.status_code == 400
    assert db[PORTFOLIO].count_documents({}) == 0


def test_public_portfolio_filters_and_orders_by_date(client, admin_headers):
    client.post("/api/portfolio", json=_item(title="Old", date="2021-05-01"), headers=admin_headers)
    client.post("/api/portfolio", json=_item(title="New", date="2024-06-01", status="ongoing"), headers=admin_headers)
    client.post("/api/portfolio", json=_item(title="Sold", category="brokerage", date="2023-01-01"), headers=admin_headers)

    assert [p["title"] for p in client.get("/api/public/portfolio").json()] == ["New", "Sold", "Old"]
    assert [p["title"] for p in client.get("/api/public/portfolio", params={"category": "brokerage"}).json()] == ["Sold"]
    assert [p["title"] for p in client.get("/api/public/portfolio", params={"status": "ongoing"}).json()] == ["New"]
    assert client.get("/api/public/portfolio").json()[0]["location"] == "N/A"


def test_update_and_delete_portfolio_item(client, db, admin_headers, media_store):
    item = client.post(
        "/api/portfolio",
        json=_item(images=["https://media.test/portfolio/1.jpg"]),
        headers=admin_headers,
    ).json()

    r = client.put(f"/api/portfolio/{item['_id']}", json={"status": "ongoing", "title": ""}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "ongoing"
    assert r.json()["title"] == "Nyarutarama valuation"

    r = client.delete(f"/api/portfolio/{item['_id']}", headers=admin_headers)
    assert r.status_code == 200
    assert db[ACTIVITIES].find_one({"action": "Portfolio Item Deleted"})["type"] == "portfolio"
    assert media_store.deleted == ["https://media.test/portfolio/1.jpg"]


def test_each_mutation_logs_exactly_one_activity(client, db, admin_headers):
    def count():
        return db[ACTIVITIES].count_documents({"type": "portfolio"})

    item = client.post("/api/portfolio", json=_item(), headers=admin_headers).json()
    assert count() == 1
    client.put(f"/api/portfolio/{item['_id']}", json={"client": "RSSB"}, headers=admin_headers)
    assert count() == 2
    client.delete(f"/api/portfolio/{item['_id']}", headers=admin_headers)
    assert count() == 3

def test_visit_counter_increments(client, admin_headers):
    assert client.post("/api/analytics/visit").json()["totalVisitors"] == 1
    assert client.post("/api/analytics/visit").json()["totalVisitors"] == 2

    overview = client.get("/api/analytics/overview", headers=admin_headers).json()["overview"]
    assert overview["visitors"] == {"total": 2, "today": 2}


def test_stats_counts(client, admin_headers, make_property):
    prop = make_property()
    make_property(title="Flat B")
    client.post("/api/newsletter", json={"email": "fan@example.com"})
    client.post(
        "/api/schedule-visits",
        json={
            "firstName": "Jean",
            "lastName": "H",
            "email": "jean@example.com",
            "phone": "0788",
            "propertyId": prop["_id"],
            "preferredDate": "2026-11-02",
            "preferredTime": "09:00",
        },
    )

    stats = client.get("/api/stats", headers=admin_headers).json()["stats"]
    assert stats == {
        "properties": 2,
        "team": 0,
        "portfolio": 0,
        "scheduleVisits": 1,
        "pendingVisits": 1,
        "contacts": 0,
        "newsletter": 1,
    }

    overview = client.get("/api/analytics/overview", headers=admin_headers).json()["overview"]
    assert overview["properties"] == {"total": 2, "active": 2}
    assert overview["scheduleVisits"]["pending"] == 1


def test_activity_feed_newest_first(client, admin_headers, make_property):
    make_property(title="First")
    make_property(title="Second")

    activities = client.get("/api/activity", params={"limit": 2}, headers=admin_headers).json()["activities"]
    assert [a["description"] for a in activities] == ["Added property: Second", "Added property: First"]


def test_dashboard_requires_admin(client):
    assert client.get("/api/stats").status_code == 401
    assert client.get("/api/activity").status_code == 401
    assert client.get("/api/analytics/overview").status_code == 401

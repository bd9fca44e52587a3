from database import ACTIVITIES, PROPERTIES


def test_create_property_from_multipart_form(client, db, admin_headers, media_store):
    r = client.post(
        "/api/properties",
        data={
            "title": "Villa A",
            "location": "Kigali",
            "price": "50000000",
            "type": "sale",
            "propertyType": "villa",
            "bedrooms": "4",
        },
        files=[("images", ("front.jpg", b"jpeg-bytes", "image/jpeg"))],
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert len(body["images"]) == 1
    assert body["images"] == media_store.uploaded
    assert body["price"] == 50000000
    assert body["bedrooms"] == 4
    assert body["status"] == "active"

    stored = db[PROPERTIES].find_one({})
    assert isinstance(stored["price"], float)
    assert stored["price"] == 50000000


def test_non_image_upload_is_rejected(client, db, admin_headers):
    r = client.post(
        "/api/properties",
        data={"title": "Villa A", "location": "Kigali", "price": "1", "type": "sale", "propertyType": "villa"},
        files=[("images", ("notes.txt", b"hello", "text/plain"))],
        headers=admin_headers,
    )
    assert r.status_code == 400
    assert r.json()["fields"] == ["images"]
    assert db[PROPERTIES].count_documents({}) == 0


def test_invalid_enum_is_rejected_and_not_persisted(client, db, admin_headers):
    r = client.post(
        "/api/properties",
        json={"title": "Castle", "location": "Musanze", "price": 1, "type": "lease", "propertyType": "castle"},
        headers=admin_headers,
    )
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["fields"] == ["propertyType", "type"]
    assert db[PROPERTIES].count_documents({}) == 0


def test_non_finite_numbers_are_rejected_and_not_persisted(client, db, admin_headers):
    for field, value in (("price", "inf"), ("price", "Infinity"), ("bathrooms", "nan"), ("area", "-inf")):
        data = {"title": "Villa A", "location": "Kigali", "price": "1", "type": "sale", "propertyType": "villa"}
        data[field] = value
        r = client.post("/api/properties", data=data, headers=admin_headers)
        assert r.status_code == 400, (field, value)
        assert r.json()["fields"] == [field]
    assert db[PROPERTIES].count_documents({}) == 0


def test_non_finite_price_update_is_rejected(client, db, make_property, admin_headers):
    prop = make_property()
    r = client.put(f"/api/properties/{prop['_id']}", data={"price": "inf"}, headers=admin_headers)
    assert r.status_code == 400
    assert db[PROPERTIES].find_one({})["price"] == 50000000
    assert client.get("/api/properties", headers=admin_headers).status_code == 200


def test_invalid_status_update_leaves_record_untouched(client, db, make_property, admin_headers):
    prop = make_property()
    r = client.put(f"/api/properties/{prop['_id']}", json={"status": "demolished"}, headers=admin_headers)
    assert r.status_code == 400
    assert db[PROPERTIES].find_one({})["status"] == "active"


def test_public_listing_follows_status(client, make_property, admin_headers):
    prop = make_property()
    assert [p["id"] for p in client.get("/api/public/properties").json()] == [prop["_id"]]

    r = client.patch(f"/api/properties/{prop['_id']}/status", json={"status": "sold"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "sold"
    assert client.get("/api/public/properties").json() == []
    assert client.get(f"/api/public/properties/{prop['_id']}").status_code == 404

    # still there for the admin
    assert client.get(f"/api/properties/{prop['_id']}", headers=admin_headers).status_code == 200

    client.patch(f"/api/properties/{prop['_id']}/status", json={"status": "active"}, headers=admin_headers)
    assert len(client.get("/api/public/properties").json()) == 1


def test_public_projection_fills_sentinels(client, make_property):
    prop = make_property()
    item = client.get(f"/api/public/properties/{prop['_id']}").json()
    assert item["description"] == "N/A"
    assert item["bathrooms"] == 0
    assert item["images"] == []
    assert "status" not in item


def test_public_filters(client, make_property):
    make_property(title="Villa A", location="Kigali", price=50000000, bedrooms=4)
    make_property(title="Flat B", location="Huye", price=300000, type="rent", propertyType="apartment", bedrooms=2)
    make_property(title="Office C", location="Kigali Heights", price=900000, type="rent", propertyType="office",
                  bedrooms=0, description="Open plan office")

    def titles(**params):
        return sorted(p["title"] for p in client.get("/api/public/properties", params=params).json())

    assert titles(type="rent") == ["Flat B", "Office C"]
    assert titles(location="kigali") == ["Office C", "Villa A"]
    assert titles(propertyType="apartment") == ["Flat B"]
    assert titles(bedrooms=2) == ["Flat B", "Villa A"]
    assert titles(minPrice=300000, maxPrice=900000) == ["Flat B", "Office C"]
    assert titles(q="open plan") == ["Office C"]
    assert titles(location="(") == []


def test_public_listing_pagination_newest_first(client, make_property):
    for i in range(3):
        make_property(title=f"P{i}")
    first = client.get("/api/public/properties", params={"limit": 2}).json()
    second = client.get("/api/public/properties", params={"limit": 2, "page": 2}).json()
    assert [p["title"] for p in first] == ["P2", "P1"]
    assert [p["title"] for p in second] == ["P0"]


def test_public_listing_rejects_bad_enum_filter(client):
    assert client.get("/api/public/properties", params={"type": "swap"}).status_code == 400


def test_update_merges_existing_and_new_images(client, db, admin_headers, media_store):
    prop = client.post(
        "/api/properties",
        json={
            "title": "Villa A",
            "location": "Kigali",
            "price": 1,
            "type": "sale",
            "propertyType": "villa",
            "images": ["https://media.test/old/1.jpg", "https://media.test/old/2.jpg"],
        },
        headers=admin_headers,
    ).json()

    r = client.put(
        f"/api/properties/{prop['_id']}",
        data={"existingImages": '["https://media.test/old/2.jpg"]', "price": "2"},
        files=[("images", ("new.png", b"png", "image/png"))],
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text
    assert r.json()["images"] == ["https://media.test/old/2.jpg", media_store.uploaded[0]]
    assert r.json()["price"] == 2
    assert media_store.deleted == ["https://media.test/old/1.jpg"]


def test_update_without_existing_images_appends(client, admin_headers, media_store):
    prop = client.post(
        "/api/properties",
        json={"title": "V", "location": "K", "price": 1, "type": "sale", "propertyType": "villa",
              "images": ["https://media.test/old/1.jpg"]},
        headers=admin_headers,
    ).json()
    r = client.put(
        f"/api/properties/{prop['_id']}",
        data={"title": "V2"},
        files=[("images", ("new.png", b"png", "image/png"))],
        headers=admin_headers,
    )
    assert r.json()["images"] == ["https://media.test/old/1.jpg", media_store.uploaded[0]]
    assert r.json()["title"] == "V2"
    assert media_store.deleted == []


def test_delete_logs_activity_and_purges_images(client, db, admin_headers, media_store):
    prop = client.post(
        "/api/properties",
        json={"title": "Villa A", "location": "Kigali", "price": 1, "type": "sale", "propertyType": "villa",
              "images": ["https://media.test/p/1.jpg"]},
        headers=admin_headers,
    ).json()

    r = client.delete(f"/api/properties/{prop['_id']}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "Property deleted successfully"}
    assert db[PROPERTIES].count_documents({}) == 0
    assert db[ACTIVITIES].find_one({"action": "Property Deleted"})["type"] == "property"
    assert media_store.deleted == ["https://media.test/p/1.jpg"]


def test_unknown_and_malformed_ids(client, admin_headers):
    r = client.get("/api/properties/000000000000000000000000", headers=admin_headers)
    assert r.status_code == 404
    assert r.json()["error"] == "Property not found"

    r = client.get("/api/properties/not-an-id", headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid property ID"


def test_rejected_upload_removes_earlier_uploads(client, db, admin_headers, media_store):
    r = client.post(
        "/api/properties",
        data={"title": "Villa A", "location": "Kigali", "price": "1", "type": "sale", "propertyType": "villa"},
        files=[
            ("images", ("front.jpg", b"jpeg", "image/jpeg")),
            ("images", ("notes.txt", b"hello", "text/plain")),
        ],
        headers=admin_headers,
    )
    assert r.status_code == 400
    assert len(media_store.uploaded) == 1
    assert media_store.deleted == media_store.uploaded
    assert db[PROPERTIES].count_documents({}) == 0


def test_each_mutation_logs_exactly_one_activity(client, db, admin_headers, make_property):
    def count():
        return db[ACTIVITIES].count_documents({"type": "property"})

    prop = make_property()
    assert count() == 1
    client.put(f"/api/properties/{prop['_id']}", json={"title": "Villa B"}, headers=admin_headers)
    assert count() == 2
    client.patch(f"/api/properties/{prop['_id']}/status", json={"status": "sold"}, headers=admin_headers)
    assert count() == 3
    client.delete(f"/api/properties/{prop['_id']}", headers=admin_headers)
    assert count() == 4
    actions = [a["action"] for a in db[ACTIVITIES].find({"type": "property"}).sort([("timestamp", 1), ("_id", 1)])]
    assert actions == ["Property Added", "Property Updated", "Property Status Changed", "Property Deleted"]

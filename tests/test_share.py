def test_share_link_exposes_owner_content(client, signup):
    alice, _ = signup(email="alice@example.com")
    bob, _ = signup(email="bob@example.com", username="bob")
    client.post("/api/content", json={"title": "one", "type": "video", "tags": [{"title": "t"}]}, headers=alice)
    client.post("/api/content", json={"title": "two", "type": "document"}, headers=alice)
    client.post("/api/content", json={"title": "not alice", "type": "Notes"}, headers=bob)

    response = client.post("/api/share/link", headers=alice)
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Shareable link generated successfully"
    link_hash = body["hash"]
    assert len(link_hash) == 12
    int(link_hash, 16)

    response = client.get(f"/api/share/link/{link_hash}")
    assert response.status_code == 200
    items = response.json()
    assert [c["title"] for c in items] == ["one", "two"]
    assert items[0]["tags"][0]["title"] == "t"


def test_unknown_hash_is_not_found(client):
    response = client.get("/api/share/link/ZZZZZZ")
    assert response.status_code == 404
    assert response.json() == {"message": "Link not found"}


def test_share_link_for_empty_collection(client, signup):
    headers, _ = signup()
    link_hash = client.post("/api/share/link", headers=headers).json()["hash"]
    response = client.get(f"/api/share/link/{link_hash}")
    assert response.status_code == 200
    assert response.json() == []


def test_each_request_issues_a_new_link(client, signup):
    headers, _ = signup()
    first = client.post("/api/share/link", headers=headers).json()["hash"]
    second = client.post("/api/share/link", headers=headers).json()["hash"]
    assert first != second
    assert client.get(f"/api/share/link/{first}").status_code == 200


def test_creating_a_link_requires_auth(client):
    assert client.post("/api/share/link").status_code == 401

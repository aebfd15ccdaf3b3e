def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "message" in response.json()


def test_get_user_profile(client, signup):
    headers, user = signup(email="alice@example.com", username="alice")
    response = client.get(f"/api/user/{user['id']}", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"email": "alice@example.com", "username": "alice", "isVerified": True}


def test_get_unknown_user(client, signup):
    headers, _ = signup()
    response = client.get("/api/user/9999", headers=headers)
    assert response.status_code == 404
    assert response.json() == {"message": "User not found"}


def test_get_user_requires_auth(client):
    assert client.get("/api/user/1").status_code == 401

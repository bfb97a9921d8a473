"""
App-level endpoints and error rendering
"""


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["db"] == "ok"


def test_unknown_route_is_json_404(client):
    response = client.post("/api/shopify/nothing-here")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}

from fastapi.testclient import TestClient

from apps.shared.database import create_db_engine, create_session_factory
from apps.blog.main import create_app
from apps.blog.store import PostStore

from conftest import T0

NEW_POST = {"title": "A", "author": "X", "content": "c"}


def create(client, **overrides):
    body = dict(NEW_POST, **overrides)
    response = client.post("/blog/posts", json=body)
    assert response.status_code == 201, response.text
    return response


def test_health(client):
    response = client.get("/blog/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "blog", "database": "connected"}


def test_create_post(client):
    response = create(client)
    body = response.json()

    assert body["id"] == 1
    assert body["title"] == "A"
    assert body["createdAt"] == body["updatedAt"] == T0.isoformat()
    assert body["version"] == 1
    assert response.headers["location"].endswith("/blog/posts/1")
    assert response.headers["etag"] == '"1"'


def test_create_requires_fields(client):
    response = client.post("/blog/posts", json={"title": "  ", "author": "X"})

    assert response.status_code == 400
    assert response.json()["category"] == "validation"
    assert response.json()["fields"] == ["title", "content"]


def test_create_without_body(client):
    response = client.post("/blog/posts")
    assert response.status_code == 400


def test_create_with_wrong_types_is_bad_request(client):
    response = client.post("/blog/posts", json={"title": 123, "author": "X", "content": "c"})
    assert response.status_code == 400
    assert response.json()["category"] == "validation"


def test_get_post(client):
    create(client)
    response = client.get("/blog/posts/1")

    assert response.status_code == 200
    assert response.json()["author"] == "X"
    assert response.headers["etag"] == '"1"'


def test_get_missing_post(client):
    response = client.get("/blog/posts/999")
    assert response.status_code == 404
    assert response.json()["category"] == "not_found"


def test_get_with_non_numeric_id(client):
    assert client.get("/blog/posts/abc").status_code == 400


def test_get_with_id_beyond_integer_range(client):
    create(client)
    response = client.get("/blog/posts/100000000000000000000")

    assert response.status_code == 404
    assert response.json()["category"] == "not_found"
    assert client.delete("/blog/posts/100000000000000000000").status_code == 404



def test_list_posts_with_pagination_headers(client):
    for i in range(12):
        create(client, title=f"Post {i}")

    response = client.get("/blog/posts", params={"page": 2, "pageSize": 5})

    assert response.status_code == 200
    assert [p["title"] for p in response.json()] == [f"Post {i}" for i in range(6, 1, -1)]
    assert response.headers["x-pagination-totalcount"] == "12"
    assert response.headers["x-pagination-pagesize"] == "5"
    assert response.headers["x-pagination-currentpage"] == "2"
    assert response.headers["x-pagination-totalpages"] == "3"


def test_list_clamps_bad_parameters(client):
    create(client)
    response = client.get("/blog/posts", params={"page": "abc", "pageSize": 1000})

    assert response.status_code == 200
    assert response.headers["x-pagination-currentpage"] == "1"
    assert response.headers["x-pagination-pagesize"] == "100"


def test_list_with_huge_page_is_empty(client):
    create(client)
    response = client.get("/blog/posts", params={"page": 10**17, "pageSize": 100})

    assert response.status_code == 200
    assert response.json() == []
    assert response.headers["x-pagination-totalcount"] == "1"



def test_list_filters_by_author(client):
    create(client, author="John Doe")
    create(client, author="Jane Smith")

    response = client.get("/blog/posts", params={"page": 1, "pageSize": 10, "author": "john"})

    assert [p["author"] for p in response.json()] == ["John Doe"]
    assert response.headers["x-pagination-totalcount"] == "1"


def test_update_post(client):
    created = create(client).json()
    response = client.put(
        "/blog/posts/1",
        json={"id": 1, "title": "B", "author": "X", "content": "c2"},
        headers={"If-Match": '"1"'},
    )

    assert response.status_code == 204
    assert response.content == b""
    assert response.headers["etag"] == '"2"'

    fetched = client.get("/blog/posts/1").json()
    assert fetched["title"] == "B"
    assert fetched["createdAt"] == created["createdAt"]
    assert fetched["updatedAt"] > created["updatedAt"]


def test_update_id_mismatch(client):
    create(client)
    response = client.put("/blog/posts/1", json={"id": 2, "title": "B", "author": "X", "content": "c"})

    assert response.status_code == 400
    assert response.json()["fields"] == ["id"]


def test_update_missing_post(client):
    response = client.put("/blog/posts/7", json={"id": 7, "title": "B", "author": "X", "content": "c"})
    assert response.status_code == 404


def test_update_with_stale_if_match(client):
    create(client)
    body = {"id": 1, "title": "B", "author": "X", "content": "c"}
    assert client.put("/blog/posts/1", json=body, headers={"If-Match": '"1"'}).status_code == 204

    response = client.put("/blog/posts/1", json=body, headers={"If-Match": '"1"'})

    assert response.status_code == 409
    assert response.json()["category"] == "conflict"
    assert response.headers["etag"] == '"2"'


def test_update_with_stale_body_version(client):
    create(client)
    body = {"id": 1, "title": "B", "author": "X", "content": "c", "version": 1}
    assert client.put("/blog/posts/1", json=body).status_code == 204
    assert client.put("/blog/posts/1", json=body).status_code == 409


def test_update_with_wildcard_if_match_skips_version_check(client):
    create(client)
    body = {"id": 1, "title": "B", "author": "X", "content": "c", "version": 1}
    assert client.put("/blog/posts/1", json=body).status_code == 204

    response = client.put("/blog/posts/1", json=body, headers={"If-Match": "*"})

    assert response.status_code == 204
    assert response.headers["etag"] == '"3"'


def test_update_with_malformed_if_match(client):
    create(client)
    body = {"id": 1, "title": "B", "author": "X", "content": "c"}

    response = client.put("/blog/posts/1", json=body, headers={"If-Match": '"abc"'})

    assert response.status_code == 400
    assert response.json()["category"] == "validation"
    assert response.json()["fields"] == ["If-Match"]
    assert client.get("/blog/posts/1").json()["title"] == "A"



def test_delete_post(client):
    create(client)

    assert client.delete("/blog/posts/1").status_code == 204
    assert client.get("/blog/posts/1").status_code == 404
    assert client.delete("/blog/posts/1").status_code == 404


def test_security_headers(client):
    response = client.get("/blog/posts")

    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"
    assert "default-src 'self'" in response.headers["content-security-policy"]
    assert response.headers["cache-control"] == "no-cache, no-store, must-revalidate"


def test_cors_exposes_pagination_headers(client):
    response = client.get("/blog/posts", headers={"Origin": "http://localhost:4200"})

    assert response.headers["access-control-allow-origin"] == "*"
    assert "X-Pagination-TotalCount" in response.headers["access-control-expose-headers"]


def test_unknown_api_route(client):
    response = client.get("/blog/nothing-here")
    assert response.status_code == 404
    assert response.json()["category"] == "client_error"


def test_storage_failure_is_sanitized_500(tmp_path):
    # No tables; the lifespan that would create them is not started
    engine = create_db_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    app = create_app(
        PostStore(create_session_factory(engine)),
        engine=engine,
        rate_limit=None,
        static_dir=None,
        seed=False,
    )
    client = TestClient(app)

    response = client.get("/blog/posts")

    assert response.status_code == 500
    body = response.json()
    assert body["category"] == "database"
    assert body["error_id"]
    assert "no such table" not in response.text
    assert "blog_posts" not in response.text
    engine.dispose()



def test_rate_limit(make_app):
    with TestClient(make_app(rate_limit="2/minute")) as limited:
        assert limited.get("/blog/health").status_code == 200
        assert limited.get("/blog/health").status_code == 200

        response = limited.get("/blog/health")
        assert response.status_code == 429
        assert response.json()["category"] == "rate_limit"


def test_rate_limit_keys_on_forwarded_client_from_trusted_proxy(make_app):
    app = make_app(rate_limit="1/minute", forwarded_allow_ips="*")
    with TestClient(app) as limited:
        first = {"X-Forwarded-For": "203.0.113.7"}
        second = {"X-Forwarded-For": "203.0.113.8"}

        assert limited.get("/blog/health", headers=first).status_code == 200
        assert limited.get("/blog/health", headers=first).status_code == 429
        assert limited.get("/blog/health", headers=second).status_code == 200


def test_https_redirect_honors_forwarded_proto(make_app):
    app = make_app(https_redirect=True, forwarded_allow_ips="*")
    with TestClient(app) as secure:
        response = secure.get("/blog/health", follow_redirects=False)
        assert response.status_code == 307
        assert response.headers["location"] == "https://testserver/blog/health"

        forwarded = secure.get("/blog/health", headers={"X-Forwarded-Proto": "https"})
        assert forwarded.status_code == 200


def test_forwarded_headers_ignored_from_untrusted_peer(make_app):
    app = make_app(https_redirect=True, forwarded_allow_ips="10.0.0.1")
    with TestClient(app) as secure:
        response = secure.get(
            "/blog/health",
            headers={"X-Forwarded-Proto": "https"},
            follow_redirects=False,
        )
        assert response.status_code == 307



def test_seeded_app_lists_sample_posts(make_app):
    with TestClient(make_app(seed=True)) as seeded:
        response = seeded.get("/blog/posts", params={"author": "john"})

    assert [p["author"] for p in response.json()] == ["John Doe"]


def test_static_frontend_with_spa_fallback(make_app, tmp_path):
    static = tmp_path / "www"
    static.mkdir()
    (static / "index.html").write_text("<html>blog</html>")
    (static / "app.js").write_text("console.log('blog');")

    with TestClient(make_app(static_dir=str(static))) as frontend:
        assert frontend.get("/app.js").text == "console.log('blog');"
        assert frontend.get("/").text == "<html>blog</html>"
        assert frontend.get("/posts/42/edit").text == "<html>blog</html>"
        assert frontend.get("/blog/unknown").status_code == 404
        assert frontend.get("/blog/posts").status_code == 200


def test_frontend_paths_sharing_the_api_prefix(make_app, tmp_path):
    static = tmp_path / "www"
    static.mkdir()
    (static / "index.html").write_text("<html>blog</html>")
    (static / "blogroll.js").write_text("console.log('roll');")

    with TestClient(make_app(static_dir=str(static))) as frontend:
        asset = frontend.get("/blogroll.js")
        assert asset.text == "console.log('roll');"
        assert "no-store" not in asset.headers.get("cache-control", "")

        bare_prefix = frontend.get("/blog")
        assert bare_prefix.status_code == 404
        assert bare_prefix.json()["category"] == "client_error"
        assert bare_prefix.headers["cache-control"] == "no-cache, no-store, must-revalidate"

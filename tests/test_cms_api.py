"""Homepage content: hero section, banners and site settings."""

from models.log import Log


def _banner(client, headers, **fields):
    body = {"title": "Summer Sale"}
    body.update(fields)
    response = client.post("/admin/cms/banners", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestHeroSection:
    def test_none_until_configured(self, client):
        response = client.get("/cms/hero")
        assert response.status_code == 200
        assert response.json() is None

    def test_update_creates_then_edits_single_row(self, client, admin_headers):
        first = client.put(
            "/admin/cms/hero",
            json={"title": "New Season", "subtitle": "Linen is back", "cta_text": "Shop", "cta_link": "/products"},
            headers=admin_headers,
        ).json()
        second = client.put("/admin/cms/hero", json={"title": "Winter"}, headers=admin_headers).json()

        assert second["id"] == first["id"]
        assert second["active"] is True
        assert second["title"] == "Winter"
        assert second["subtitle"] == "Linen is back"

        hero = client.get("/cms/hero").json()
        assert hero["title"] == "Winter"
        assert hero["cta_link"] == "/products"

    def test_title_required(self, client, admin_headers):
        response = client.put("/admin/cms/hero", json={"title": ""}, headers=admin_headers)
        assert response.status_code == 422
        assert response.json()["error"].startswith("title:")

    def test_requires_admin(self, client, make_user, auth_headers):
        assert client.put("/admin/cms/hero", json={"title": "X"}).status_code == 401
        response = client.put("/admin/cms/hero", json={"title": "X"}, headers=auth_headers(make_user()))
        assert response.status_code == 403


class TestBanners:
    def test_positions_follow_creation_order(self, client, admin_headers):
        first = _banner(client, admin_headers, title="One")
        second = _banner(client, admin_headers, title="Two")
        assert (first["position"], second["position"]) == (0, 1)
        assert first["active"] is True

    def test_public_list_shows_active_only(self, client, admin_headers):
        _banner(client, admin_headers, title="Shown")
        _banner(client, admin_headers, title="Hidden", active=False)

        assert [b["title"] for b in client.get("/cms/banners").json()] == ["Shown"]
        admin_list = client.get("/admin/cms/banners", headers=admin_headers).json()
        assert [b["title"] for b in admin_list] == ["Shown", "Hidden"]

    def test_update_keeps_omitted_fields(self, client, admin_headers):
        banner = _banner(client, admin_headers, description="20% off", link="/sale")
        response = client.put(
            f"/admin/cms/banners/{banner['id']}", json={"title": "Final Sale", "active": False}, headers=admin_headers
        )
        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Final Sale"
        assert body["active"] is False
        assert body["description"] == "20% off"
        assert body["link"] == "/sale"

    def test_active_may_not_be_null(self, client, admin_headers):
        response = client.post("/admin/cms/banners", json={"title": "X", "active": None}, headers=admin_headers)
        assert response.status_code == 422
        assert response.json() == {"error": "active: may not be null"}

    def test_delete(self, client, admin_headers):
        banner = _banner(client, admin_headers)
        response = client.delete(f"/admin/cms/banners/{banner['id']}", headers=admin_headers)
        assert response.json() == {"success": True}
        assert client.get("/cms/banners").json() == []

    def test_unknown_banner(self, client, admin_headers):
        response = client.put("/admin/cms/banners/999", json={"title": "X"}, headers=admin_headers)
        assert response.status_code == 404
        assert response.json() == {"error": "Banner not found"}
        assert client.delete("/admin/cms/banners/999", headers=admin_headers).status_code == 404

    def test_admin_list_requires_admin(self, client):
        assert client.get("/admin/cms/banners").status_code == 401


class TestSiteSettings:
    def test_defaults_created_on_first_read(self, client):
        settings = client.get("/cms/settings").json()
        assert settings["site_name"] == "Fashion Store"
        assert settings["email"] is None

    def test_update(self, client, admin_headers):
        response = client.put(
            "/admin/cms/settings",
            json={"site_name": "Linen & Co", "email": "hello@linen.example.com", "instagram": "@linen"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        settings = client.get("/cms/settings").json()
        assert settings["site_name"] == "Linen & Co"
        assert settings["instagram"] == "@linen"

    def test_invalid_email(self, client, admin_headers):
        response = client.put(
            "/admin/cms/settings", json={"site_name": "Shop", "email": "nope"}, headers=admin_headers
        )
        assert response.status_code == 422
        assert response.json()["error"].startswith("email:")

    def test_changes_are_audited(self, client, db, admin_headers):
        client.put("/admin/cms/settings", json={"site_name": "Shop"}, headers=admin_headers)
        _banner(client, admin_headers)

        actions = {row.action for row in db.query(Log).filter(Log.resource == "cms")}
        assert actions == {"SETTINGS_UPDATE", "BANNER_CREATE"}

"""Tests for the caching settings surface.

Coverage:
- Admin key enforcement (401 missing, 403 wrong) on HTML and JSON endpoints
- HTML form rendering reflects stored options
- Form submission saves values, unchecked boxes, redirect, 422 on bad input
- CSRF token required for cookie-authenticated form posts
- JSON GET/PUT with validation
- Health endpoints
"""

from __future__ import annotations

import re

import pytest

CSRF_INPUT = re.compile(r'name="csrf_token" value="([^"]+)"')


@pytest.fixture
def browser_client(client, fake_settings):
    """Client authenticated the way a browser is: by the admin cookie only."""
    client.cookies.set(
        fake_settings.admin_cookie_name,
        fake_settings.admin_api_key.get_secret_value(),
    )
    return client


async def _form_token(client) -> str:
    response = await client.get("/admin/caching-settings")
    assert response.status_code == 200
    match = CSRF_INPUT.search(response.text)
    assert match is not None
    return match.group(1)


class TestAdminAuth:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("method", "path"),
        [
            ("GET", "/admin/caching-settings"),
            ("POST", "/admin/caching-settings"),
            ("GET", "/api/v1/settings/caching"),
            ("PUT", "/api/v1/settings/caching"),
        ],
    )
    async def test_missing_key_is_401(self, client, method, path):
        response = await client.request(method, path)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_wrong_key_is_403(self, client):
        response = await client.get("/api/v1/settings/caching", headers={"X-API-Key": "nope"})
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_cookie_is_accepted(self, client, fake_settings):
        key = fake_settings.admin_api_key.get_secret_value()
        response = await client.get(
            "/admin/caching-settings",
            headers={"Cookie": f"{fake_settings.admin_cookie_name}={key}"},
        )
        assert response.status_code == 200


class TestSettingsForm:
    @pytest.mark.asyncio
    async def test_renders_sections_and_fields(self, client, admin_headers):
        response = await client.get("/admin/caching-settings", headers=admin_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        html = response.text
        assert "<h1>Caching settings</h1>" in html
        assert "Cache-Control settings" in html
        assert "Other settings" in html
        for name in (
            "cache_control_homepage",
            "cache_control_single",
            "cache_control_archive",
            "cache_control_default",
            "enable_etag",
            "enable_last_modified",
            "enable_emojis",
        ):
            assert f'name="{name}"' in html
        assert ">Never</option>" in html
        assert ">24 hours</option>" in html

    @pytest.mark.asyncio
    async def test_reflects_stored_values(self, client, admin_headers, options_store):
        await options_store.set_many({"cache_control_single": 3600, "enable_etag": True})

        html = (await client.get("/admin/caching-settings", headers=admin_headers)).text

        single = html.split('name="cache_control_single"', 1)[1].split("</select>", 1)[0]
        assert '<option value="3600" selected="selected">1 hour</option>' in single
        assert 'name="enable_etag" id="enable_etag" value="1" checked="checked"' in html
        # emojis default to enabled
        assert 'name="enable_emojis" id="enable_emojis" value="1" checked="checked"' in html
        assert 'name="enable_last_modified" id="enable_last_modified" value="1">' in html

    @pytest.mark.asyncio
    async def test_submit_saves_and_redirects(self, client, admin_headers, options_store):
        response = await client.post(
            "/admin/caching-settings",
            headers=admin_headers,
            data={
                "cache_control_homepage": "600",
                "cache_control_single": "86400",
                "cache_control_archive": "0",
                "cache_control_default": "1800",
                "enable_last_modified": "1",
            },
        )

        assert response.status_code == 303
        assert response.headers["location"].endswith("/admin/caching-settings?updated=1")
        assert await options_store.get_many(
            ["cache_control_homepage", "cache_control_archive", "enable_last_modified", "enable_emojis"]
        ) == {
            "cache_control_homepage": 600,
            "cache_control_archive": 0,
            "enable_last_modified": True,
            "enable_emojis": False,
        }

    @pytest.mark.asyncio
    async def test_updated_notice(self, client, admin_headers):
        response = await client.get("/admin/caching-settings?updated=1", headers=admin_headers)
        assert "Settings saved." in response.text

    @pytest.mark.asyncio
    async def test_illegal_duration_is_rejected(self, client, admin_headers, options_store):
        response = await client.post(
            "/admin/caching-settings",
            headers=admin_headers,
            data={"cache_control_homepage": "123"},
        )

        assert response.status_code == 422
        assert "cache_control_homepage" in response.text
        assert await options_store.get("cache_control_homepage") is None


class TestSettingsFormCsrf:
    @pytest.mark.asyncio
    async def test_form_renders_token(self, browser_client):
        token = await _form_token(browser_client)
        assert len(token) > 20

    @pytest.mark.asyncio
    async def test_cross_site_post_without_token_is_rejected(self, browser_client, options_store):
        response = await browser_client.post(
            "/admin/caching-settings",
            headers={"Origin": "http://evil.example"},
            data={"cache_control_homepage": "0"},
        )

        assert response.status_code == 403
        assert await options_store.get_many(["cache_control_homepage", "enable_emojis"]) == {}

    @pytest.mark.asyncio
    async def test_post_with_rendered_token_is_saved(self, browser_client, options_store):
        token = await _form_token(browser_client)

        response = await browser_client.post(
            "/admin/caching-settings",
            data={"csrf_token": token, "cache_control_homepage": "600", "enable_emojis": "1"},
        )

        assert response.status_code == 303
        assert await options_store.get("cache_control_homepage") == 600
        assert await options_store.get("enable_emojis") is True

    @pytest.mark.asyncio
    async def test_token_in_header_is_accepted(self, browser_client, options_store):
        token = await _form_token(browser_client)

        response = await browser_client.post(
            "/admin/caching-settings",
            headers={"X-CSRF-Token": token},
            data={"cache_control_archive": "1800"},
        )

        assert response.status_code == 303
        assert await options_store.get("cache_control_archive") == 1800

    @pytest.mark.asyncio
    async def test_tampered_token_is_rejected(self, browser_client, options_store):
        token = await _form_token(browser_client)
        payload, timestamp, signature = token.rsplit(".", 2)
        tampered = f"{payload}.{timestamp}.{signature[::-1]}"

        response = await browser_client.post(
            "/admin/caching-settings",
            data={"csrf_token": tampered, "cache_control_homepage": "0"},
        )

        assert response.status_code == 403
        assert await options_store.get("cache_control_homepage") is None

    @pytest.mark.asyncio
    async def test_token_without_its_session_is_rejected(
        self, browser_client, fake_settings, options_store
    ):
        token = await _form_token(browser_client)
        browser_client.cookies.delete(fake_settings.admin_session_cookie)

        response = await browser_client.post(
            "/admin/caching-settings",
            data={"csrf_token": token, "cache_control_homepage": "0"},
        )

        assert response.status_code == 403
        assert await options_store.get("cache_control_homepage") is None

    @pytest.mark.asyncio
    async def test_api_key_header_needs_no_token(self, client, admin_headers, options_store):
        response = await client.post(
            "/admin/caching-settings",
            headers=admin_headers,
            data={"cache_control_homepage": "600"},
        )

        assert response.status_code == 303
        assert await options_store.get("cache_control_homepage") == 600


class TestSettingsApi:
    @pytest.mark.asyncio
    async def test_get_defaults(self, client, admin_headers):
        response = await client.get("/api/v1/settings/caching", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {
            "cache_control_homepage": 300,
            "cache_control_single": 300,
            "cache_control_archive": 300,
            "cache_control_default": 300,
            "enable_etag": False,
            "enable_last_modified": False,
            "enable_emojis": True,
        }

    @pytest.mark.asyncio
    async def test_put_partial_update(self, client, admin_headers, options_store):
        response = await client.put(
            "/api/v1/settings/caching",
            headers=admin_headers,
            json={"cache_control_homepage": 14400, "enable_emojis": False},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["cache_control_homepage"] == 14400
        assert body["enable_emojis"] is False
        assert body["cache_control_single"] == 300
        assert await options_store.get("cache_control_homepage") == 14400

    @pytest.mark.asyncio
    async def test_put_illegal_duration(self, client, admin_headers):
        response = await client.put(
            "/api/v1/settings/caching",
            headers=admin_headers,
            json={"cache_control_single": 7},
        )
        assert response.status_code == 422
        assert "cache_control_single" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_put_unknown_field(self, client, admin_headers):
        response = await client.put(
            "/api/v1/settings/caching",
            headers=admin_headers,
            json={"cache_control_feed": 300},
        )
        assert response.status_code == 422


class TestHealth:
    @pytest.mark.asyncio
    async def test_liveness(self, client):
        response = await client.get("/health/live")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    @pytest.mark.asyncio
    async def test_readiness_with_memory_store(self, client):
        response = await client.get("/health/ready")
        assert response.json()["status"] == "ready"
        assert response.json()["options_store"] == "memory"

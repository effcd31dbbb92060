"""Tests for the editable marketing site content."""

import pytest
from fastapi import HTTPException

from brandboost import site
from brandboost.models import BackgroundEffects, FeaturePoint, HomePageContent
from brandboost.store import SITE_CONTENT


def _home(**overrides):
    fields = dict(
        hero_title="Brands that stick",
        hero_subtitle="Strategy, identity and design.",
        feature_title="Why us",
        feature_subtitle="Fast and thorough",
        feature_point1_title="Focus",
        feature_point1_text="We do the research so you do not have to.",
    )
    fields.update(overrides)
    return HomePageContent(**fields)


class TestPageContent:
    def test_defaults_until_first_save(self, services):
        content = site.get_site_content(services.store)
        assert content.theme == "theme-default"
        assert set(content.images) == {"homeHero", "homeFeature", "aboutStory", "servicesProcess"}
        assert [c.title for c in content.footer_columns] == ["Quick Links", "Company", "Portals"]
        assert services.store.get(SITE_CONTENT, site.MAIN_DOC) is None

    def test_home_text_is_saved(self, services):
        site.update_home(services, _home())
        stored = site.get_site_content(services.store)
        assert stored.home.hero_title == "Brands that stick"
        assert stored.updated_at
        # Sections that were not edited keep their defaults
        assert "homeHero" in stored.images

    def test_identity_resolves_urls_and_removes_old_logo(self, services, storage):
        site.update_identity(services, logo_path="site-identity/logo-1.png")
        content = site.update_identity(services, logo_path="site-identity/logo-2.png")
        assert content.identity.logo_url.endswith("/site-identity/logo-2.png")
        assert content.identity.favicon_url is None
        assert storage.removed == ["site-identity/logo-1.png"]

    def test_identity_needs_a_file(self, services):
        with pytest.raises(HTTPException) as excinfo:
            site.update_identity(services)
        assert excinfo.value.status_code == 400

    def test_image_slot(self, services):
        slot = site.update_image(services, "homeHero", image_path="site-images/hero.png", image_hint="studio desk")
        assert slot.image_url.endswith("/site-images/hero.png")
        assert site.get_site_content(services.store).images["homeHero"].image_hint == "studio desk"

    def test_unknown_image_slot(self, services):
        with pytest.raises(HTTPException) as excinfo:
            site.update_image(services, "nope", image_url="https://example.com/x.png")
        assert excinfo.value.status_code == 404

    def test_feature_points_sorted_by_order(self, services):
        points = [
            FeaturePoint(title="Second", text="Comes after the first one.", order=2),
            FeaturePoint(title="First", text="Comes before the second one.", order=1),
        ]
        content = site.set_feature_points(services, points)
        assert [p.title for p in content.feature_points] == ["First", "Second"]

    def test_unknown_theme(self, services):
        with pytest.raises(HTTPException) as excinfo:
            site.set_theme(services, "theme-neon")
        assert excinfo.value.status_code == 400
        assert site.set_theme(services, "theme-verdant").theme == "theme-verdant"

    def test_background_effects(self, services):
        content = site.set_background_effects(services, BackgroundEffects(animate=False, count=2))
        assert content.background_effects.count == 2
        assert content.background_effects.animate is False


class TestCollections:
    def test_services_are_appended_in_order(self, services):
        first = site.add_service(services, "Branding", "Logos, palettes and guides.", "Palette")
        second = site.add_service(services, "Web Design", "Sites that convert visitors.", "PenTool")
        assert (first.order, second.order) == (1, 2)
        site.update_service(services, first.id, order=3)
        assert [s.title for s in site.list_services(services.store)] == ["Web Design", "Branding"]

    def test_invalid_service_edit(self, services):
        offering = site.add_service(services, "Branding", "Logos, palettes and guides.", "Palette")
        with pytest.raises(HTTPException) as excinfo:
            site.update_service(services, offering.id, title="UX")
        assert excinfo.value.status_code == 400

    def test_missing_service(self, services):
        with pytest.raises(HTTPException) as excinfo:
            site.delete_service(services, "missing")
        assert excinfo.value.status_code == 404

    def test_pricing_features_drop_blank_lines(self, services):
        tier = site.add_pricing_tier(
            services,
            name="Starter",
            price="$499",
            price_description="one-off",
            description="Everything a new brand needs.",
            features=["Logo", "  ", "Palette "],
        )
        assert tier.features == ["Logo", "Palette"]
        updated = site.update_pricing_tier(services, tier.id, is_popular=True)
        assert updated.is_popular is True
        assert updated.features == ["Logo", "Palette"]

    def test_pricing_needs_a_feature(self, services):
        with pytest.raises(HTTPException) as excinfo:
            site.add_pricing_tier(services, "Starter", "$499", "one-off", "Everything a new brand needs.", [" "])
        assert excinfo.value.status_code == 400

    def test_portfolio_image_removed_with_item(self, services, storage):
        item = site.add_portfolio_item(
            services,
            title="Acme Rebrand",
            category="Branding",
            description="A full identity refresh.",
            content="New logo, palette, typography and a brand guide.",
            image_hint="logo sheet",
            image_path="portfolio/acme.png",
        )
        assert item.image_url.endswith("/portfolio/acme.png")
        site.delete_portfolio_item(services, item.id)
        assert storage.removed == ["portfolio/acme.png"]
        assert site.list_portfolio(services.store) == []


class TestSiteApi:
    def test_public_site_payload(self, client):
        client.post(
            "/admin/site/services",
            json={"title": "Branding", "description": "Logos, palettes and guides.", "icon": "Palette"},
        )
        body = client.get("/site").json()
        assert body["content"]["theme"] == "theme-default"
        assert body["content"]["home"]["hero_title"]
        assert [s["title"] for s in body["services"]] == ["Branding"]
        assert body["pricing_tiers"] == []
        assert body["portfolio"] == []

    def test_edit_home_over_http(self, client):
        resp = client.put("/admin/site/home", json=_home(hero_title="Hello").model_dump())
        assert resp.status_code == 200
        assert client.get("/site").json()["content"]["home"]["hero_title"] == "Hello"

    def test_empty_home_field_rejected(self, client):
        resp = client.put("/admin/site/home", json=_home().model_dump() | {"hero_title": ""})
        assert resp.status_code == 422

    def test_stats_validation(self, client):
        assert client.put("/admin/site/stats", json=[{"label": "Hi", "value": "1"}]).status_code == 422
        resp = client.put("/admin/site/stats", json=[{"label": "Brands Boosted", "value": "99+"}])
        assert resp.json()["stats"][0]["label"] == "Brands Boosted"

    def test_background_count_bounded(self, client):
        resp = client.put("/admin/site/background-effects", json={"animate": True, "count": 7})
        assert resp.status_code == 422

    def test_portfolio_crud(self, client):
        resp = client.post(
            "/admin/site/portfolio",
            json={
                "title": "Bakery Launch",
                "category": "Packaging",
                "description": "Boxes and bags for a bakery.",
                "content": "A warm packaging system for a neighbourhood bakery.",
                "image_hint": "bakery box",
                "image_url": "https://images.example.com/bakery.png",
            },
        )
        assert resp.status_code == 201
        item_id = resp.json()["id"]
        patched = client.patch(f"/admin/site/portfolio/{item_id}", json={"category": "Print"})
        assert patched.json()["category"] == "Print"
        assert client.delete(f"/admin/site/portfolio/{item_id}").json() == {"status": "deleted"}
        assert client.delete(f"/admin/site/portfolio/{item_id}").status_code == 404

"""Content of the public marketing site.

Everything the admin can edit on the site that is not a project lives
here. The page-level pieces (identity, home page text, image slots,
feature points, footer, stats, theme and background effects) share one
``site_content/main`` document. Service offerings, pricing tiers and
portfolio items are collections of their own.

Until an admin saves something the site is served from the defaults
below; the document is written on the first save.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

from fastapi import HTTPException
from pydantic import ValidationError

from .models import (
    BackgroundEffects,
    Document,
    FeaturePoint,
    FooterColumn,
    FooterLink,
    HomePageContent,
    PortfolioItem,
    PricingTier,
    ServiceOffering,
    SiteContent,
    SiteImage,
    SiteStat,
    utcnow_iso,
)
from .services import Services
from .store import PORTFOLIO_ITEMS, PRICING_TIERS, SERVICES, SITE_CONTENT, DocumentStore

logger = logging.getLogger(__name__)

MAIN_DOC = "main"

THEMES = ("theme-default", "theme-moonstone", "theme-verdant", "theme-fiery")

DEFAULT_HOME = HomePageContent(
    hero_title="Platform to build amazing brands and designs",
    hero_subtitle="Work with designers experienced in their fields to build a brand that lasts.",
    feature_title="Intelligent Design on a New Scale",
    feature_subtitle="Research, generate and refine brand assets in one place.",
    feature_point1_title="Stay focused on your creative vision",
    feature_point1_text=(
        "Our AI handles the tedious parts of brand research and asset generation, "
        "letting you focus on high-impact creative work that drives results."
    ),
)

DEFAULT_IMAGE_SLOTS = (
    SiteImage(id="homeHero", name="Homepage Hero Image", description="The main image on the homepage.", image_hint="app dashboard screenshot"),
    SiteImage(id="homeFeature", name="Homepage Feature Image", description="The image in the feature section.", image_hint="app interface design"),
    SiteImage(id="aboutStory", name="About Us Story Image", description="The image next to the story text.", image_hint="professional portrait"),
    SiteImage(id="servicesProcess", name="Services Creative Process", description="The process image on the services page.", image_hint="design process flowchart"),
)

DEFAULT_FOOTER = (
    FooterColumn(id="quick-links", title="Quick Links", order=1, links=[
        FooterLink(text="About", href="/about"),
        FooterLink(text="Services", href="/services"),
        FooterLink(text="Work", href="/portfolio"),
    ]),
    FooterColumn(id="company", title="Company", order=2, links=[
        FooterLink(text="Team", href="/team"),
        FooterLink(text="Contact Us", href="/contact"),
    ]),
    FooterColumn(id="portals", title="Portals", order=3, links=[
        FooterLink(text="Client Portal", href="/client-login"),
        FooterLink(text="Designer Portal", href="/designer/login"),
        FooterLink(text="Admin Login", href="/login"),
    ]),
)

M = TypeVar("M", bound=Document)


def default_site_content() -> SiteContent:
    return SiteContent(
        id=MAIN_DOC,
        home=DEFAULT_HOME.model_copy(),
        images={slot.id: slot.model_copy() for slot in DEFAULT_IMAGE_SLOTS},
        footer_columns=[column.model_copy(deep=True) for column in DEFAULT_FOOTER],
    )


# ---------------------------------------------------------------------------
# Page content


def get_site_content(store: DocumentStore) -> SiteContent:
    doc = store.get(SITE_CONTENT, MAIN_DOC)
    if doc is None:
        return default_site_content()
    return SiteContent.from_doc(doc)


def _save_content(services: Services, content: SiteContent, section: str) -> SiteContent:
    content.updated_at = utcnow_iso()
    services.store.set(SITE_CONTENT, MAIN_DOC, content.to_doc())
    logger.info("Site content updated: %s", section)
    return content


def _replace_object(services: Services, old_path: Optional[str], new_path: str) -> str:
    """Resolve the public URL of ``new_path`` and drop the object it replaces."""
    url = services.storage.public_url(new_path)
    if old_path and old_path != new_path:
        services.storage.remove(old_path)
    return url


def update_identity(
    services: Services,
    logo_path: Optional[str] = None,
    favicon_path: Optional[str] = None,
) -> SiteContent:
    """Point the logo and/or favicon at newly uploaded objects."""
    if not logo_path and not favicon_path:
        raise HTTPException(status_code=400, detail="Provide a logo or a favicon")
    content = get_site_content(services.store)
    identity = content.identity
    if logo_path:
        identity.logo_url = _replace_object(services, identity.logo_path, logo_path)
        identity.logo_path = logo_path
    if favicon_path:
        identity.favicon_url = _replace_object(services, identity.favicon_path, favicon_path)
        identity.favicon_path = favicon_path
    return _save_content(services, content, "identity")


def update_home(services: Services, home: HomePageContent) -> SiteContent:
    content = get_site_content(services.store)
    content.home = home
    return _save_content(services, content, "home")


def update_image(
    services: Services,
    slot_id: str,
    image_path: Optional[str] = None,
    image_url: Optional[str] = None,
    image_hint: Optional[str] = None,
) -> SiteImage:
    content = get_site_content(services.store)
    slot = content.images.get(slot_id)
    if slot is None:
        raise HTTPException(status_code=404, detail="Image slot not found")
    if image_path:
        slot.image_url = _replace_object(services, slot.image_path, image_path)
        slot.image_path = image_path
    elif image_url:
        if slot.image_path:
            services.storage.remove(slot.image_path)
        slot.image_url = image_url
        slot.image_path = ""
    if image_hint is not None:
        slot.image_hint = image_hint
    _save_content(services, content, f"image {slot_id}")
    return slot


def set_feature_points(services: Services, points: List[FeaturePoint]) -> SiteContent:
    content = get_site_content(services.store)
    content.feature_points = sorted(points, key=lambda p: p.order)
    return _save_content(services, content, "feature points")


def set_footer(services: Services, columns: List[FooterColumn]) -> SiteContent:
    content = get_site_content(services.store)
    content.footer_columns = sorted(columns, key=lambda c: c.order)
    return _save_content(services, content, "footer")


def set_stats(services: Services, stats: List[SiteStat]) -> SiteContent:
    content = get_site_content(services.store)
    content.stats = sorted(stats, key=lambda s: s.order)
    return _save_content(services, content, "stats")


def set_theme(services: Services, theme: str) -> SiteContent:
    if theme not in THEMES:
        raise HTTPException(status_code=400, detail=f"Unknown theme: {theme}")
    content = get_site_content(services.store)
    content.theme = theme
    return _save_content(services, content, "theme")


def set_background_effects(services: Services, effects: BackgroundEffects) -> SiteContent:
    content = get_site_content(services.store)
    content.background_effects = effects
    return _save_content(services, content, "background effects")


# ---------------------------------------------------------------------------
# Collections


def _get(store: DocumentStore, collection: str, model: Type[M], doc_id: str, label: str) -> M:
    doc = store.get(collection, doc_id)
    if doc is None:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return model.from_doc(doc)


def _changed(item: M, changes: Dict[str, Any]) -> M:
    """Apply non-None ``changes`` to ``item``, re-running field validation."""
    fields = {k: v for k, v in changes.items() if v is not None}
    try:
        return type(item).from_doc({**item.to_doc(), **fields, "id": item.id})
    except ValidationError as exc:
        problems = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors())
        raise HTTPException(status_code=400, detail=problems)


def _next_order(store: DocumentStore, collection: str) -> int:
    return max((doc.get("order") or 0 for doc in store.list(collection)), default=0) + 1


def list_services(store: DocumentStore) -> List[ServiceOffering]:
    return [ServiceOffering.from_doc(doc) for doc in store.list(SERVICES, order_by="order")]


def add_service(services: Services, title: str, description: str, icon: str) -> ServiceOffering:
    offering = ServiceOffering(
        title=title,
        description=description,
        icon=icon,
        order=_next_order(services.store, SERVICES),
    )
    offering.id = services.store.add(SERVICES, offering.to_doc())
    logger.info("Added service %s", offering.title)
    return offering


def update_service(services: Services, service_id: str, **changes) -> ServiceOffering:
    offering = _changed(_get(services.store, SERVICES, ServiceOffering, service_id, "Service"), changes)
    services.store.set(SERVICES, offering.id, offering.to_doc())
    return offering


def delete_service(services: Services, service_id: str) -> None:
    offering = _get(services.store, SERVICES, ServiceOffering, service_id, "Service")
    services.store.delete(SERVICES, offering.id)
    logger.info("Deleted service %s", offering.title)


def _clean_features(features: Optional[List[str]]) -> Optional[List[str]]:
    if features is None:
        return None
    return [f.strip() for f in features if f.strip()]


def list_pricing_tiers(store: DocumentStore) -> List[PricingTier]:
    return [PricingTier.from_doc(doc) for doc in store.list(PRICING_TIERS, order_by="order")]


def add_pricing_tier(
    services: Services,
    name: str,
    price: str,
    price_description: str,
    description: str,
    features: List[str],
    is_popular: bool = False,
) -> PricingTier:
    features = _clean_features(features)
    if not features:
        raise HTTPException(status_code=400, detail="At least one feature is required")
    tier = PricingTier(
        name=name,
        price=price,
        price_description=price_description,
        description=description,
        features=features,
        is_popular=is_popular,
        order=_next_order(services.store, PRICING_TIERS),
    )
    tier.id = services.store.add(PRICING_TIERS, tier.to_doc())
    return tier


def update_pricing_tier(services: Services, tier_id: str, features: Optional[List[str]] = None, **changes) -> PricingTier:
    features = _clean_features(features)
    if features is not None and not features:
        raise HTTPException(status_code=400, detail="At least one feature is required")
    tier = _get(services.store, PRICING_TIERS, PricingTier, tier_id, "Pricing tier")
    tier = _changed(tier, {**changes, "features": features})
    services.store.set(PRICING_TIERS, tier.id, tier.to_doc())
    return tier


def delete_pricing_tier(services: Services, tier_id: str) -> None:
    tier = _get(services.store, PRICING_TIERS, PricingTier, tier_id, "Pricing tier")
    services.store.delete(PRICING_TIERS, tier.id)


def list_portfolio(store: DocumentStore) -> List[PortfolioItem]:
    return [
        PortfolioItem.from_doc(doc)
        for doc in store.list(PORTFOLIO_ITEMS, order_by="created_at", descending=True)
    ]


def add_portfolio_item(
    services: Services,
    title: str,
    category: str,
    description: str,
    content: str,
    image_hint: str,
    image_path: Optional[str] = None,
    image_url: Optional[str] = None,
) -> PortfolioItem:
    item = PortfolioItem(
        title=title,
        category=category,
        description=description,
        content=content,
        image_hint=image_hint,
    )
    if image_path:
        item.image_url = services.storage.public_url(image_path)
        item.image_path = image_path
    elif image_url:
        item.image_url = image_url
    item.id = services.store.add(PORTFOLIO_ITEMS, item.to_doc())
    logger.info("Added portfolio item %s", item.title)
    return item


def update_portfolio_item(
    services: Services,
    item_id: str,
    image_path: Optional[str] = None,
    **changes,
) -> PortfolioItem:
    item = _get(services.store, PORTFOLIO_ITEMS, PortfolioItem, item_id, "Portfolio item")
    item = _changed(item, changes)
    if image_path:
        item.image_url = _replace_object(services, item.image_path, image_path)
        item.image_path = image_path
    services.store.set(PORTFOLIO_ITEMS, item.id, item.to_doc())
    return item


def delete_portfolio_item(services: Services, item_id: str) -> None:
    item = _get(services.store, PORTFOLIO_ITEMS, PortfolioItem, item_id, "Portfolio item")
    if item.image_path:
        services.storage.remove(item.image_path)
    services.store.delete(PORTFOLIO_ITEMS, item.id)
    logger.info("Deleted portfolio item %s", item.title)


def public_site(store: DocumentStore) -> Dict[str, Any]:
    """Everything the public site renders, in one response."""
    return {
        "content": get_site_content(store),
        "services": list_services(store),
        "pricing_tiers": list_pricing_tiers(store),
        "portfolio": list_portfolio(store),
    }

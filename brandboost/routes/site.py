"""Admin editing of the public marketing site."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from .. import site
from ..models import BackgroundEffects, FeaturePoint, FooterColumn, HomePageContent, SiteStat
from ..services import Services, get_services

router = APIRouter(prefix="/admin/site", tags=["site"])


class IdentityRequest(BaseModel):
    logo_path: Optional[str] = None  # object keys of uploaded files
    favicon_path: Optional[str] = None


class ImageRequest(BaseModel):
    image_path: Optional[str] = None
    image_url: Optional[str] = None
    image_hint: Optional[str] = None


class ThemeRequest(BaseModel):
    theme: str


class ServiceRequest(BaseModel):
    title: str = Field(..., min_length=3)
    description: str = Field(..., min_length=10)
    icon: str = Field(..., min_length=1)


class ServiceUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    order: Optional[int] = None


class PricingTierRequest(BaseModel):
    name: str = Field(..., min_length=1)
    price: str = Field(..., min_length=1)
    price_description: str = Field(..., min_length=1)
    description: str = Field(..., min_length=10)
    features: List[str] = Field(..., min_length=1)
    is_popular: bool = False


class PricingTierUpdateRequest(BaseModel):
    name: Optional[str] = None
    price: Optional[str] = None
    price_description: Optional[str] = None
    description: Optional[str] = None
    features: Optional[List[str]] = None
    is_popular: Optional[bool] = None
    order: Optional[int] = None


class PortfolioRequest(BaseModel):
    title: str = Field(..., min_length=3)
    category: str = Field(..., min_length=3)
    description: str = Field(..., min_length=10)
    content: str = Field(..., min_length=20)
    image_hint: str = Field(..., min_length=2)
    image_path: Optional[str] = None
    image_url: Optional[str] = None


class PortfolioUpdateRequest(BaseModel):
    title: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    image_hint: Optional[str] = None
    image_path: Optional[str] = None


# ---------------------------------------------------------------------------
# Page content


@router.get("", summary="Get the editable site content")
def get_content(services: Services = Depends(get_services)):
    return site.get_site_content(services.store)


@router.put("/identity", summary="Replace the logo and/or favicon")
def update_identity(req: IdentityRequest, services: Services = Depends(get_services)):
    return site.update_identity(services, logo_path=req.logo_path, favicon_path=req.favicon_path)


@router.put("/home", summary="Edit the home page text")
def update_home(req: HomePageContent, services: Services = Depends(get_services)):
    return site.update_home(services, req)


@router.put("/images/{slot_id}", summary="Replace the image in a slot")
def update_image(slot_id: str, req: ImageRequest, services: Services = Depends(get_services)):
    return site.update_image(
        services, slot_id, image_path=req.image_path, image_url=req.image_url, image_hint=req.image_hint
    )


@router.put("/feature-points", summary="Replace the home page feature points")
def set_feature_points(req: List[FeaturePoint], services: Services = Depends(get_services)):
    return site.set_feature_points(services, req)


@router.put("/footer", summary="Replace the footer columns")
def set_footer(req: List[FooterColumn], services: Services = Depends(get_services)):
    return site.set_footer(services, req)


@router.put("/stats", summary="Replace the headline stats")
def set_stats(req: List[SiteStat], services: Services = Depends(get_services)):
    return site.set_stats(services, req)


@router.put("/theme", summary="Switch the colour theme")
def set_theme(req: ThemeRequest, services: Services = Depends(get_services)):
    return site.set_theme(services, req.theme)


@router.put("/background-effects", summary="Configure the animated background")
def set_background_effects(req: BackgroundEffects, services: Services = Depends(get_services)):
    return site.set_background_effects(services, req)


# ---------------------------------------------------------------------------
# Services, pricing and portfolio


@router.get("/services", summary="List service offerings")
def list_services(services: Services = Depends(get_services)):
    return site.list_services(services.store)


@router.post("/services", status_code=201, summary="Add a service offering")
def add_service(req: ServiceRequest, services: Services = Depends(get_services)):
    return site.add_service(services, req.title, req.description, req.icon)


@router.patch("/services/{service_id}", summary="Edit a service offering")
def update_service(service_id: str, req: ServiceUpdateRequest, services: Services = Depends(get_services)):
    return site.update_service(services, service_id, **req.model_dump())


@router.delete("/services/{service_id}", summary="Delete a service offering")
def delete_service(service_id: str, services: Services = Depends(get_services)):
    site.delete_service(services, service_id)
    return {"status": "deleted"}


@router.get("/pricing", summary="List pricing tiers")
def list_pricing_tiers(services: Services = Depends(get_services)):
    return site.list_pricing_tiers(services.store)


@router.post("/pricing", status_code=201, summary="Add a pricing tier")
def add_pricing_tier(req: PricingTierRequest, services: Services = Depends(get_services)):
    return site.add_pricing_tier(services, **req.model_dump())


@router.patch("/pricing/{tier_id}", summary="Edit a pricing tier")
def update_pricing_tier(tier_id: str, req: PricingTierUpdateRequest, services: Services = Depends(get_services)):
    return site.update_pricing_tier(services, tier_id, **req.model_dump())


@router.delete("/pricing/{tier_id}", summary="Delete a pricing tier")
def delete_pricing_tier(tier_id: str, services: Services = Depends(get_services)):
    site.delete_pricing_tier(services, tier_id)
    return {"status": "deleted"}


@router.get("/portfolio", summary="List portfolio items, newest first")
def list_portfolio(services: Services = Depends(get_services)):
    return site.list_portfolio(services.store)


@router.post("/portfolio", status_code=201, summary="Add a portfolio item")
def add_portfolio_item(req: PortfolioRequest, services: Services = Depends(get_services)):
    return site.add_portfolio_item(services, **req.model_dump())


@router.patch("/portfolio/{item_id}", summary="Edit a portfolio item")
def update_portfolio_item(item_id: str, req: PortfolioUpdateRequest, services: Services = Depends(get_services)):
    return site.update_portfolio_item(services, item_id, **req.model_dump())


@router.delete("/portfolio/{item_id}", summary="Delete a portfolio item and its image")
def delete_portfolio_item(item_id: str, services: Services = Depends(get_services)):
    site.delete_portfolio_item(services, item_id)
    return {"status": "deleted"}

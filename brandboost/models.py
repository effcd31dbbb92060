"""Document models.

These Pydantic models define the structure of the documents kept in the
store: projects and their embedded work items, invoices, payments,
intake messages, team members and the marketing site. Documents are
stored with ``model_dump(mode="json")`` so enum members become their
string values and dates become ISO 8601 strings; ``from_doc`` reverses
that. Timestamps are ISO 8601 strings in UTC for ease of client
integration.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utcnow_iso() -> str:
    return utcnow().isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Status enums


class ProjectStatus(str, Enum):
    AWAITING_BRIEF = "Awaiting Brief"
    PENDING_APPROVAL = "Pending Approval"
    IN_PROGRESS = "In Progress"
    PENDING_FEEDBACK = "Pending Feedback"
    REVISION_REQUESTED = "Revision Requested"
    APPROVED = "Approved"
    COMPLETED = "Completed"
    BLOCKED = "Blocked"
    CANCELLATION_REQUESTED = "Cancellation Requested"
    CANCELED = "Canceled"


class ProjectPaymentStatus(str, Enum):
    UNPAID = "Unpaid"
    PAID = "Paid"


class ProjectType(str, Enum):
    BRANDING = "Branding"
    WEB_DESIGN = "Web Design"
    UI_UX = "UI/UX"
    MARKETING = "Marketing"
    OTHER = "Other"


class InvoiceStatus(str, Enum):
    DRAFT = "Draft"
    SENT = "Sent"
    PAID = "Paid"
    OVERDUE = "Overdue"


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class MessageStatus(str, Enum):
    NEW = "New"
    CONTACTED = "Contacted"
    CONVERTED = "Converted"
    DECLINED = "Declined"
    ARCHIVED = "Archived"


class RequestStatus(str, Enum):
    PENDING = "Pending"


class TeamMemberRole(str, Enum):
    ADMIN = "Admin"
    DESIGNER = "Designer"
    VIEWER = "Viewer"


# ---------------------------------------------------------------------------
# Base document


class Document(BaseModel):
    """A stored document. ``id`` is the store key and is not persisted."""

    id: str = ""

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]):
        return cls(**doc)

    def to_doc(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude={"id"})


# ---------------------------------------------------------------------------
# Items embedded in a project


class TimeLog(BaseModel):
    id: str = Field(default_factory=new_id)
    designer_id: str
    designer_name: str
    minutes: int
    logged_at: str = Field(default_factory=utcnow_iso)


class Task(BaseModel):
    id: str = Field(default_factory=new_id)
    text: str
    completed: bool = False
    logged_time: List[TimeLog] = Field(default_factory=list)


class Feedback(BaseModel):
    """A comment on the shared project thread, visible to the client."""

    user: str
    comment: str
    timestamp: str = Field(default_factory=utcnow_iso)


class Notification(BaseModel):
    id: str = Field(default_factory=new_id)
    text: str
    timestamp: str = Field(default_factory=utcnow_iso)


class InternalNote(BaseModel):
    id: str = Field(default_factory=new_id)
    author_id: str
    author_name: str
    note: str
    timestamp: str = Field(default_factory=utcnow_iso)


class Expense(BaseModel):
    id: str = Field(default_factory=new_id)
    description: str
    amount: float
    incurred_at: str = Field(default_factory=utcnow_iso)


class Asset(BaseModel):
    """A delivered file.

    ``path`` is the object key inside the storage bucket and ``url`` the
    public download link resolved from it. ``size`` is a display string
    such as ``"1.20 MB"``.
    """

    id: str = Field(default_factory=new_id)
    name: str
    file_type: str = "file"
    size: str = ""
    url: str
    path: str = ""
    created_at: str = Field(default_factory=utcnow_iso)


class Project(Document):
    """A client engagement and everything attached to it.

    ``status`` is driven by the lifecycle actions in
    ``brandboost.lifecycle``. ``team`` holds designer names, which is
    how the designer portal finds the projects a designer works on.
    ``revisions_used`` never exceeds ``revision_limit``; a revision can
    only be requested while there is room left.
    """

    name: str
    client: str
    client_email: Optional[EmailStr] = None
    status: ProjectStatus = ProjectStatus.AWAITING_BRIEF
    payment_status: ProjectPaymentStatus = ProjectPaymentStatus.UNPAID
    due_date: date
    team: List[str] = Field(default_factory=list)
    description: str = ""
    project_type: ProjectType = ProjectType.OTHER
    revision_limit: int = 3
    revisions_used: int = 0
    brief_description: str = ""
    brief_links: str = ""
    revision_request_details: str = ""
    revision_request_timestamp: str = ""
    rating: Optional[int] = None
    review: Optional[str] = None
    feedback: List[Feedback] = Field(default_factory=list)
    tasks: List[Task] = Field(default_factory=list)
    assets: List[Asset] = Field(default_factory=list)
    notifications: List[Notification] = Field(default_factory=list)
    internal_notes: List[InternalNote] = Field(default_factory=list)
    expenses: List[Expense] = Field(default_factory=list)
    created_at: str = Field(default_factory=utcnow_iso)

    def client_view(self) -> Dict[str, Any]:
        """The project as shown in the client portal, without agency-only data."""
        return self.model_dump(mode="json", exclude={"internal_notes", "expenses"})


# ---------------------------------------------------------------------------
# Billing


class LineItem(BaseModel):
    description: str
    quantity: float = Field(gt=0)
    price: float = Field(ge=0)
    total: float = 0.0


class Invoice(Document):
    project_id: str
    client_name: str
    client_address: str = ""
    project_name: str
    line_items: List[LineItem]
    tax_rate: float = 0.0  # percentage, e.g. 8.5
    notes: Optional[str] = None
    invoice_number: str
    issue_date: date
    due_date: date
    from_name: str = ""
    from_address: str = ""
    subtotal: float = 0.0
    tax_amount: float = 0.0
    total: float = 0.0
    status: InvoiceStatus = InvoiceStatus.DRAFT
    payment_link: Optional[str] = None
    created_at: str = Field(default_factory=utcnow_iso)


class Payment(Document):
    """A client's notice that an invoice has been paid, awaiting review."""

    invoice_id: str
    project_id: str
    client_name: str
    amount: float
    method: str = ""
    reference: str = ""
    status: PaymentStatus = PaymentStatus.PENDING
    requested_at: str = Field(default_factory=utcnow_iso)
    reviewed_at: Optional[str] = None


# ---------------------------------------------------------------------------
# Intake and team


class ContactMessage(Document):
    """A proposal submitted through the public contact form."""

    proposal_id: str
    name: str
    email: EmailStr
    company: Optional[str] = None
    service: Optional[str] = None
    budget: Optional[str] = None
    description: str = ""
    status: MessageStatus = MessageStatus.NEW
    created_at: str = Field(default_factory=utcnow_iso)


class ProjectRequest(Document):
    """A new project asked for by a returning client from their portal."""

    client_name: str
    client_email: Optional[EmailStr] = None
    source_project_id: Optional[str] = None
    brief: str
    status: RequestStatus = RequestStatus.PENDING
    requested_at: str = Field(default_factory=utcnow_iso)


class TeamMember(Document):
    name: str
    email: EmailStr
    role: TeamMemberRole = TeamMemberRole.DESIGNER
    avatar_url: Optional[str] = None
    avatar_path: Optional[str] = None
    created_at: str = Field(default_factory=utcnow_iso)


class Event(Document):
    project_id: str
    type: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    created_at: str = Field(default_factory=utcnow_iso)


# ---------------------------------------------------------------------------
# Marketing site


class SiteIdentity(BaseModel):
    logo_url: Optional[str] = None
    logo_path: Optional[str] = None
    favicon_url: Optional[str] = None
    favicon_path: Optional[str] = None


class HomePageContent(BaseModel):
    hero_title: str = Field(..., min_length=1)
    hero_subtitle: str = Field(..., min_length=1)
    feature_title: str = Field(..., min_length=1)
    feature_subtitle: str = Field(..., min_length=1)
    feature_point1_title: str = Field(..., min_length=1)
    feature_point1_text: str = Field(..., min_length=1)


class SiteImage(BaseModel):
    """A named image slot on the public site."""

    id: str
    name: str
    description: str = ""
    image_url: str = ""
    image_path: str = ""
    image_hint: str = ""


class FeaturePoint(BaseModel):
    id: str = Field(default_factory=new_id)
    title: str = Field(..., min_length=3)
    text: str = Field(..., min_length=10)
    icon: str = ""
    link: str = ""
    order: int = 0


class FooterLink(BaseModel):
    id: str = Field(default_factory=new_id)
    text: str = Field(..., min_length=1)
    href: str = Field(..., min_length=1)


class FooterColumn(BaseModel):
    id: str = Field(default_factory=new_id)
    title: str = Field(..., min_length=1)
    order: int = 0
    links: List[FooterLink] = Field(default_factory=list)


class SiteStat(BaseModel):
    id: str = Field(default_factory=new_id)
    label: str = Field(..., min_length=3)
    value: str = Field(..., min_length=1)
    order: int = 0


class BackgroundEffects(BaseModel):
    animate: bool = True
    count: int = Field(4, ge=0, le=6)


class SiteContent(Document):
    """The single document holding the editable parts of the public site."""

    identity: SiteIdentity = Field(default_factory=SiteIdentity)
    home: Optional[HomePageContent] = None
    images: Dict[str, SiteImage] = Field(default_factory=dict)
    feature_points: List[FeaturePoint] = Field(default_factory=list)
    footer_columns: List[FooterColumn] = Field(default_factory=list)
    stats: List[SiteStat] = Field(default_factory=list)
    theme: str = "theme-default"
    background_effects: BackgroundEffects = Field(default_factory=BackgroundEffects)
    updated_at: Optional[str] = None


class ServiceOffering(Document):
    title: str = Field(..., min_length=3)
    description: str = Field(..., min_length=10)
    icon: str = Field(..., min_length=1)
    order: int = 0
    created_at: str = Field(default_factory=utcnow_iso)


class PricingTier(Document):
    name: str = Field(..., min_length=1)
    price: str = Field(..., min_length=1)
    price_description: str = Field(..., min_length=1)
    description: str = Field(..., min_length=10)
    features: List[str] = Field(default_factory=list)
    is_popular: bool = False
    order: int = 0


class PortfolioItem(Document):
    title: str = Field(..., min_length=3)
    category: str = Field(..., min_length=3)
    description: str = Field(..., min_length=10)
    content: str = Field(..., min_length=20)
    image_hint: str = Field(..., min_length=2)
    image_url: str = ""
    image_path: str = ""
    created_at: str = Field(default_factory=utcnow_iso)

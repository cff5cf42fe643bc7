"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Field-level rules live in the domain; these models only check structure.
"""

from pydantic import Base64Bytes, BaseModel, Field

from src.domain.host import AuthHostController
from src.domain.ports import AuthMode, DocumentKind, ErrorKind, Role, WizardStep
from src.domain.wizard import WizardController, documents_for


class OpenSurfaceRequest(BaseModel):
    """Request model for opening an authentication surface."""

    mode: AuthMode | None = Field(default=None, description="Initial mode (defaults to server setting)")


class ModeRequest(BaseModel):
    """Request model for switching between login and registration."""

    mode: AuthMode


class LoginRequest(BaseModel):
    """Request model for a login submit-intent."""

    identifier: str
    secret: str
    remember_me: bool = False


class LoginResponse(BaseModel):
    """Response model for successful login."""

    message: str


class RoleRequest(BaseModel):
    """Request model for role selection."""

    role: Role


class StepDataRequest(BaseModel):
    """Field values for the current wizard step."""

    data: dict[str, str] = Field(default_factory=dict)


class DocumentUploadRequest(BaseModel):
    """Request model for filling a document slot."""

    filename: str = Field(..., min_length=1)
    content: Base64Bytes = Field(..., description="Base64-encoded file content")


class WizardView(BaseModel):
    """Snapshot of the registration wizard for rendering."""

    step: WizardStep
    role: Role
    steps: list[WizardStep]
    personal_info: dict[str, str]
    business_info: dict[str, str]
    documents: dict[DocumentKind, bool]
    field_errors: dict[str, ErrorKind]
    pending: bool

    @classmethod
    def from_wizard(cls, wizard: WizardController) -> "WizardView":
        session = wizard.session
        return cls(
            step=session.current_step,
            role=session.role,
            steps=list(wizard.steps),
            personal_info=dict(session.personal_info),
            business_info=dict(session.business_info),
            documents={kind: session.document_state[kind] for kind in documents_for(session.role)},
            field_errors=dict(session.field_errors),
            pending=wizard.pending,
        )


class SurfaceResponse(BaseModel):
    """Snapshot of one authentication surface."""

    surface_id: str
    mode: AuthMode
    open: bool
    pending: bool
    login_errors: dict[str, ErrorKind]
    wizard: WizardView | None = None

    @classmethod
    def from_host(cls, surface_id: str, host: AuthHostController) -> "SurfaceResponse":
        return cls(
            surface_id=surface_id,
            mode=host.active_mode,
            open=host.is_open,
            pending=host.pending,
            login_errors=dict(host.login_errors),
            wizard=WizardView.from_wizard(host.wizard) if host.active_mode is AuthMode.REGISTER else None,
        )


class ValidationErrorResponse(BaseModel):
    """Field errors of a rejected step or login."""

    detail: str
    field_errors: dict[str, ErrorKind]


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str

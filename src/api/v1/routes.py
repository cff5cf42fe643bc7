"""
API v1 routes.

Defines REST endpoints that act as the presentation shell for
authentication surfaces: mode selection, login and the registration wizard.
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import JSONResponse

from src.api.dependencies import get_registry, get_storage, get_surface
from src.api.models import (
    DocumentUploadRequest,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    ModeRequest,
    OpenSurfaceRequest,
    RoleRequest,
    StepDataRequest,
    SurfaceResponse,
    ValidationErrorResponse,
)
from src.api.surfaces import SurfaceRegistry
from src.config.settings import get_settings
from src.domain.exceptions import (
    IllegalTransition,
    MissingDocuments,
    SubmissionBusyError,
    SubmissionFailed,
    ValidationFailed,
)
from src.domain.host import AuthHostController
from src.domain.ports import AuthMode, DocumentKind, DocumentStorage

router = APIRouter(tags=["v1"])

_CONFLICT = {409: {"model": ErrorResponse, "description": "Not allowed in the current state"}}
_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Surface not found"}}


def _validation_response(exc: ValidationFailed) -> JSONResponse:
    body = ValidationErrorResponse(detail="Validation failed", field_errors=exc.errors)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=body.model_dump(mode="json"),
    )


def _conflict(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


@router.post(
    "/surfaces",
    response_model=SurfaceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open an authentication surface",
)
async def open_surface(
    request_data: OpenSurfaceRequest,
    registry: SurfaceRegistry = Depends(get_registry),
) -> SurfaceResponse:
    """Open a surface in the requested mode, or the configured default."""
    mode = request_data.mode or get_settings().default_mode
    surface_id, host = registry.open(mode)
    return SurfaceResponse.from_host(surface_id, host)


@router.get(
    "/surfaces/{surface_id}",
    response_model=SurfaceResponse,
    responses=_NOT_FOUND,
    summary="Get surface state",
)
async def get_surface_state(
    surface_id: str,
    host: AuthHostController = Depends(get_surface),
) -> SurfaceResponse:
    return SurfaceResponse.from_host(surface_id, host)


@router.put(
    "/surfaces/{surface_id}/mode",
    response_model=SurfaceResponse,
    responses={**_NOT_FOUND, **_CONFLICT},
    summary="Switch between login and registration",
)
async def set_mode(
    surface_id: str,
    request_data: ModeRequest,
    host: AuthHostController = Depends(get_surface),
    storage: DocumentStorage = Depends(get_storage),
) -> SurfaceResponse:
    """
    Switch the visible sub-flow.

    Entering registration starts a fresh session, so documents uploaded
    for an abandoned session are dropped.
    """
    if host.pending:
        raise _conflict("Submission in progress")
    previous = host.active_mode
    host.set_mode(request_data.mode)
    if request_data.mode is AuthMode.REGISTER and previous is not AuthMode.REGISTER:
        storage.discard(surface_id)
    return SurfaceResponse.from_host(surface_id, host)


@router.delete(
    "/surfaces/{surface_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_NOT_FOUND,
    summary="Close an authentication surface",
)
async def close_surface(host: AuthHostController = Depends(get_surface)) -> Response:
    host.close()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/surfaces/{surface_id}/login",
    response_model=LoginResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
        **_NOT_FOUND,
        **_CONFLICT,
    },
    summary="Log in with existing credentials",
)
async def login(
    request_data: LoginRequest,
    host: AuthHostController = Depends(get_surface),
) -> LoginResponse | JSONResponse:
    """
    Submit credentials. On success the surface closes.

    A second login while one is pending is rejected with 409.
    """
    try:
        await host.login(request_data.identifier, request_data.secret, request_data.remember_me)
    except ValidationFailed as exc:
        return _validation_response(exc)
    except SubmissionBusyError:
        raise _conflict("Submission in progress") from None
    except SubmissionFailed:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        ) from None
    except IllegalTransition as exc:
        raise _conflict(str(exc)) from None
    return LoginResponse(message="Login successful")


@router.post(
    "/surfaces/{surface_id}/password-reset",
    status_code=status.HTTP_202_ACCEPTED,
    responses=_NOT_FOUND,
    summary="Request a password reset",
)
async def request_password_reset(host: AuthHostController = Depends(get_surface)) -> Response:
    host.request_password_reset()
    return Response(status_code=status.HTTP_202_ACCEPTED)


def _registration(host: AuthHostController) -> None:
    if host.active_mode is not AuthMode.REGISTER:
        raise _conflict("Surface is not in register mode")
    if host.pending:
        raise _conflict("Submission in progress")


@router.put(
    "/surfaces/{surface_id}/register/role",
    response_model=SurfaceResponse,
    responses={**_NOT_FOUND, **_CONFLICT},
    summary="Select the platform role",
)
async def select_role(
    surface_id: str,
    request_data: RoleRequest,
    host: AuthHostController = Depends(get_surface),
) -> SurfaceResponse:
    _registration(host)
    try:
        host.wizard.select_role(request_data.role)
    except IllegalTransition as exc:
        raise _conflict(str(exc)) from None
    return SurfaceResponse.from_host(surface_id, host)


@router.post(
    "/surfaces/{surface_id}/register/next",
    response_model=SurfaceResponse,
    responses={
        422: {"model": ValidationErrorResponse, "description": "Validation error"},
        **_NOT_FOUND,
        **_CONFLICT,
    },
    summary="Advance the registration wizard",
)
async def next_step(
    surface_id: str,
    request_data: StepDataRequest,
    host: AuthHostController = Depends(get_surface),
) -> SurfaceResponse | JSONResponse:
    """Merge the submitted fields into the current step and advance if valid."""
    _registration(host)
    try:
        host.wizard.next(request_data.data)
    except ValidationFailed as exc:
        return _validation_response(exc)
    except IllegalTransition as exc:
        raise _conflict(str(exc)) from None
    return SurfaceResponse.from_host(surface_id, host)


@router.post(
    "/surfaces/{surface_id}/register/back",
    response_model=SurfaceResponse,
    responses={**_NOT_FOUND, **_CONFLICT},
    summary="Go back one registration step",
)
async def previous_step(
    surface_id: str,
    host: AuthHostController = Depends(get_surface),
) -> SurfaceResponse:
    _registration(host)
    try:
        host.wizard.back()
    except IllegalTransition as exc:
        raise _conflict(str(exc)) from None
    return SurfaceResponse.from_host(surface_id, host)


@router.put(
    "/surfaces/{surface_id}/register/documents/{kind}",
    response_model=SurfaceResponse,
    responses={**_NOT_FOUND, **_CONFLICT},
    summary="Upload a registration document",
)
async def upload_document(
    surface_id: str,
    kind: DocumentKind,
    request_data: DocumentUploadRequest,
    host: AuthHostController = Depends(get_surface),
    storage: DocumentStorage = Depends(get_storage),
) -> SurfaceResponse:
    _registration(host)
    try:
        host.wizard.set_document(kind, provided=True)
    except IllegalTransition as exc:
        raise _conflict(str(exc)) from None
    storage.store(surface_id, kind, request_data.filename, request_data.content)
    return SurfaceResponse.from_host(surface_id, host)


@router.delete(
    "/surfaces/{surface_id}/register/documents/{kind}",
    response_model=SurfaceResponse,
    responses={**_NOT_FOUND, **_CONFLICT},
    summary="Remove a registration document",
)
async def remove_document(
    surface_id: str,
    kind: DocumentKind,
    host: AuthHostController = Depends(get_surface),
    storage: DocumentStorage = Depends(get_storage),
) -> SurfaceResponse:
    _registration(host)
    try:
        host.wizard.set_document(kind, provided=False)
    except IllegalTransition as exc:
        raise _conflict(str(exc)) from None
    storage.discard(surface_id, kind)
    return SurfaceResponse.from_host(surface_id, host)


@router.post(
    "/surfaces/{surface_id}/register/submit",
    response_model=SurfaceResponse,
    responses={**_NOT_FOUND, **_CONFLICT},
    summary="Complete registration",
    description="Submit the registration to the identity service. "
    "On success the surface switches to login mode.",
)
async def submit_registration(
    surface_id: str,
    host: AuthHostController = Depends(get_surface),
) -> SurfaceResponse:
    if host.active_mode is not AuthMode.REGISTER:
        raise _conflict("Surface is not in register mode")
    try:
        await host.register()
    except MissingDocuments as exc:
        raise _conflict(str(exc)) from None
    except SubmissionBusyError:
        raise _conflict("Submission in progress") from None
    except SubmissionFailed:
        # Generic message: do not reveal whether the email is already registered
        raise _conflict("Registration failed") from None
    except IllegalTransition as exc:
        raise _conflict(str(exc)) from None
    return SurfaceResponse.from_host(surface_id, host)

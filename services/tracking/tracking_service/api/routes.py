from fastapi import APIRouter, Depends, HTTPException
from typing import Optional
from tracking_service.application.identity import CallerContext, RESERVED_IDENTITIES
from tracking_service.application.service import TrackingService
from tracking_service.application.schemas import (
    ShipmentCreate,
    ShipmentRead,
    TrackingEventCreate,
    TrackingEventRead,
    TrackingNumberRead,
    UserProfileSchema,
    RoleAssignmentRequest,
    UserRoleRead,
    IsAdminRead,
    BootstrapRequest,
    TokenRequest,
    TokenRead,
)
from tracking_service.core_settings import get_settings
from .auth import get_caller, get_service, create_access_token

auth_router = APIRouter(prefix="/auth", tags=["auth"])

@auth_router.post("/token", response_model=TokenRead)
def issue_token(payload: TokenRequest):
    """Development token issuer; production deployments sit behind a real identity provider."""
    if not get_settings().ENABLE_DEV_TOKENS:
        raise HTTPException(status_code=404, detail="Not Found")
    if payload.username in RESERVED_IDENTITIES:
        raise HTTPException(status_code=422, detail="username is reserved")
    return TokenRead(access_token=create_access_token(payload.username))

router = APIRouter(prefix="/shipments", tags=["shipments"])

@router.get("/", response_model=list[ShipmentRead])
def list_shipments(caller: CallerContext = Depends(get_caller), service: TrackingService = Depends(get_service)):
    return service.get_all_shipments(caller)

@router.post("/", response_model=ShipmentRead, status_code=201)
def create_shipment(payload: ShipmentCreate, caller: CallerContext = Depends(get_caller), service: TrackingService = Depends(get_service)):
    return service.create_shipment(caller, payload.tracking_number, payload.origin, payload.destination, payload.recipient)

@router.post("/generate", response_model=TrackingNumberRead)
def generate_tracking_number(caller: CallerContext = Depends(get_caller), service: TrackingService = Depends(get_service)):
    return TrackingNumberRead(tracking_number=service.generate_tracking_number(caller))

@router.post("/seed", response_model=list[ShipmentRead], status_code=201)
def add_test_shipments(caller: CallerContext = Depends(get_caller), service: TrackingService = Depends(get_service)):
    return service.add_test_shipments(caller)

@router.get("/{tracking_number}", response_model=ShipmentRead)
def get_shipment(tracking_number: str, caller: CallerContext = Depends(get_caller), service: TrackingService = Depends(get_service)):
    return service.get_shipment(caller, tracking_number)

@router.get("/{tracking_number}/events/latest", response_model=TrackingEventRead)
def get_latest_event(tracking_number: str, caller: CallerContext = Depends(get_caller), service: TrackingService = Depends(get_service)):
    return service.get_latest_tracking_event(caller, tracking_number)

@router.get("/{tracking_number}/timeline", response_model=list[TrackingEventRead])
def get_timeline(tracking_number: str, caller: CallerContext = Depends(get_caller), service: TrackingService = Depends(get_service)):
    """Events newest first."""
    return service.get_tracking_timeline(caller, tracking_number)

@router.post("/{tracking_number}/events", response_model=TrackingEventRead, status_code=201)
def add_tracking_event(tracking_number: str, payload: TrackingEventCreate, caller: CallerContext = Depends(get_caller), service: TrackingService = Depends(get_service)):
    return service.add_tracking_event(caller, tracking_number, payload)

users_router = APIRouter(prefix="/users", tags=["users"])

@users_router.get("/me/role", response_model=UserRoleRead)
def get_caller_role(caller: CallerContext = Depends(get_caller), service: TrackingService = Depends(get_service)):
    return UserRoleRead(identity=caller.identity, role=service.get_caller_user_role(caller))

@users_router.get("/me/is-admin", response_model=IsAdminRead)
def is_caller_admin(caller: CallerContext = Depends(get_caller), service: TrackingService = Depends(get_service)):
    return IsAdminRead(identity=caller.identity, is_admin=service.is_caller_admin(caller))

@users_router.get("/me/profile", response_model=Optional[UserProfileSchema])
def get_caller_profile(caller: CallerContext = Depends(get_caller), service: TrackingService = Depends(get_service)):
    return service.get_caller_user_profile(caller)

@users_router.put("/me/profile", response_model=UserProfileSchema)
def save_caller_profile(payload: UserProfileSchema, caller: CallerContext = Depends(get_caller), service: TrackingService = Depends(get_service)):
    return service.save_caller_user_profile(caller, payload)

@users_router.get("/roles", response_model=list[UserRoleRead])
def list_roles(caller: CallerContext = Depends(get_caller), service: TrackingService = Depends(get_service)):
    return service.list_user_roles(caller)

@users_router.post("/bootstrap-admin", status_code=204)
def bootstrap_admin(payload: BootstrapRequest, caller: CallerContext = Depends(get_caller), service: TrackingService = Depends(get_service)):
    service.set_initial_admin(caller, payload.token, get_settings().ADMIN_TOKEN)
    return None

@users_router.get("/{identity}/profile", response_model=Optional[UserProfileSchema])
def get_user_profile(identity: str, caller: CallerContext = Depends(get_caller), service: TrackingService = Depends(get_service)):
    return service.get_user_profile(caller, identity)

@users_router.put("/{identity}/role", status_code=204)
def assign_role(identity: str, payload: RoleAssignmentRequest, caller: CallerContext = Depends(get_caller), service: TrackingService = Depends(get_service)):
    service.assign_user_role(caller, identity, payload.role)
    return None

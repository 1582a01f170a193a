"""Kit catalog API endpoints.

Provides routes for:
- Admin kit panel: kits, codes, purchases, manual grants
- Shop: kit listing, kit details, purchase
"""

from uuid import UUID

from fastapi import APIRouter, status

from src.auth.dependencies import CatalogAdmin, CurrentUser, OptionalUser, ProfileServiceDep
from src.core.errors import DatabaseError
from src.core.logging import get_logger
from src.email.dependencies import EmailServiceDep
from src.entitlements.dependencies import EntitlementServiceDep
from src.entitlements.models import PaymentMethod
from src.entitlements.schemas import PurchaseResponse
from src.kits.dependencies import KitServiceDep, handle_kit_error
from src.kits.schemas import (
    AdminKitsResponse,
    CreateKitRequest,
    GenerateCodesRequest,
    GenerateCodesResponse,
    GrantKitAccessRequest,
    KitCodeResponse,
    KitResponse,
    MessageResponse,
    PurchaseKitRequest,
    ShopResponse,
)
from src.kits.service import KitError, KitNotFoundError


logger = get_logger(__name__)


# ==============================================================================
# Admin Kits Router
# ==============================================================================

router_admin_kits = APIRouter(prefix="/v1/admin/kits", tags=["admin", "kits"])


@router_admin_kits.get(
    "",
    response_model=AdminKitsResponse,
    summary="Admin kit panel",
)
async def get_admin_kits(
    _: CatalogAdmin,
    kit_service: KitServiceDep,
    entitlement_service: EntitlementServiceDep,
) -> AdminKitsResponse:
    """Kits by level, codes and purchases newest first, joined with kit names."""
    kits = await kit_service.list_kits()
    codes = await kit_service.list_codes()
    purchases = await entitlement_service.list_purchases()

    names = {kit.id: kit.name for kit in kits}
    return AdminKitsResponse(
        kits=[KitResponse.from_kit(kit) for kit in kits],
        codes=[KitCodeResponse.from_code(c, names.get(c.kit_id)) for c in codes],
        purchases=[
            PurchaseResponse.from_purchase(p, names.get(p.kit_id)) for p in purchases
        ],
    )


@router_admin_kits.post(
    "",
    response_model=KitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create kit",
)
async def create_kit(
    data: CreateKitRequest,
    admin: CatalogAdmin,
    kit_service: KitServiceDep,
) -> KitResponse:
    try:
        kit = await kit_service.create_kit(**data.model_dump())
    except KitError as e:
        raise handle_kit_error(e) from e

    logger.info("admin_kit_created", kit_id=str(kit.id), admin_id=str(admin.id))
    return KitResponse.from_kit(kit)


@router_admin_kits.post(
    "/{kit_id}/codes",
    response_model=GenerateCodesResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generate redemption codes",
)
async def generate_kit_codes(
    kit_id: UUID,
    data: GenerateCodesRequest,
    _: CatalogAdmin,
    kit_service: KitServiceDep,
) -> GenerateCodesResponse:
    """Generate distinct unused codes for a kit."""
    try:
        codes = await kit_service.generate_codes(
            kit_id, data.code_type, data.quantity, data.expires_at
        )
    except KitError as e:
        raise handle_kit_error(e) from e

    return GenerateCodesResponse(
        message=f"Generated {data.quantity} {data.code_type.value} codes",
        codes=[KitCodeResponse.from_code(c) for c in codes],
    )


@router_admin_kits.delete(
    "/codes/{code}",
    response_model=MessageResponse,
    summary="Delete a redemption code",
)
async def delete_kit_code(
    code: str,
    _: CatalogAdmin,
    kit_service: KitServiceDep,
) -> MessageResponse:
    try:
        await kit_service.delete_code(code)
    except KitError as e:
        raise handle_kit_error(e) from e

    return MessageResponse(message="Code deleted successfully")


@router_admin_kits.post(
    "/grant",
    response_model=MessageResponse,
    summary="Grant kit access to a user",
)
async def grant_kit_access(
    data: GrantKitAccessRequest,
    admin: CatalogAdmin,
    kit_service: KitServiceDep,
    entitlement_service: EntitlementServiceDep,
) -> MessageResponse:
    """Grant course access without payment; recorded as an admin grant."""
    try:
        if await kit_service.get_kit(data.kit_id) is None:
            raise KitNotFoundError
        await entitlement_service.grant_kit_access(
            user_id=data.user_id,
            kit_id=data.kit_id,
            payment_method=PaymentMethod.ADMIN_GRANT,
            expires_at=data.expires_at,
        )
    except (KitError, DatabaseError) as e:
        raise handle_kit_error(e) from e

    logger.info(
        "admin_kit_access_granted",
        user_id=str(data.user_id),
        kit_id=str(data.kit_id),
        admin_id=str(admin.id),
    )
    return MessageResponse(message="Kit access granted successfully")


# ==============================================================================
# Shop Router
# ==============================================================================

router_shop = APIRouter(prefix="/v1/shop", tags=["shop"])


@router_shop.get(
    "",
    response_model=ShopResponse,
    summary="List kits for sale",
)
async def list_shop_kits(
    user: OptionalUser,
    kit_service: KitServiceDep,
    entitlement_service: EntitlementServiceDep,
) -> ShopResponse:
    """Kits ordered by level, plus the caller's owned kit ids when logged in."""
    kits = await kit_service.list_kits()
    user_kits = (
        await entitlement_service.list_user_kit_ids(user.id) if user is not None else []
    )
    return ShopResponse(
        kits=[KitResponse.from_kit(kit) for kit in kits],
        user_kits=user_kits,
    )


@router_shop.get(
    "/{kit_id}",
    response_model=KitResponse,
    summary="Get kit details",
)
async def get_shop_kit(
    kit_id: UUID,
    kit_service: KitServiceDep,
) -> KitResponse:
    kit = await kit_service.get_kit(kit_id)
    if kit is None:
        raise handle_kit_error(KitNotFoundError())
    return KitResponse.from_kit(kit)


@router_shop.post(
    "/purchase",
    response_model=MessageResponse,
    summary="Purchase a kit",
)
async def purchase_kit(
    data: PurchaseKitRequest,
    user: CurrentUser,
    kit_service: KitServiceDep,
    entitlement_service: EntitlementServiceDep,
    email_service: EmailServiceDep,
    profile_service: ProfileServiceDep,
) -> MessageResponse:
    """Unlock a kit for the caller (payment is simulated) and email a receipt."""
    kit = await kit_service.get_kit(data.kit_id)
    if kit is None:
        raise handle_kit_error(KitNotFoundError())

    try:
        purchase = await entitlement_service.grant_kit_access(
            user_id=user.id,
            kit_id=kit.id,
            payment_method=PaymentMethod.ADMIN_GRANT,
        )
    except DatabaseError as e:
        raise handle_kit_error(e) from e

    try:
        profile = await profile_service.get_profile(user.id)
        user_name = profile.display_name if profile else user.email
        await email_service.send_purchase_confirmation(
            purchase, kit, user.email, user_name or "User"
        )
    except Exception as e:
        logger.warning(
            "purchase_email_failed",
            user_id=str(user.id),
            kit_id=str(kit.id),
            error=str(e),
        )

    return MessageResponse(message="Kit purchased successfully!")

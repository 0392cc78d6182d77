"""Seed default roles and permissions.

RBAC Matrix:
┌─────────────────────┬───────┬─────────┬─────────┐
│ Permission          │ Owner │ Manager │ Cashier │
├─────────────────────┼───────┼─────────┼─────────┤
│ product:create      │  ✓    │   ✓     │         │
│ product:read        │  ✓    │   ✓     │   ✓     │
│ product:update      │  ✓    │   ✓     │         │
│ product:delete      │  ✓    │         │         │
│ order:create        │  ✓    │   ✓     │   ✓     │
│ order:read          │  ✓    │   ✓     │   ✓     │
│ order:update        │  ✓    │   ✓     │   ✓     │
│ order:void          │  ✓    │   ✓     │         │
│ order:refund        │  ✓    │   ✓     │         │
│ inventory:read      │  ✓    │   ✓     │   ✓     │
│ inventory:adjust    │  ✓    │   ✓     │         │
│ report:sales        │  ✓    │   ✓     │         │
│ report:inventory    │  ✓    │   ✓     │         │
│ report:financial    │  ✓    │         │         │
│ report:staff        │  ✓    │   ✓     │         │
│ user:create         │  ✓    │   ✓     │         │
│ user:read           │  ✓    │   ✓     │         │
│ user:update         │  ✓    │   ✓     │         │
│ user:delete         │  ✓    │         │         │
│ shift:read          │  ✓    │   ✓     │   ✓     │
│ shift:manage        │  ✓    │   ✓     │         │
│ shift:checkin       │  ✓    │   ✓     │   ✓     │
│ customer:create     │  ✓    │   ✓     │   ✓     │
│ customer:read       │  ✓    │   ✓     │   ✓     │
│ customer:update     │  ✓    │   ✓     │   ✓     │
│ customer:delete     │  ✓    │         │         │
│ loyalty:manage      │  ✓    │   ✓     │         │
│ payment:create      │  ✓    │   ✓     │   ✓     │
│ payment:read        │  ✓    │   ✓     │   ✓     │
│ payment:update      │  ✓    │   ✓     │         │
│ tax:calculate       │  ✓    │   ✓     │   ✓     │
│ store:settings      │  ✓    │         │         │
└─────────────────────┴───────┴─────────┴─────────┘

Managers may add cashiers only; granting manager/owner is owner-only
(enforced in the staff endpoints).

Run with ``python -m app.db.seed_rbac``.
"""

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import async_session
from app.models.role import Permission, PermissionAction, Role, RolePermission, RoleType

logger = logging.getLogger(__name__)

CASHIER_PERMISSIONS = [
    PermissionAction.PRODUCT_READ,
    PermissionAction.ORDER_CREATE,
    PermissionAction.ORDER_READ,
    PermissionAction.ORDER_UPDATE,
    PermissionAction.INVENTORY_READ,
    PermissionAction.SHIFT_READ,
    PermissionAction.SHIFT_CHECKIN,
    PermissionAction.CUSTOMER_CREATE,
    PermissionAction.CUSTOMER_READ,
    PermissionAction.CUSTOMER_UPDATE,
    PermissionAction.PAYMENT_CREATE,
    PermissionAction.PAYMENT_READ,
    PermissionAction.TAX_CALCULATE,
]

MANAGER_PERMISSIONS = CASHIER_PERMISSIONS + [
    PermissionAction.PRODUCT_CREATE,
    PermissionAction.PRODUCT_UPDATE,
    PermissionAction.ORDER_VOID,
    PermissionAction.ORDER_REFUND,
    PermissionAction.INVENTORY_ADJUST,
    PermissionAction.REPORT_SALES,
    PermissionAction.REPORT_INVENTORY,
    PermissionAction.REPORT_STAFF,
    PermissionAction.USER_CREATE,
    PermissionAction.USER_READ,
    PermissionAction.USER_UPDATE,
    PermissionAction.SHIFT_MANAGE,
    PermissionAction.LOYALTY_MANAGE,
    PermissionAction.PAYMENT_UPDATE,
]

ROLE_PERMISSIONS: dict[RoleType, list[PermissionAction]] = {
    RoleType.OWNER: list(PermissionAction),  # All permissions
    RoleType.MANAGER: MANAGER_PERMISSIONS,
    RoleType.CASHIER: CASHIER_PERMISSIONS,
}

ROLE_DESCRIPTIONS = {
    RoleType.OWNER: "Chủ cửa hàng",
    RoleType.MANAGER: "Quản lý",
    RoleType.CASHIER: "Thu ngân",
}


async def seed_rbac(db: AsyncSession) -> None:
    """Create missing permissions and roles, and sync each role's grants. Idempotent."""
    existing = {p.action: p for p in (await db.execute(select(Permission))).scalars().all()}
    for action in PermissionAction:
        if action not in existing:
            permission = Permission(action=action)
            db.add(permission)
            existing[action] = permission
    await db.flush()

    for role_type, actions in ROLE_PERMISSIONS.items():
        result = await db.execute(select(Role).where(Role.name == role_type))
        role = result.scalar_one_or_none()
        if role is None:
            role = Role(name=role_type, description=ROLE_DESCRIPTIONS[role_type])
            db.add(role)
            await db.flush()

        granted = {
            rp.permission_id
            for rp in (
                await db.execute(select(RolePermission).where(RolePermission.role_id == role.id))
            ).scalars().all()
        }
        for action in actions:
            if existing[action].id not in granted:
                db.add(RolePermission(role_id=role.id, permission_id=existing[action].id))
        logger.info("Role %s: %d permissions", role_type.value, len(actions))

    await db.commit()


async def main() -> None:
    async with async_session() as db:
        await seed_rbac(db)


if __name__ == "__main__":
    from app.core.logging_config import configure_logging

    configure_logging()
    asyncio.run(main())

"""
Database Seed Data Module

Startup defaults (invitation template, first administrator) and a small
sample process tree for local development.
Run with: python -m laborhours.db.seed_data
"""
import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from laborhours.core.config import settings
from laborhours.core.database import AsyncSessionLocal, init_db
from laborhours.core.logging_config import logger
from laborhours.models import (
    AppRole, EmailTemplate, Process1, Process2, Process3, Process4, System
)
from laborhours.services.invitation_service import DEFAULT_SUBJECT, DEFAULT_HTML_TEMPLATE
from laborhours.services.provisioner import UserProvisioner, build_provision_request
from laborhours.services.user_store import UserStore


# ==================== Sample Data Constants ====================

SAMPLE_TREE = {
    "1": ("Finance", {
        "1.1": ("Accounting", {
            "1.1.1": ("Bookkeeping", ["1.1.1.1", "1.1.1.2"]),
        }),
        "1.2": ("Controlling", {
            "1.2.1": ("Budgeting", ["1.2.1.1"]),
        }),
    }),
    "2": ("Human Resources", {
        "2.1": ("Recruiting", {
            "2.1.1": ("Interviews", ["2.1.1.1"]),
        }),
    }),
    "3": ("Procurement", {
        "3.1": ("Purchasing", {
            "3.1.1": ("Orders", ["3.1.1.1", "3.1.1.2"]),
        }),
    }),
}

SAMPLE_SYSTEMS = ["SAP ERP", "Microsoft Excel", "Workday", "Other"]


async def seed_email_template(db: AsyncSession) -> None:
    existing = (await db.execute(select(EmailTemplate.id).limit(1))).scalar_one_or_none()
    if existing is None:
        db.add(EmailTemplate(subject=DEFAULT_SUBJECT, html_template=DEFAULT_HTML_TEMPLATE))
        await db.commit()
        logger.info("[Seed] Created default invitation template")


async def seed_first_admin(db: AsyncSession) -> None:
    """Create FIRST_ADMIN_EMAIL as administrator if there is no administrator"""
    if not (settings.FIRST_ADMIN_EMAIL and settings.FIRST_ADMIN_PASSWORD):
        return

    store = UserStore(db)
    if await store.user_ids_with_role(AppRole.ADMIN):
        return

    request = build_provision_request(
        email=settings.FIRST_ADMIN_EMAIL,
        categories=[],
        all_categories=await store.all_category_ids(),
        full_name="Administrator",
        role=AppRole.ADMIN,
        password=settings.FIRST_ADMIN_PASSWORD,
    )
    outcome = await UserProvisioner(store).provision(request)
    if outcome.success:
        logger.info(f"[Seed] Created first administrator {outcome.email}")
    else:
        logger.error(f"[Seed] Could not create first administrator: {outcome.error}")


async def seed_defaults(db: AsyncSession) -> None:
    """Run on every startup; each step is a no-op once done"""
    await seed_email_template(db)
    await seed_first_admin(db)


async def seed_sample_processes(db: AsyncSession) -> None:
    if (await db.execute(select(Process1.f1_index).limit(1))).scalar_one_or_none():
        logger.info("[Seed] Process tree already present, skipping")
        return

    levels = [[], [], [], []]
    for sort1, (f1, (name1, level2)) in enumerate(SAMPLE_TREE.items(), start=1):
        levels[0].append(Process1(f1_index=f1, f1_name=name1, sort=sort1))
        for sort2, (f2, (name2, level3)) in enumerate(level2.items(), start=1):
            levels[1].append(Process2(f2_index=f2, f1_index=f1, f2_name=name2, sort=sort2))
            for sort3, (f3, (name3, leaves)) in enumerate(level3.items(), start=1):
                levels[2].append(Process3(f3_index=f3, f2_index=f2, f3_name=name3, sort=sort3))
                for sort4, f4 in enumerate(leaves, start=1):
                    levels[3].append(
                        Process4(f4_index=f4, f3_index=f3, f4_name=f"{name3} task {sort4}", sort=sort4)
                    )

    # Parents must be flushed before children
    for rows in levels:
        db.add_all(rows)
        await db.flush()

    for system_name in SAMPLE_SYSTEMS:
        db.add(System(system_name=system_name))

    await db.commit()
    logger.info(f"[Seed] Created sample process tree ({len(SAMPLE_TREE)} categories)")


async def main():
    await init_db()
    async with AsyncSessionLocal() as db:
        await seed_sample_processes(db)
        await seed_defaults(db)


if __name__ == "__main__":
    asyncio.run(main())

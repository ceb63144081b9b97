"""Operational commands.

Usage:
    python -m scripts.manage setup-storage
    python -m scripts.manage promote-admin admin@example.com
    python -m scripts.manage seed --password 'Password123!'
"""

import argparse
import asyncio
import logging
import random
import sys
import uuid
from typing import Optional

from sqlalchemy import select

from core.integrations.auth_admin import AuthAdminError, HostedAuthAdmin
from core.storage.resumes import get_resume_storage
from database.engine import AsyncSessionLocal, close_db
from database.models import (
    Candidate,
    CandidateStage,
    EmploymentType,
    Job,
    JobStatus,
    Profile,
    ProfileRole,
)

logger = logging.getLogger(__name__)

DEMO_CUSTOMERS = [
    ("tech@startup.com", "Tech Solutions Inc"),
    ("hr@global.com", "Global Corp"),
    ("talent@creative.com", "Creative Agency"),
]

JOB_TEMPLATES = [
    ("Senior Frontend Engineer", "Remote", EmploymentType.FULL_TIME, "React, Next.js and TypeScript expert needed."),
    ("Product Manager", "New York", EmploymentType.FULL_TIME, "Experienced PM for scaling SaaS products."),
    ("UX Designer", "Hybrid", EmploymentType.CONTRACT, "Figma pro for mobile design projects."),
    ("Back-end Architect", "San Francisco", EmploymentType.FULL_TIME, "Scalable systems with Go and Node.js."),
]

CANDIDATE_NAMES = [
    "John Doe", "Jane Smith", "Michael Jordan", "Sarah Connor", "Alan Turing",
    "Grace Hopper", "Steve Wozniak", "Ada Lovelace", "Bill Gates", "Linus Torvalds",
]

JOBS_PER_CUSTOMER = 2
CANDIDATES_PER_JOB = 5


async def setup_storage() -> int:
    created = await get_resume_storage().ensure_bucket()
    print("Resumes bucket created" if created else "Resumes bucket already exists")
    return 0


async def promote_admin(email: str) -> int:
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(Profile).where(Profile.email == email))
        profile = result.scalar_one_or_none()
        if profile is None:
            print(f"No profile for {email}; the user must sign in once first", file=sys.stderr)
            return 1

        profile.role = ProfileRole.ADMIN
        await db.commit()

    print(f"{email} is now an admin")
    return 0


async def _find_profile_id(email: str) -> Optional[uuid.UUID]:
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(Profile.id).where(Profile.email == email))
        return result.scalar_one_or_none()


async def _ensure_customer(auth: HostedAuthAdmin, email: str, company: str, password: str) -> Optional[uuid.UUID]:
    try:
        user = await auth.create_user(email, password, role=ProfileRole.CUSTOMER.value)
        user_id = uuid.UUID(user["id"])
    except AuthAdminError as e:
        if "already" not in e.message.lower():
            logger.error(f"Could not create {email}: {e.message}")
            return None
        user_id = await _find_profile_id(email)
        if user_id is None:
            logger.error(f"{email} exists in auth but has no profile")
            return None

    async with AsyncSessionLocal() as db:
        profile = await db.get(Profile, user_id)
        if profile is None:
            db.add(Profile(id=user_id, email=email, role=ProfileRole.CUSTOMER, company_name=company))
        else:
            profile.company_name = company
        await db.commit()
    return user_id


async def seed(password: str) -> int:
    """Demo tenants, each with jobs and candidates spread over the pipeline."""
    auth = HostedAuthAdmin()
    stages = list(CandidateStage)

    for email, company in DEMO_CUSTOMERS:
        customer_id = await _ensure_customer(auth, email, company, password)
        if customer_id is None:
            continue

        async with AsyncSessionLocal() as db:
            for title, location, employment_type, description in random.sample(JOB_TEMPLATES, JOBS_PER_CUSTOMER):
                job = Job(
                    customer_id=customer_id,
                    title=title,
                    description=description,
                    location=location,
                    employment_type=employment_type,
                    status=JobStatus.ACTIVE,
                )
                db.add(job)
                await db.flush()

                for name in random.sample(CANDIDATE_NAMES, CANDIDATES_PER_JOB):
                    db.add(Candidate(
                        job_id=job.id,
                        customer_id=customer_id,
                        full_name=name,
                        email=f"{name.lower().replace(' ', '.')}@example.com",
                        stage=random.choice(stages),
                        years_of_experience=random.randint(0, 15),
                        skills=[],
                        rating=random.randint(1, 5),
                    ))
            await db.commit()

        print(f"Seeded {email}")
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Mini ATS management commands")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-storage", help="Create the resumes bucket if missing")

    promote_parser = subparsers.add_parser("promote-admin", help="Give an existing profile the admin role")
    promote_parser.add_argument("email")

    seed_parser = subparsers.add_parser("seed", help="Create demo customers, jobs and candidates")
    seed_parser.add_argument("--password", default="Password123!", help="Password for demo accounts")

    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    try:
        if args.command == "setup-storage":
            return await setup_storage()
        if args.command == "promote-admin":
            return await promote_admin(args.email)
        return await seed(args.password)
    finally:
        await close_db()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())

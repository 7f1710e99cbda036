"""Management CLI.

Usage:
    python -m legalhub.cli seed-reference   # Insert practice areas, specializations, languages
    python -m legalhub.cli list-steps       # Show the onboarding step catalog
"""

import sys

from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from legalhub.config import settings
from legalhub.models.reference import Language, PracticeArea, Specialization
from legalhub.services.onboarding.registry import build_default_registry

PRACTICE_AREAS = [
    "Corporate Law", "Criminal Law", "Family Law", "Real Estate Law",
    "Intellectual Property", "Litigation", "Employment Law",
    "Immigration Law", "Tax Law",
]
SPECIALIZATIONS = [
    "Mergers & Acquisitions", "Divorce & Custody", "DUI Defense", "Patent Law",
    "Contract Negotiation", "Personal Injury", "Startup Advisory", "Estate Planning",
]
LANGUAGES = [
    "English", "French", "Spanish", "Mandarin", "Arabic", "Yoruba", "Igbo", "Hausa",
]


def seed_names(session: Session, model, names: list[str]) -> int:
    """Insert any names not yet present; returns the number added."""
    existing = set(session.execute(select(model.name)).scalars())
    missing = [n for n in names if n not in existing]
    session.add_all(model(name=n) for n in missing)
    return len(missing)


def seed_reference():
    engine = create_engine(settings.database_url_sync)
    with Session(engine) as session:
        for model, names in (
            (PracticeArea, PRACTICE_AREAS),
            (Specialization, SPECIALIZATIONS),
            (Language, LANGUAGES),
        ):
            added = seed_names(session, model, names)
            print(f"  {model.__tablename__}: {added} added")
        session.commit()


def list_steps():
    registry = build_default_registry()
    for d in registry.list_steps():
        flags = "required" if d.required else ("skippable" if d.skippable else "optional")
        print(f"  {d.order}. {d.name:<20} {d.title} ({flags})")
    print(f"\n{len(registry)} step(s)")


if __name__ == "__main__":
    cmd = sys.argv[1] if len(sys.argv) > 1 else ""
    if cmd == "seed-reference":
        seed_reference()
    elif cmd == "list-steps":
        list_steps()
    else:
        print("Usage: python -m legalhub.cli [seed-reference|list-steps]")

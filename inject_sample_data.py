#!/usr/bin/env python3
"""
Script to inject demo categories and content directly into the database.
Uses the configured SQLAlchemy database (see SQLALCHEMY_DATABASE_URI / POSTGRES_*).

Usage: python3 inject_sample_data.py
"""

from category_admin.core.database import Base, SessionLocal, engine
from category_admin.schemas.content import ContentCreate
from category_admin.services.category_store import SqlCategoryStore
from category_admin.services.content_ledger import SqlContentLedger


# Demo categories with a few content items each
DEMO_CATEGORIES = [
    {
        "name": "Tutorials",
        "description": "Step-by-step guides",
        "content": ["Getting started", "Advanced setup"],
    },
    {
        "name": "Announcements",
        "description": "Release notes and news",
        "content": ["Version 1.0 released"],
    },
    {
        "name": "Media",
        "description": "Images and videos",
        "content": ["Launch trailer", "Team photo"],
    },
]


def inject_demo_data():
    """Create demo categories (skipping existing names) and their content."""
    print("🔌 Connecting to database...")
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    store = SqlCategoryStore(db)
    ledger = SqlContentLedger(db)

    try:
        added_count = 0

        for category_data in DEMO_CATEGORIES:
            if store.find_by_name(category_data["name"]):
                print(f"⊘ Category already exists: {category_data['name']}")
                continue

            category = store.create(
                {
                    "name": category_data["name"],
                    "description": category_data["description"],
                }
            )
            for title in category_data["content"]:
                ledger.add_content(category.id, ContentCreate(title=title))
            store.set_content_count(category.id, ledger.count_by_category(category.id))

            print(f"✓ Added category: {category.name} (position {category.position})")
            added_count += 1

        print()
        print(f"✓ Successfully added {added_count} demo categor{'y' if added_count == 1 else 'ies'}")

    except Exception as e:
        print(f"❌ Error: {e}")
        db.rollback()
        raise

    finally:
        db.close()
        print()
        print("✓ Database connection closed")


if __name__ == "__main__":
    print("=" * 60)
    print("  Category Demo Data Injection Script")
    print("=" * 60)
    print()

    inject_demo_data()

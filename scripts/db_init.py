#!/usr/bin/env python3
"""
Database initialization script
"""
import asyncio
import sys
from pathlib import Path

# Add the project root to the Python path
current_dir = Path(__file__).parent
root_dir = current_dir.parent
sys.path.insert(0, str(root_dir))

def get_database():
    from blog_api.config import settings
    from blog_api.db.session import Database

    return Database.from_settings(settings)

async def init_database() -> None:
    """Initialize database with tables"""
    from blog_api.config import settings

    print(f"🚀 Initializing database: {settings.database_url}")

    database = get_database()
    try:
        await database.create_all()
        print("✅ Database initialized successfully")
    except Exception as e:
        print(f"❌ Error initializing database: {e}")
        sys.exit(1)
    finally:
        await database.close()

async def create_initial_data() -> None:
    """Create a demo user and a short comment thread for development"""
    from blog_api.services.comment_service import CommentService
    from blog_api.services.identity_service import IdentityService

    print("👤 Creating initial data...")

    database = get_database()
    try:
        async with database.session_factory() as db:
            identity_service = IdentityService(db)
            comment_service = CommentService(db)

            author = await identity_service.upsert_user("github", {
                "id": "demo-github",
                "login": "demo",
                "name": "Demo Author",
                "avatar_url": "https://github.com/github.png"
            })
            reader = await identity_service.upsert_user("qq", {
                "openid": "demo-qq",
                "nickname": "Demo Reader",
                "figureurl_qq_2": "https://q1.qlogo.cn/g?b=qq&nk=123456&s=100"
            })
            print(f"✅ Upserted users: {author.name}, {reader.name}")

            if not await comment_service.list("welcome"):
                root = await comment_service.create("welcome", "Thanks for stopping by!", author)
                reply = await comment_service.create("welcome", "Great first post.", reader, parent_id=root.id)
                await comment_service.like(reply.id, author.id)
                print("✅ Created demo comment thread on 'welcome'")
    except Exception as e:
        print(f"⚠️  Error creating initial data: {e}")
    finally:
        await database.close()

async def check_database_connection() -> bool:
    """Check if database is accessible"""
    database = get_database()
    try:
        success = await database.ping()
    finally:
        await database.close()

    if success:
        print("✅ Database connection successful")
    else:
        print("❌ Database connection failed")
    return success

async def drop_database(confirm: bool = False) -> None:
    """Drop all database tables"""
    if not confirm:
        print("⚠️  WARNING: This will drop ALL tables and data!")
        print("   Use --confirm flag to proceed")
        return

    import blog_api.models  # noqa: F401

    database = get_database()
    try:
        await database.drop_all()
        print("✅ Database dropped successfully")
    except Exception as e:
        print(f"❌ Error dropping database: {e}")
    finally:
        await database.close()

def main() -> None:
    """Main entry point"""
    import argparse

    parser = argparse.ArgumentParser(description="Database Initialization")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Init command
    subparsers.add_parser("init", help="Initialize database")

    # Check command
    subparsers.add_parser("check", help="Check database connection")

    # Drop command
    drop_parser = subparsers.add_parser("drop", help="Drop database (DANGEROUS!)")
    drop_parser.add_argument("--confirm", action="store_true", help="Confirm drop")

    # Seed command
    subparsers.add_parser("seed", help="Seed demo data")

    # Reset command
    reset_parser = subparsers.add_parser("reset", help="Drop and reinitialize")
    reset_parser.add_argument("--confirm", action="store_true", help="Confirm reset")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "init":
            asyncio.run(init_database())

        elif args.command == "check":
            success = asyncio.run(check_database_connection())
            sys.exit(0 if success else 1)

        elif args.command == "drop":
            asyncio.run(drop_database(args.confirm))

        elif args.command == "seed":
            asyncio.run(create_initial_data())

        elif args.command == "reset":
            if not args.confirm:
                print("⚠️  WARNING: This will drop ALL tables and data!")
                print("   Use --confirm flag to proceed")
                return

            asyncio.run(drop_database(True))
            asyncio.run(init_database())

    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user")
        sys.exit(1)
    except Exception as e:
        print(f"❌ Error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()

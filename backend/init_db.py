#!/usr/bin/env python3
"""
Database initialization script for the GroupChat backend
Creates all tables and, with --seed, a pair of demo users sharing a chat
"""
import argparse
import asyncio

from groupchat.config import Settings
from groupchat.context import AppContext
from groupchat.database import build_engine, build_sessionmaker, init_models
from groupchat.services import membership_service, message_service, session_store


async def create_sample_data(sessionmaker, ctx: AppContext):
    """Create two users and a chat they both belong to"""
    async with sessionmaker() as session:
        if await session_store.list_users(session):
            print("✅ Users already exist, skipping sample data")
            return

        print("👤 Creating sample users...")
        alice = await session_store.register(session, ctx, "Alice", "Example", "alice-password")
        bob = await session_store.register(session, ctx, "Bob", "Example", "bob-password")
        print(f"✅ Created users {alice} (alice-password) and {bob} (bob-password)")

        chat_id = await membership_service.create_chat(session, ctx, alice, "General", "Sample chat")
        await membership_service.invite(session, ctx, alice, chat_id, bob)
        await message_service.post(session, ctx, alice, chat_id, "Welcome to GroupChat!")
        print(f"✅ Created chat {chat_id} with both users")


async def create_tables(seed: bool):
    """Create all database tables"""
    settings = Settings()
    print(f"🔌 Connecting to database: {settings.database_url}")
    engine = build_engine(settings.database_url, echo=settings.sql_echo)

    try:
        print("📝 Creating tables...")
        await init_models(engine)
        print("✅ All tables created successfully!")

        if seed:
            await create_sample_data(build_sessionmaker(engine), AppContext(settings=settings))
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create GroupChat tables")
    parser.add_argument("--seed", action="store_true", help="add demo users and a chat")
    args = parser.parse_args()

    print("🚀 Initializing GroupChat database...")
    asyncio.run(create_tables(args.seed))
    print("🎉 Database initialization complete!")

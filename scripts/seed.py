"""Seed the forum database with users, posts, comments and reactions.

All writes go through the service layer, so seeded data obeys the same
invariants (hashed passwords, unique emails, reaction counters) as data
created over HTTP.
"""
import argparse
import asyncio
import random
import time

from health_forum.database import Base, async_session, engine
from health_forum.dependencies import get_credentials
from health_forum.services import comment_service, post_service, user_service
from health_forum.services.post_service import ReactionKind
from health_forum.store import SqlAlchemyStore

TAGS = ["nutrition", "sleep", "fitness", "mental-health", "allergies", "diabetes",
        "cardio", "recovery", "pregnancy", "skincare", "medication", "running"]

SEED_PASSWORD = "forum-seed-password"


async def seed(small: bool = False):
    num_users = 5 if small else 25
    num_posts = 20 if small else 500
    max_comments_per_post = 2 if small else 6

    print(f"Seeding: {num_users} users, {num_posts} posts, up to {max_comments_per_post} comments/post")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    credentials = get_credentials()
    total_comments = 0

    async with async_session() as session:
        store = SqlAlchemyStore(session)

        users = []
        for i in range(num_users):
            user = await user_service.register(
                store, credentials, f"user_{i:04d}@example.com", SEED_PASSWORD, f"user_{i:04d}"
            )
            users.append(user)
        print(f"  Created {len(users)} users")

        for i in range(num_posts):
            author = random.choice(users)
            post = await post_service.create_post(
                store,
                author["id"],
                title=f"Post {i}: questions about {random.choice(TAGS)}",
                content=f"This is the body of forum post {i}. " * 10,
                tags=random.sample(TAGS, k=random.randint(0, 3)),
            )
            for _ in range(random.randint(0, max_comments_per_post)):
                await comment_service.create_comment(
                    store,
                    post["id"],
                    random.choice(users)["id"],
                    f"Reply from a forum member on post {i}.",
                )
                total_comments += 1
            for _ in range(random.randint(0, 3)):
                await post_service.update_reaction(
                    store, post["id"], random.choice(users)["id"], random.choice(list(ReactionKind))
                )

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Users: {num_users}")
    print(f"  Posts: {num_posts}")
    print(f"  Comments: {total_comments}")


def main():
    parser = argparse.ArgumentParser(description="Seed the forum database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (20 posts)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()

"""Database seeder: authors, posts and comment threads for manual testing."""
import asyncio
import argparse
import random
import time
from datetime import datetime, timezone, timedelta
from app.database import engine, async_session, Base
from app.models import Author, Post, Comment, Reply
from app.security import hash_password

TOPICS = ["python", "fastapi", "postgresql", "redis", "docker", "testing",
          "performance", "security", "async", "sqlalchemy"]

SEED_PASSWORD = "password"

async def seed(small: bool = False):
    num_authors = 5 if small else 25
    num_posts = 30 if small else 1000
    max_comments_per_post = 3 if small else 6
    max_replies_per_comment = 2 if small else 4

    print(f"Seeding: {num_authors} authors, {num_posts} posts")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        # One digest for everyone; bcrypt per author would dominate runtime.
        digest = hash_password(SEED_PASSWORD)
        authors = []
        for i in range(num_authors):
            author = Author(
                name=f"Author {i}",
                email=f"author_{i:03d}@example.com",
                password=digest,
            )
            session.add(author)
            authors.append(author)
        await session.flush()
        print(f"  Created {len(authors)} authors (password: {SEED_PASSWORD!r})")

        total_comments = 0
        total_replies = 0
        batch_size = 200
        for batch_start in range(0, num_posts, batch_size):
            batch_end = min(batch_start + batch_size, num_posts)
            for i in range(batch_start, batch_end):
                created = datetime.now(timezone.utc) - timedelta(minutes=random.randint(0, 60 * 24 * 90))
                post = Post(
                    author_id=random.choice(authors).id,
                    content=f"Post {i}: notes on {random.choice(TOPICS)}. " * 5,
                    created_at=created,
                    updated_at=created,
                )
                session.add(post)
                await session.flush()

                for _ in range(random.randint(0, max_comments_per_post)):
                    comment = Comment(
                        post_id=post.id,
                        author_id=random.choice(authors).id,
                        content=f"Thoughts on {random.choice(TOPICS)}?",
                    )
                    session.add(comment)
                    await session.flush()
                    total_comments += 1

                    for _ in range(random.randint(0, max_replies_per_comment)):
                        session.add(Reply(
                            comment_id=comment.id,
                            author_id=random.choice(authors).id,
                            content="Agreed.",
                        ))
                        total_replies += 1

            await session.flush()
            print(f"  Batch {batch_start}-{batch_end}: posts created")

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Authors: {num_authors}")
    print(f"  Posts: {num_posts}")
    print(f"  Comments: {total_comments}")
    print(f"  Replies: {total_replies}")


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (30 posts)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Create the definitions and conversation-log tables the tools query.
Run this once against the target PostgreSQL database.
"""
import asyncio
import os

import asyncpg
from dotenv import load_dotenv

load_dotenv()

PG_HOST = os.getenv("PGHOST", "localhost")
PG_PORT = int(os.getenv("PGPORT", "5432"))
PG_USER = os.getenv("PGUSER", "postgres")
PG_PASSWORD = os.getenv("PGPASSWORD", "")
PG_DATABASE = os.getenv("PGDATABASE", "postgres")


async def init_schema():
    """Create tables and indexes (idempotent)"""
    conn = await asyncpg.connect(
        host=PG_HOST,
        port=PG_PORT,
        user=PG_USER,
        password=PG_PASSWORD or None,
        database=PG_DATABASE,
    )

    queries = [
        """
        CREATE TABLE IF NOT EXISTS frc_sql_code (
            query_name text PRIMARY KEY,
            query_text text NOT NULL,
            query_source text,
            query_relations text[] NOT NULL DEFAULT '{}'
        )
        """,
        """
        CREATE INDEX IF NOT EXISTS frc_sql_code_text_fts_idx
        ON frc_sql_code USING gin (to_tsvector('english', query_text))
        """,
        """
        CREATE INDEX IF NOT EXISTS frc_sql_code_relations_idx
        ON frc_sql_code USING gin (query_relations)
        """,
        """
        CREATE TABLE IF NOT EXISTS sillytavern_logging (
            conversation_name text PRIMARY KEY,
            updated_at timestamptz NOT NULL DEFAULT CURRENT_TIMESTAMP,
            messages text
        )
        """,
    ]

    try:
        for i, query in enumerate(queries, 1):
            try:
                print(f"[{i}/{len(queries)}] Executing: {' '.join(query.split())[:60]}...")
                await conn.execute(query)
                print("  Success")
            except asyncpg.PostgresError as e:
                print(f"  Warning: {e}")
    finally:
        await conn.close()
    print("\nSchema initialization completed!")


if __name__ == "__main__":
    asyncio.run(init_schema())

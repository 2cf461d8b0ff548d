import asyncpg


async def drop_and_create_database(system_conn: asyncpg.Connection, db_name: str):
    """Drop and recreate the database with UTF-8 encoding"""
    try:
        # Terminate all connections to the target database
        await system_conn.execute(
            """
            SELECT pg_terminate_backend(pg_stat_activity.pid)
            FROM pg_stat_activity
            WHERE pg_stat_activity.datname = $1
            AND pid <> pg_backend_pid()
        """,
            db_name,
        )

        await system_conn.execute(f"DROP DATABASE IF EXISTS {db_name}")
        await system_conn.execute(
            f"""
            CREATE DATABASE {db_name}
            WITH TEMPLATE template0
            ENCODING 'UTF8'
        """
        )
    except Exception as e:
        raise RuntimeError(f"Failed to recreate database: {e}") from e


async def create_schema(conn: asyncpg.Connection):
    """Create tables and indexes for the database"""
    try:
        await conn.execute(
            """
            -- Groups own personas and link one or more accounts
            CREATE TABLE IF NOT EXISTS groups (
                group_id SERIAL PRIMARY KEY,
                owner_id BIGINT NOT NULL,
                tag VARCHAR(79),
                created_at TIMESTAMP NOT NULL DEFAULT NOW()
            );

            -- Discord accounts linked to a group
            CREATE TABLE IF NOT EXISTS accounts (
                account_id BIGINT PRIMARY KEY,
                group_id INTEGER NOT NULL REFERENCES groups(group_id) ON DELETE CASCADE
            );

            -- Personas a group can relay as
            CREATE TABLE IF NOT EXISTS personas (
                persona_id SERIAL PRIMARY KEY,
                group_id INTEGER NOT NULL REFERENCES groups(group_id) ON DELETE CASCADE,
                name VARCHAR(100) NOT NULL,
                display_name VARCHAR(100),
                avatar_url TEXT,
                keep_original BOOLEAN NOT NULL DEFAULT false,
                autoproxy_eligible BOOLEAN NOT NULL DEFAULT true,
                created_at TIMESTAMP NOT NULL DEFAULT NOW()
            );

            -- Proxy tags, several per persona allowed
            CREATE TABLE IF NOT EXISTS proxy_tags (
                id SERIAL PRIMARY KEY,
                persona_id INTEGER NOT NULL REFERENCES personas(persona_id) ON DELETE CASCADE,
                prefix TEXT,
                suffix TEXT
            );

            -- Per-guild display overrides for personas
            CREATE TABLE IF NOT EXISTS persona_guild_settings (
                persona_id INTEGER NOT NULL REFERENCES personas(persona_id) ON DELETE CASCADE,
                guild_id BIGINT NOT NULL,
                display_name VARCHAR(100),
                avatar_url TEXT,
                PRIMARY KEY (persona_id, guild_id)
            );

            -- Relayed messages, keyed by the relayed message id
            CREATE TABLE IF NOT EXISTS relayed_messages (
                relayed_message_id BIGINT PRIMARY KEY,
                original_message_id BIGINT NOT NULL,
                channel_id BIGINT NOT NULL,
                sending_account_id BIGINT NOT NULL,
                persona_id INTEGER NOT NULL,
                owner_id BIGINT NOT NULL,
                persona_name VARCHAR(100),
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            );
        """
        )

        await conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_relayed_messages_original
            ON relayed_messages(original_message_id);

            CREATE INDEX IF NOT EXISTS idx_accounts_group
            ON accounts(group_id);

            CREATE INDEX IF NOT EXISTS idx_personas_group
            ON personas(group_id);

            CREATE INDEX IF NOT EXISTS idx_proxy_tags_persona
            ON proxy_tags(persona_id);
        """
        )
    except Exception as e:
        raise RuntimeError(f"Failed to create schema: {e}") from e


async def truncate_all_tables(conn: asyncpg.Connection):
    """Remove all rows, used between tests"""
    await conn.execute(
        """
        TRUNCATE relayed_messages, proxy_tags, persona_guild_settings,
                 personas, accounts, groups
        RESTART IDENTITY CASCADE
    """
    )

"""Typed wrappers around the SQL statements the API runs.

Every method runs one statement against the shared ``databases.Database``
handle; inserts hand the stored row back through ``RETURNING``. Failures
surface as ``QueryError``; point lookups that find nothing raise
``NoRowsError``.
"""
from datetime import datetime
from typing import List, Optional

from databases import Database
from sqlalchemy import insert, select, update, exists, func

from db_sqlalchemy import database, pastes, pasties, users
from models_sql import Paste, Pasty, User


def _as_dict(row) -> dict:
    # indexing by key applies the column type processors (e.g. DateTime on sqlite)
    return {key: row[key] for key in row._mapping.keys()}


class QueryError(Exception):
    """Raised when a statement could not be executed."""


class NoRowsError(QueryError):
    """Raised when a lookup expected a row but found none."""


class Queries:
    def __init__(self, db: Database):
        self.db = db

    def transaction(self):
        return self.db.transaction()

    async def _fetch_one(self, q):
        try:
            return await self.db.fetch_one(q)
        except Exception as e:
            raise QueryError(str(e)) from e

    async def _fetch_all(self, q):
        try:
            return await self.db.fetch_all(q)
        except Exception as e:
            raise QueryError(str(e)) from e

    async def _fetch_val(self, q):
        try:
            return await self.db.fetch_val(q)
        except Exception as e:
            raise QueryError(str(e)) from e

    async def _execute(self, q):
        try:
            return await self.db.execute(q)
        except Exception as e:
            raise QueryError(str(e)) from e

    async def _insert_returning(self, table, model, **values):
        row = await self._fetch_one(insert(table).values(**values).returning(table))
        if not row:
            raise QueryError(f"insert into {table.name} returned no row")
        return model(**_as_dict(row))

    async def create_paste(self, id: str, created_at: datetime, title: str,
                           owner_id: Optional[str] = None, private: bool = False) -> Paste:
        return await self._insert_returning(
            pastes, Paste, id=id, created_at=created_at, title=title, owner_id=owner_id, private=private
        )

    async def create_pasty(self, id: str, paste_id: str, title: str, content: str, language: str = "Text") -> Pasty:
        return await self._insert_returning(
            pasties, Pasty, id=id, paste_id=paste_id, title=title, content=content, language=language
        )

    async def exists_paste(self, id: str) -> bool:
        return bool(await self._fetch_val(select(exists().where(pastes.c.id == id))))

    async def exists_pasty(self, id: str) -> bool:
        return bool(await self._fetch_val(select(exists().where(pasties.c.id == id))))

    async def exists_user_by_provider(self, provider_name: str, provider_id: str) -> bool:
        q = select(exists().where(users.c.provider_name == provider_name, users.c.provider_id == provider_id))
        return bool(await self._fetch_val(q))

    async def get_paste(self, id: str) -> Paste:
        row = await self._fetch_one(select(pastes).where(pastes.c.id == id).limit(1))
        if not row:
            raise NoRowsError(f"paste {id} not found")
        return Paste(**_as_dict(row))

    async def get_paste_count(self) -> int:
        return int(await self._fetch_val(select(func.count()).select_from(pastes)))

    async def get_paste_pasties(self, paste_id: str) -> List[Pasty]:
        rows = await self._fetch_all(select(pasties).where(pasties.c.paste_id == paste_id))
        return [Pasty(**_as_dict(r)) for r in rows]

    async def get_user_by_provider(self, provider_name: str, provider_id: str) -> User:
        q = select(users).where(users.c.provider_name == provider_name, users.c.provider_id == provider_id).limit(1)
        row = await self._fetch_one(q)
        if not row:
            raise NoRowsError(f"user {provider_name}/{provider_id} not found")
        return User(**_as_dict(row))

    async def get_user_by_id(self, id: str) -> User:
        row = await self._fetch_one(select(users).where(users.c.id == id).limit(1))
        if not row:
            raise NoRowsError(f"user {id} not found")
        return User(**_as_dict(row))

    async def exists_user(self, id: str) -> bool:
        return bool(await self._fetch_val(select(exists().where(users.c.id == id))))

    async def exists_user_by_username(self, username: str) -> bool:
        return bool(await self._fetch_val(select(exists().where(users.c.username == username))))

    async def create_user(self, id: str, created_at: datetime, username: str, avatar_url: str,
                          provider_name: str, provider_id: str) -> User:
        return await self._insert_returning(
            users,
            User,
            id=id,
            created_at=created_at,
            username=username,
            avatar_url=avatar_url,
            provider_name=provider_name,
            provider_id=provider_id,
        )

    async def set_user_avatar(self, id: str, avatar_url: str) -> None:
        await self._execute(update(users).where(users.c.id == id).values(avatar_url=avatar_url))


def get_queries() -> Queries:
    """FastAPI dependency handing the shared database handle to a handler."""
    return Queries(database)

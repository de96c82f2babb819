"""
Database session factory for the catalog database.

Repositories own their transactions (``async with session.begin()``), so this
module only builds the factory they open sessions from.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker


def make_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Build a session factory bound to ``engine``.

    Example:
        >>> SessionMaker = make_session_maker(get_catalog_engine())
        >>> async with SessionMaker() as session:
        ...     result = await session.execute(select(Product))
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=True,
        # Keep loaded rows usable after commit; repositories return pydantic copies
        expire_on_commit=False,
    )

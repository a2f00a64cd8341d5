from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from .config import settings
from .base import Base

def make_engine(url: str, **kw) -> AsyncEngine:
    if url.startswith("sqlite"):
        eng = create_async_engine(url, **kw)

        # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
        @event.listens_for(eng.sync_engine, "connect")
        def _fk_pragma(dbapi_conn, _record):
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.close()

        return eng
    return create_async_engine(url, pool_pre_ping=True, **kw)

engine = make_engine(settings.DATABASE_URL)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

async def get_session():
    async with SessionLocal() as session:
        yield session

async def init_models():
    ## In dev-only "create_all" mode create tables directly; otherwise, migrations own the schema.
    if settings.DB_MANAGE.lower() == "create_all":
        # register every mapped table on Base.metadata
        import app.modules.assets.models  # noqa: F401
        import app.modules.labels.models  # noqa: F401
        import app.modules.segments.models  # noqa: F401
        import app.modules.regions.models  # noqa: F401
        import app.modules.audit.models  # noqa: F401
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from libs.common.config import get_settings

settings = get_settings()


def build_engine(database_url: str, **kwargs):
    """
    Create the async engine; pool sizing only applies to server databases.
    """
    options = {"echo": False, "future": True, **kwargs}
    if not database_url.startswith("sqlite"):
        options.update(
            pool_pre_ping=True,  # Test connections before using
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
        )
    return create_async_engine(database_url, **options)


# Create async engine
engine = build_engine(settings.DATABASE_URL)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

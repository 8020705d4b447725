from sqlalchemy import MetaData, orm


class Base(orm.DeclarativeBase):
    """Base class for all database models"""

    pass


def get_base_metadata() -> MetaData:
    """Get the Base metadata with every model registered"""

    # Import models to register them with Base.metadata

    from availability.media import (
        Media,  # pyright: ignore[reportUnusedImport]
        MediaRequest,  # pyright: ignore[reportUnusedImport]
        Season,  # pyright: ignore[reportUnusedImport]
        SeasonRequest,  # pyright: ignore[reportUnusedImport]
    )

    return Base.metadata

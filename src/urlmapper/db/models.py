from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table


def mapping_table(name: str, metadata: MetaData) -> Table:
    """Mapping records table; the name comes from STORE_NAME."""
    return Table(
        name,
        metadata,
        Column("short_url", String(32), primary_key=True),
        Column("long_url", String, nullable=False),
        Column("created_at", DateTime(timezone=True), nullable=False),
        Column("access_count", Integer, nullable=False, default=0),
    )

"""SQLAlchemy Core definition of the shared configuration table.

One table holds every entity kind plus the default-policy control
record. ``entity_type`` is NULL for the control record, so it never
shows up in a per-type listing.
"""

from __future__ import annotations

from sqlalchemy import Column, Index, MetaData, Table, Text

metadata = MetaData()

config_items = Table(
    "config_items",
    metadata,
    Column("pk", Text, primary_key=True),
    Column("entity_type", Text),
    Column("sort_key", Text),
    Column("origin_ref", Text),  # mappings only
    Column("policy_ref", Text),  # mappings only
    Column("entity_id", Text),  # control record only
    Column("data", Text),  # JSON object
    Column("created_at", Text),
    Column("updated_at", Text),
)

Index(
    "ix_config_items_by_type",
    config_items.c.entity_type,
    config_items.c.sort_key,
    config_items.c.pk,
)
Index("ix_config_items_by_origin", config_items.c.origin_ref)
Index("ix_config_items_by_policy", config_items.c.policy_ref)

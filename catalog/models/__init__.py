"""Database models package."""

from catalog.models.asset import Asset, AssetFile
from catalog.models.audit_log import AuditLogEntry
from catalog.models.intake import IntakeBatch, IntakeFile, IntakeItem, IntakeStatus

__all__ = [
    "Asset",
    "AssetFile",
    "AuditLogEntry",
    "IntakeBatch",
    "IntakeFile",
    "IntakeItem",
    "IntakeStatus",
]

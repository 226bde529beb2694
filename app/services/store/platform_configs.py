"""Per-user platform configuration with safe defaults.

A platform the user never configured is synthesized on read as disabled,
sandboxed and keyless, so callers only ever see "disabled", never
"missing".
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import StoreError
from app.core.logging import get_logger
from app.models.platform_config import PlatformConfigRecord
from app.schemas.platform import (
    PlatformConfig,
    PlatformConfigSave,
    PlatformConfigUpdate,
    PlatformCredentials,
    PlatformIntegration,
    PlatformSettings,
    PlatformStatus,
)
from app.services.registry import PlatformRegistry

logger = get_logger(__name__)

# An explicit null for these fields means "leave unchanged"
_NON_NULLABLE = frozenset({"api_key", "secret_key", "enabled", "sandbox", "settings"})


class PlatformConfigStore:
    """Repository for ``PlatformConfigRecord`` rows."""

    def __init__(self, db: Session, registry: PlatformRegistry) -> None:
        self.db = db
        self.registry = registry

    # ── Reads ────────────────────────────────────────────────────────

    def default_config(self, platform_id: str) -> PlatformConfig:
        platform = self.registry.require(platform_id)
        return PlatformConfig(
            id=platform.id,
            name=platform.name,
            api_key="",
            enabled=False,
            sandbox=True,
        )

    def get_all_configs(self, user_id: str) -> list[PlatformConfig]:
        """One config per catalog platform, in catalog order."""
        with self._storage_errors("list platform configs"):
            rows = self.db.scalars(
                select(PlatformConfigRecord).where(PlatformConfigRecord.user_id == user_id)
            ).all()
        by_platform = {row.platform_id: row for row in rows}

        unknown = set(by_platform) - set(self.registry.ids())
        if unknown:
            logger.warning(
                "User %s has configs for unknown platforms: %s",
                user_id,
                sorted(unknown),
            )

        configs: list[PlatformConfig] = []
        for platform_id in self.registry.ids():
            row = by_platform.get(platform_id)
            configs.append(
                self._to_config(row) if row is not None else self.default_config(platform_id)
            )
        return configs

    def get_config(self, user_id: str, platform_id: str) -> PlatformConfig:
        self.registry.require(platform_id)
        row = self._get_row(user_id, platform_id)
        return self._to_config(row) if row is not None else self.default_config(platform_id)

    def get_integration(self, user_id: str, platform_id: str) -> PlatformIntegration:
        config = self.get_config(user_id, platform_id)
        return PlatformIntegration(
            platform=self.registry.require(platform_id),
            config=PlatformCredentials(
                api_key=config.api_key,
                secret_key=config.secret_key,
                client_id=config.client_id,
                client_secret=config.client_secret,
                webhook_url=config.webhook_url,
                webhook_secret=config.webhook_secret,
            ),
            enabled=config.enabled,
            sandbox=config.sandbox,
            settings=config.settings,
            status=config.status,
        )

    # ── Writes ───────────────────────────────────────────────────────

    def update_config(
        self,
        user_id: str,
        platform_id: str,
        partial: Union[PlatformConfigUpdate, dict[str, Any]],
    ) -> PlatformConfig:
        """Apply only the fields present in ``partial`` (e.g. the enable toggle)."""
        if not isinstance(partial, PlatformConfigUpdate):
            partial = PlatformConfigUpdate.model_validate(partial)
        changes = {
            key: value
            for key, value in partial.model_dump(exclude_unset=True).items()
            if value is not None or key not in _NON_NULLABLE
        }
        if "settings" in changes:
            changes["settings"] = PlatformSettings.model_validate(
                changes["settings"]
            ).model_dump(mode="json")

        with self._storage_errors("update platform config"):
            row = self._get_or_create_row(user_id, platform_id)
            for key, value in changes.items():
                setattr(row, key, value)
            self.db.commit()
            self.db.refresh(row)

        logger.info(
            "Updated %s config for user %s: fields=%s",
            platform_id,
            user_id,
            sorted(changes),
        )
        return self._to_config(row)

    def save_config(
        self, user_id: str, platform_id: str, config: PlatformConfigSave
    ) -> PlatformConfig:
        """Replace credentials, flags and settings with a full form submission."""
        values = config.model_dump(mode="json")
        with self._storage_errors("save platform config"):
            row = self._get_or_create_row(user_id, platform_id)
            for key, value in values.items():
                setattr(row, key, value)
            self.db.commit()
            self.db.refresh(row)

        logger.info("Saved %s config for user %s", platform_id, user_id)
        return self._to_config(row)

    def record_health(
        self,
        user_id: str,
        platform_id: str,
        ok: bool,
        latency_ms: float,
    ) -> PlatformConfig:
        """Update the status snapshot after talking to the vendor."""
        with self._storage_errors("record platform health"):
            row = self._get_or_create_row(user_id, platform_id)
            status = PlatformStatus.model_validate(row.status or {})
            status.is_active = ok
            status.last_checked = datetime.utcnow()
            status.latency = latency_ms
            if not ok:
                status.errors += 1
            row.status = status.model_dump(mode="json")
            self.db.commit()
            self.db.refresh(row)
        return self._to_config(row)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _get_row(self, user_id: str, platform_id: str) -> Optional[PlatformConfigRecord]:
        with self._storage_errors("get platform config"):
            return self.db.scalars(
                select(PlatformConfigRecord).where(
                    PlatformConfigRecord.user_id == user_id,
                    PlatformConfigRecord.platform_id == platform_id,
                )
            ).first()

    def _get_or_create_row(self, user_id: str, platform_id: str) -> PlatformConfigRecord:
        platform = self.registry.require(platform_id)
        row = self._get_row(user_id, platform_id)
        if row is None:
            row = PlatformConfigRecord(
                user_id=user_id,
                platform_id=platform_id,
                name=platform.name,
                api_key="",
                secret_key="",
                enabled=False,
                sandbox=True,
                settings=PlatformSettings().model_dump(mode="json"),
                status=PlatformStatus().model_dump(mode="json"),
            )
            self.db.add(row)
        return row

    @staticmethod
    def _to_config(row: PlatformConfigRecord) -> PlatformConfig:
        return PlatformConfig(
            id=row.platform_id,
            name=row.name,
            api_key=row.api_key or "",
            secret_key=row.secret_key or "",
            client_id=row.client_id,
            client_secret=row.client_secret,
            webhook_url=row.webhook_url,
            webhook_secret=row.webhook_secret,
            enabled=bool(row.enabled),
            sandbox=True if row.sandbox is None else bool(row.sandbox),
            settings=PlatformSettings.model_validate(row.settings or {}),
            status=PlatformStatus.model_validate(row.status or {}),
        )

    @contextmanager
    def _storage_errors(self, context: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Database error (%s): %s", context, exc)
            raise StoreError(f"{context}: {exc}") from exc

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .repositories import StatsRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentitySyncPolicy:
    # a name collision claims the record for the incoming stable id
    overwrite_id_on_name_collision: bool = True
    # a known stable id seen under a new name renames its record
    rename_on_id_match: bool = True


@dataclass(frozen=True)
class IdentitySyncResult:
    display_name: str
    stable_id: str
    upserted: bool
    renamed_from: Optional[str] = None
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


async def reconcile_identity(
    repo: StatsRepository,
    display_name: str,
    stable_id: str,
    policy: IdentitySyncPolicy,
) -> IdentitySyncResult:
    """
    Nickname-first identity sync.

    Step one makes sure a record exists under ``display_name``. Step two looks
    the stable id up and moves its record to ``display_name`` when the stored
    name differs. The steps are independent: a failed step is logged and
    reported in the result, the other one still runs.
    """
    errors: list[str] = []
    upserted = False
    renamed_from: Optional[str] = None

    try:
        await repo.upsert_identity(
            display_name,
            stable_id,
            overwrite_id_on_name_collision=policy.overwrite_id_on_name_collision,
        )
        upserted = True
    except Exception as exc:
        logger.error("Identity upsert failed for %s (%s): %s", display_name, stable_id, exc)
        errors.append(f"upsert: {exc}")

    if policy.rename_on_id_match:
        try:
            current = await repo.find_by_stable_id(stable_id)
            if current is not None and current.display_name != display_name:
                await repo.rename_by_stable_id(stable_id, display_name)
                renamed_from = current.display_name
                logger.info("Renamed %s -> %s for stable id %s", renamed_from, display_name, stable_id)
        except Exception as exc:
            logger.error("Identity rename failed for %s (%s): %s", display_name, stable_id, exc)
            errors.append(f"rename: {exc}")

    return IdentitySyncResult(
        display_name=display_name,
        stable_id=stable_id,
        upserted=upserted,
        renamed_from=renamed_from,
        errors=tuple(errors),
    )

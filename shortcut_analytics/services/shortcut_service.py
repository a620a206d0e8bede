"""
Shortcut Registry Service

This service owns the shortcuts table: creating, looking up, listing, updating
and deleting shortcuts. Visit ingestion and analytics use it to decide whether
a shortcut exists before touching visit events.

Design Decisions:
- Updates take an explicit set of fields (an update mask); fields not named
  are left untouched
- Renames keep the visit history attached (ON UPDATE CASCADE on the events FK)
- View counts are derived from visit_events, never stored on the shortcut
"""

import logging
from typing import Any, Iterable, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shortcut_analytics.core.exceptions import (
    DatabaseError,
    InvalidShortcutError,
    ShortcutAlreadyExistsError,
    ShortcutNotFoundError,
    StorageUnavailableError,
)
from shortcut_analytics.core.validators import is_valid_link, normalize_tags, sanitize_shortcut_name
from shortcut_analytics.db.models import Shortcut, VisitEvent

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"name", "link", "title", "description", "tags"})


def _validated_name(name: str) -> str:
    sanitized = sanitize_shortcut_name(name)
    if not sanitized:
        raise InvalidShortcutError(
            name,
            reason="Invalid shortcut name. Use 1-64 letters, digits, '-' or '_'"
        )
    return sanitized


def _validated_link(link: str) -> str:
    if not is_valid_link(link):
        raise InvalidShortcutError(
            link,
            reason="Invalid link. Link must use http:// or https:// and have a host"
        )
    return link


def _validated_tags(tags: Optional[Iterable[str]]) -> list[str]:
    try:
        return normalize_tags(tags)
    except ValueError as e:
        raise InvalidShortcutError(str(tags), reason=str(e)) from e


class ShortcutService:
    """
    CRUD operations for shortcuts.

    Access control is not performed here; callers are expected to have
    verified ownership already.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_shortcut(
        self,
        name: str,
        link: str,
        title: str = "",
        description: str = "",
        tags: Optional[list[str]] = None
    ) -> Shortcut:
        """
        Create a new shortcut.

        Raises:
            InvalidShortcutError: If the name, link or tags are invalid
            ShortcutAlreadyExistsError: If the name is taken
            DatabaseError: If the database operation fails
        """
        sanitized = _validated_name(name)
        _validated_link(link)
        cleaned_tags = _validated_tags(tags)

        if await self.get_shortcut(sanitized):
            raise ShortcutAlreadyExistsError(sanitized)

        shortcut = Shortcut(
            name=sanitized,
            link=link,
            title=title or "",
            description=description or "",
            tags=cleaned_tags
        )

        try:
            self.session.add(shortcut)
            await self.session.flush()
            await self.session.commit()
            await self.session.refresh(shortcut)
        except IntegrityError as e:
            # Lost a race with a concurrent create of the same name
            await self.session.rollback()
            raise ShortcutAlreadyExistsError(sanitized) from e
        except DBAPIError as e:
            await self.session.rollback()
            raise StorageUnavailableError("create_shortcut", original_error=e) from e
        except Exception as e:
            await self.session.rollback()
            raise DatabaseError(f"Failed to create shortcut: {str(e)}", original_error=e) from e

        logger.info(f"Shortcut created: name={shortcut.name} id={shortcut.id}")
        return shortcut

    async def get_shortcut(self, name: str) -> Optional[Shortcut]:
        """
        Look up a shortcut by name.

        Returns:
            Shortcut if found, None otherwise

        Raises:
            StorageUnavailableError: If the database cannot be queried
        """
        statement = select(Shortcut).where(Shortcut.name == name)
        try:
            result = await self.session.execute(statement)
        except DBAPIError as e:
            raise StorageUnavailableError("get_shortcut", original_error=e) from e
        return result.scalar_one_or_none()

    async def require_shortcut(self, name: str) -> Shortcut:
        """Like get_shortcut, but raises ShortcutNotFoundError when missing."""
        shortcut = await self.get_shortcut(name)
        if shortcut is None:
            raise ShortcutNotFoundError(name)
        return shortcut

    async def list_shortcuts(self) -> list[Shortcut]:
        """Return all shortcuts, oldest first."""
        statement = select(Shortcut).order_by(Shortcut.created_at, Shortcut.id)
        try:
            result = await self.session.execute(statement)
        except DBAPIError as e:
            raise StorageUnavailableError("list_shortcuts", original_error=e) from e
        return list(result.scalars().all())

    async def get_view_counts(self, names: Iterable[str]) -> dict[str, int]:
        """
        Count recorded visits per shortcut name.

        Names without visits map to 0.
        """
        names = list(names)
        if not names:
            return {}
        statement = (
            select(VisitEvent.shortcut_name, func.count(VisitEvent.id))
            .where(VisitEvent.shortcut_name.in_(names))
            .group_by(VisitEvent.shortcut_name)
        )
        try:
            result = await self.session.execute(statement)
        except DBAPIError as e:
            raise StorageUnavailableError("get_view_counts", original_error=e) from e
        counts = dict.fromkeys(names, 0)
        counts.update({name: count for name, count in result.all()})
        return counts

    async def get_view_count(self, name: str) -> int:
        return (await self.get_view_counts([name]))[name]

    async def update_shortcut(self, name: str, changes: dict[str, Any]) -> Shortcut:
        """
        Update the named fields of a shortcut.

        Args:
            name: Current name of the shortcut
            changes: Field name -> new value; only these fields are written

        Raises:
            InvalidShortcutError: If no fields, an unknown field or an invalid value is given
            ShortcutNotFoundError: If the shortcut does not exist
            ShortcutAlreadyExistsError: If renaming to a taken name
        """
        if not changes:
            raise InvalidShortcutError(name, reason="No fields to update")
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise InvalidShortcutError(
                ", ".join(sorted(unknown)),
                reason=f"Fields cannot be updated: {', '.join(sorted(unknown))}"
            )

        values: dict[str, Any] = {}
        if "name" in changes:
            values["name"] = _validated_name(changes["name"])
        if "link" in changes:
            values["link"] = _validated_link(changes["link"])
        if "title" in changes:
            values["title"] = changes["title"] or ""
        if "description" in changes:
            values["description"] = changes["description"] or ""
        if "tags" in changes:
            values["tags"] = _validated_tags(changes["tags"])

        shortcut = await self.require_shortcut(name)
        old_name = shortcut.name
        target_name = values.get("name", old_name)
        if target_name != old_name and await self.get_shortcut(target_name):
            raise ShortcutAlreadyExistsError(target_name)

        for field_name, value in values.items():
            setattr(shortcut, field_name, value)

        try:
            self.session.add(shortcut)
            await self.session.flush()
            if target_name != old_name:
                # No-op when the FK cascade already moved them
                await self.session.execute(
                    update(VisitEvent)
                    .where(VisitEvent.shortcut_name == old_name)
                    .values(shortcut_name=target_name)
                )
            await self.session.commit()
            await self.session.refresh(shortcut)
        except IntegrityError as e:
            await self.session.rollback()
            raise ShortcutAlreadyExistsError(target_name) from e
        except DBAPIError as e:
            await self.session.rollback()
            raise StorageUnavailableError("update_shortcut", original_error=e) from e

        logger.info(f"Shortcut updated: name={old_name} fields={','.join(sorted(changes))}")
        return shortcut

    async def delete_shortcut(self, name: str) -> None:
        """
        Delete a shortcut together with its visit events.

        Raises:
            ShortcutNotFoundError: If the shortcut does not exist
        """
        shortcut = await self.require_shortcut(name)

        try:
            await self.session.execute(
                delete(VisitEvent).where(VisitEvent.shortcut_name == shortcut.name)
            )
            await self.session.delete(shortcut)
            await self.session.commit()
        except DBAPIError as e:
            await self.session.rollback()
            raise StorageUnavailableError("delete_shortcut", original_error=e) from e

        logger.info(f"Shortcut deleted: name={name}")

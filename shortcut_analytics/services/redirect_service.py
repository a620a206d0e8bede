"""
Redirect Service

This service resolves a shortcut name to the link it redirects to.
Separated from the registry so the redirect path only needs a read.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shortcut_analytics.services.shortcut_service import ShortcutService


class RedirectService:
    """Service for handling shortcut redirections."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.shortcut_service = ShortcutService(session)

    async def get_redirect_url(self, shortcut_name: str) -> Optional[str]:
        """
        Get the target link for a shortcut, or None if it does not exist.
        """
        shortcut = await self.shortcut_service.get_shortcut(shortcut_name)
        if shortcut:
            return shortcut.link
        return None

"""
Team chat over the team document's ``messages`` list.

Clients poll ``list_messages``; there is no push transport.
"""

from __future__ import annotations

import logging

from ..core.errors import InvalidRequestError, NotFoundError
from ..core.models import ChatMessage, Team
from ..store import TEAMS
from ..store.base import DocumentStore

logger = logging.getLogger(__name__)

AI_BOT_ID = "ai_bot"


class TeamChat:
    def __init__(self, store: DocumentStore):
        self._store = store

    async def _team(self, team_id: str) -> Team:
        doc = await self._store.get(TEAMS, team_id)
        if doc is None:
            raise NotFoundError("Team not found")
        return Team.from_doc(doc)

    async def list_messages(self, team_id: str) -> list[ChatMessage]:
        """Messages oldest first."""
        team = await self._team(team_id)
        return sorted(team.messages, key=lambda m: m.timestamp)

    async def post_message(self, team_id: str, user_id: str, text: str) -> ChatMessage:
        if not user_id or not text or not text.strip():
            raise InvalidRequestError("user_id and message are required")
        team = await self._team(team_id)
        if user_id not in team.members:
            raise InvalidRequestError("You are not a member of this team")

        message = ChatMessage(sender_id=user_id, text=text)
        updated = await self._store.push(TEAMS, team_id, "messages", message.to_doc())
        if updated is None:
            raise NotFoundError("Team not found")
        logger.info("Chat message | team=%s | sender=%s | len=%d", team_id, user_id, len(text))
        return message

    async def post_advice(self, team_id: str, text: str) -> ChatMessage:
        """Append a mentor reply to the team's chat as the AI bot."""
        message = ChatMessage(sender_id=AI_BOT_ID, text=text)
        updated = await self._store.push(TEAMS, team_id, "messages", message.to_doc())
        if updated is None:
            raise NotFoundError("Team not found")
        logger.info("Chat advice | team=%s | len=%d", team_id, len(text))
        return message

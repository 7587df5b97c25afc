from .chat import AI_BOT_ID, TeamChat
from .controller import SYSTEM_BOT_ID, TeamAssemblyController

__all__ = ["TeamAssemblyController", "TeamChat", "SYSTEM_BOT_ID", "AI_BOT_ID"]

"""
Runtime wiring.

Builds every long-lived collaborator once, after the storage backend has been
decided, and hands them out explicitly. Nothing below this module reaches for
process-global state.
"""
from dataclasses import dataclass
from typing import Optional
import logging

from sqlalchemy.engine import Engine

from bizpilot.agents.main_agent import ConversationOrchestrator
from bizpilot.agents.provider_chain import ProviderChain, build_provider_chain
from bizpilot.agents.subagents.tool_router import ToolRouter
from bizpilot.config import Settings
from bizpilot.db.config import BACKEND_DATABASE, select_storage_backend
from bizpilot.db.init import init_db
from bizpilot.mcp.server import MCPServer
from bizpilot.mcp.tools.create_task import register_create_task_tool
from bizpilot.mcp.tools.web_search import register_web_search_tool
from bizpilot.services.conversation_service import ConversationService
from bizpilot.services.conversation_store import ConversationStore, MemoryConversationStore
from bizpilot.services.task_service import TaskService
from bizpilot.services.user_service import MemoryUserStore, UserService, UserStore

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    settings: Settings
    backend: str
    engine: Optional[Engine]
    conversation_store: ConversationStore
    user_store: UserStore
    task_service: Optional[TaskService]
    mcp_server: MCPServer
    tool_router: ToolRouter
    provider_chain: ProviderChain
    orchestrator: ConversationOrchestrator


def build_runtime(settings: Settings) -> Runtime:
    """
    Decide the storage backend and construct all collaborators.

    Raises:
        RuntimeError: STORAGE_BACKEND=database and the database is unusable
    """
    backend, engine = select_storage_backend(settings)

    if backend == BACKEND_DATABASE:
        init_db(engine)
        conversation_store: ConversationStore = ConversationService(engine)
        user_store: UserStore = UserService(engine)
        task_service: Optional[TaskService] = TaskService(engine)
    else:
        conversation_store = MemoryConversationStore()
        user_store = MemoryUserStore()
        task_service = None
    logger.info(f"Storage backend: {backend}")

    mcp_server = MCPServer()
    register_web_search_tool(mcp_server, settings.tavily_api_key)
    register_create_task_tool(mcp_server, task_service)

    tool_router = ToolRouter(mcp_server)
    provider_chain = build_provider_chain(settings, mcp_server)
    orchestrator = ConversationOrchestrator(
        conversation_store,
        tool_router,
        provider_chain,
        max_citations=settings.max_citations
    )

    return Runtime(
        settings=settings,
        backend=backend,
        engine=engine,
        conversation_store=conversation_store,
        user_store=user_store,
        task_service=task_service,
        mcp_server=mcp_server,
        tool_router=tool_router,
        provider_chain=provider_chain,
        orchestrator=orchestrator,
    )

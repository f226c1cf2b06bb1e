"""FastAPI dependencies resolving collaborators from app state."""
from fastapi import Request

from bizpilot.agents.main_agent import ConversationOrchestrator
from bizpilot.errors import PersistenceError
from bizpilot.runtime import Runtime, build_runtime
from bizpilot.services.conversation_store import ConversationStore
from bizpilot.services.task_service import TaskService
from bizpilot.services.user_service import UserStore


def get_runtime(request: Request) -> Runtime:
    """Runtime from app state, built on first use when startup events did not run."""
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        runtime = build_runtime(request.app.state.settings)
        request.app.state.runtime = runtime
    return runtime


def get_orchestrator(request: Request) -> ConversationOrchestrator:
    return get_runtime(request).orchestrator


def get_conversation_store(request: Request) -> ConversationStore:
    return get_runtime(request).conversation_store


def get_user_store(request: Request) -> UserStore:
    return get_runtime(request).user_store


def get_task_service(request: Request) -> TaskService:
    """Tasks live only in the durable backend."""
    task_service = get_runtime(request).task_service
    if task_service is None:
        raise PersistenceError("Task storage requires a database connection")
    return task_service

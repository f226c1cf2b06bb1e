"""Task API routes (durable backend only)."""
from fastapi import APIRouter, Depends, status

from bizpilot.dependencies import get_task_service
from bizpilot.middleware.auth import CurrentUser, get_current_user
from bizpilot.schemas.task import TaskCreate, TaskEnvelope, TaskListResponse, TaskResponse
from bizpilot.services.task_service import TaskService

router = APIRouter(tags=["tasks"])


@router.post("/tasks", response_model=TaskEnvelope, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service)
):
    """Create a task for the authenticated user."""
    task = service.create_task(current_user.user_id, task_data.title.strip(), task_data.description)
    return TaskEnvelope(task=TaskResponse.model_validate(task))


@router.get("/tasks", response_model=TaskListResponse)
async def list_tasks(
    current_user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service)
):
    """List the authenticated user's tasks, newest first."""
    tasks = service.list_tasks(current_user.user_id)
    return TaskListResponse(tasks=[TaskResponse.model_validate(t) for t in tasks])

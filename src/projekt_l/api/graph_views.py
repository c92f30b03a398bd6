"""Saved skill-graph view API endpoints.

Views only persist viewport, direction and node positions. Laying out the
graph is left to the client.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_user
from ..db.database import get_db
from ..db.models import GraphView, SkillDomain, User
from ..utils.logging_config import get_logger
from .middleware import bad_request, not_found
from .ownership import get_owned
from .schemas import (
    GraphViewCreate,
    GraphViewResponse,
    GraphViewUpdate,
    ProblemDetails,
    SaveViewStateRequest,
)

router = APIRouter(prefix="/v1/graph-views", tags=["graph-views"])
logger = get_logger("api")

OWNERSHIP_RESPONSES = {
    403: {"model": ProblemDetails, "description": "View belongs to another user"},
    404: {"model": ProblemDetails, "description": "View not found"},
}


def _clear_default(db: Session, user: User, domain_id: UUID, keep_id: Optional[UUID] = None) -> None:
    """Unset is_default on every other view of the domain."""
    query = db.query(GraphView).filter(
        GraphView.user_id == user.id,
        GraphView.domain_id == domain_id,
        GraphView.is_default.is_(True),
    )
    if keep_id is not None:
        query = query.filter(GraphView.id != keep_id)
    for view in query.all():
        view.is_default = False


def _positions(node_positions) -> dict:
    return {key: pos.model_dump() for key, pos in node_positions.items()}


def _default_view(db: Session, user: User, domain_id: UUID) -> Optional[GraphView]:
    return (
        db.query(GraphView)
        .filter(
            GraphView.user_id == user.id,
            GraphView.domain_id == domain_id,
            GraphView.is_default.is_(True),
        )
        .first()
    )


@router.get("", response_model=List[GraphViewResponse])
def list_views(
    domain_id: UUID = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[GraphViewResponse]:
    """Views of a domain, default first, then by name."""
    get_owned(db, SkillDomain, domain_id, current_user, "Domain")
    views = (
        db.query(GraphView)
        .filter(GraphView.user_id == current_user.id, GraphView.domain_id == domain_id)
        .order_by(GraphView.is_default.desc(), GraphView.name)
        .all()
    )
    return [GraphViewResponse.model_validate(v) for v in views]


@router.get(
    "/default",
    response_model=GraphViewResponse,
    responses={404: {"model": ProblemDetails, "description": "Domain has no default view"}},
)
def get_default_view(
    domain_id: UUID = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> GraphViewResponse:
    get_owned(db, SkillDomain, domain_id, current_user, "Domain")
    view = _default_view(db, current_user, domain_id)
    if view is None:
        raise not_found("Default view")
    return GraphViewResponse.model_validate(view)


@router.put(
    "/save-state",
    response_model=GraphViewResponse,
    responses={
        200: {"description": "View state saved"},
        400: {"model": ProblemDetails, "description": "View belongs to another domain"},
        **OWNERSHIP_RESPONSES,
    },
)
def save_view_state(
    data: SaveViewStateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> GraphViewResponse:
    """
    Persist the current viewport and node positions.

    Updates the given view, or the domain's default view. When the domain has
    no views yet a default view named "Standard" is created.
    """
    get_owned(db, SkillDomain, data.domain_id, current_user, "Domain")

    if data.view_id is not None:
        view = get_owned(db, GraphView, data.view_id, current_user, "View")
        if view.domain_id != data.domain_id:
            raise bad_request("View belongs to another domain")
    else:
        view = _default_view(db, current_user, data.domain_id)

    if view is None:
        view = GraphView(
            user_id=current_user.id,
            domain_id=data.domain_id,
            name="Standard",
            is_default=True,
        )
        db.add(view)

    view.viewport_x = data.viewport_x
    view.viewport_y = data.viewport_y
    view.viewport_zoom = data.viewport_zoom
    if data.direction is not None:
        view.direction = data.direction
    view.node_positions = _positions(data.node_positions)
    db.commit()
    db.refresh(view)

    logger.info(f"Saved graph view state {view.id}")
    return GraphViewResponse.model_validate(view)


@router.post(
    "",
    response_model=GraphViewResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "View created"},
        403: {"model": ProblemDetails, "description": "Domain belongs to another user"},
        404: {"model": ProblemDetails, "description": "Domain not found"},
    },
)
def create_view(
    data: GraphViewCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> GraphViewResponse:
    get_owned(db, SkillDomain, data.domain_id, current_user, "Domain")
    if data.is_default:
        _clear_default(db, current_user, data.domain_id)

    values = data.model_dump()
    values["node_positions"] = _positions(data.node_positions)
    view = GraphView(user_id=current_user.id, **values)
    db.add(view)
    db.commit()
    db.refresh(view)

    logger.info(f"Created graph view {view.id} for domain {view.domain_id}")
    return GraphViewResponse.model_validate(view)


@router.get("/{view_id}", response_model=GraphViewResponse, responses=OWNERSHIP_RESPONSES)
def get_view(
    view_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> GraphViewResponse:
    view = get_owned(db, GraphView, view_id, current_user, "View")
    return GraphViewResponse.model_validate(view)


@router.patch("/{view_id}", response_model=GraphViewResponse, responses=OWNERSHIP_RESPONSES)
def update_view(
    view_id: UUID,
    data: GraphViewUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> GraphViewResponse:
    view = get_owned(db, GraphView, view_id, current_user, "View")
    updates = data.model_dump(exclude_unset=True)

    if updates.get("is_default"):
        _clear_default(db, current_user, view.domain_id, keep_id=view.id)
    if data.node_positions is not None:
        updates["node_positions"] = _positions(data.node_positions)

    for key, value in updates.items():
        if value is None and key != "description":
            continue
        setattr(view, key, value)
    db.commit()
    db.refresh(view)

    logger.info(f"Updated graph view {view.id}")
    return GraphViewResponse.model_validate(view)


@router.post("/{view_id}/default", response_model=GraphViewResponse, responses=OWNERSHIP_RESPONSES)
def set_default_view(
    view_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> GraphViewResponse:
    view = get_owned(db, GraphView, view_id, current_user, "View")
    _clear_default(db, current_user, view.domain_id, keep_id=view.id)
    view.is_default = True
    db.commit()
    db.refresh(view)

    logger.info(f"Graph view {view.id} is now the default for domain {view.domain_id}")
    return GraphViewResponse.model_validate(view)


@router.delete("/{view_id}", status_code=status.HTTP_204_NO_CONTENT, responses=OWNERSHIP_RESPONSES)
def delete_view(
    view_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    view = get_owned(db, GraphView, view_id, current_user, "View")
    db.delete(view)
    db.commit()
    logger.info(f"Deleted graph view {view_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

"""Property routes: listing and lifecycle operations."""

from fastapi import APIRouter, Depends, HTTPException

from imoveis.api.deps import get_session
from imoveis.api.routes.scenarios import activate, view_to_response
from imoveis.api.schemas import (
    MetadataUpdate,
    PropertyListResponse,
    PropertyNameResponse,
    PropertyViewResponse,
    RenameRequest,
    StatusRequest,
)
from imoveis.engine.lifecycle import PropertyNameConflictError
from imoveis.engine.session import EditingSession
from imoveis.models.entry import StatusImovel

router = APIRouter(prefix="/api/v1/properties", tags=["properties"])


@router.get("", response_model=PropertyListResponse)
async def list_properties(session: EditingSession = Depends(get_session)):
    """Property names grouped by status."""
    groups = session.property_groups()
    pending = session.lifecycle.pending_undo
    return PropertyListResponse(
        em_andamento=groups[StatusImovel.EM_ANDAMENTO],
        finalizado=groups[StatusImovel.FINALIZADO],
        active=session.imovel,
        pending_undo=pending.imovel if pending else None,
    )


@router.post("", response_model=PropertyNameResponse, status_code=201)
async def create_property(session: EditingSession = Depends(get_session)):
    return PropertyNameResponse(imovel=session.create_property())


@router.post("/undo-delete", response_model=PropertyNameResponse)
async def undo_delete(session: EditingSession = Depends(get_session)):
    """Bring back the last deleted property while the undo window is open."""
    restored = session.undo_delete()
    if restored is None:
        raise HTTPException(status_code=410, detail="Nada para desfazer")
    return PropertyNameResponse(imovel=restored)


@router.put("/{imovel}/name", response_model=PropertyNameResponse)
async def rename_property(
    imovel: str,
    req: RenameRequest,
    session: EditingSession = Depends(get_session),
):
    activate(session, imovel)
    try:
        new_name = session.rename_property(req.new_name)
    except PropertyNameConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return PropertyNameResponse(imovel=new_name)


@router.post("/{imovel}/duplicate", response_model=PropertyNameResponse, status_code=201)
async def duplicate_property(imovel: str, session: EditingSession = Depends(get_session)):
    activate(session, imovel)
    return PropertyNameResponse(imovel=session.duplicate_property())


@router.delete("/{imovel}", response_model=PropertyNameResponse)
async def delete_property(imovel: str, session: EditingSession = Depends(get_session)):
    """Delete a property; the response names the property selected next."""
    activate(session, imovel)
    return PropertyNameResponse(imovel=session.delete_property())


@router.put("/{imovel}/status", response_model=PropertyNameResponse)
async def update_status(
    imovel: str,
    req: StatusRequest,
    session: EditingSession = Depends(get_session),
):
    activate(session, imovel)
    if req.status is None:
        session.toggle_status()
    else:
        session.set_status(req.status)
    return PropertyNameResponse(imovel=imovel)


@router.patch("/{imovel}/metadata", response_model=PropertyViewResponse)
async def update_metadata(
    imovel: str,
    req: MetadataUpdate,
    session: EditingSession = Depends(get_session),
):
    """Change property data on every entry of the property, both scenarios."""
    activate(session, imovel)
    changes = req.model_dump(exclude_unset=True)
    if changes:
        session.update_metadata(**changes)
    return view_to_response(session.view())

"""Drawing record API endpoints."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from sketchpad.api.deps import get_store
from sketchpad.models.drawing import DrawingCreate, DrawingRead, DrawingUpdate
from sketchpad.services.drawing_store import DrawingStore

router = APIRouter()


@router.get("", response_model=List[DrawingRead])
def list_drawings(store: DrawingStore = Depends(get_store)):
    """List drawings, most recently updated first."""
    return [DrawingRead.from_record(drawing) for drawing in store.list()]


@router.get("/{drawing_id}", response_model=DrawingRead)
def get_drawing(drawing_id: str, store: DrawingStore = Depends(get_store)):
    """Fetch a single drawing by ID."""
    drawing = store.get(drawing_id)
    if not drawing:
        raise HTTPException(status_code=404, detail="Drawing not found")
    return DrawingRead.from_record(drawing)


@router.post("", response_model=DrawingRead, status_code=status.HTTP_201_CREATED)
def create_drawing(data: DrawingCreate, store: DrawingStore = Depends(get_store)):
    """Create a new drawing."""
    return DrawingRead.from_record(store.create(data))


@router.api_route("/{drawing_id}", methods=["PUT", "PATCH"], response_model=DrawingRead)
def update_drawing(drawing_id: str, data: DrawingUpdate, store: DrawingStore = Depends(get_store)):
    """Update an existing drawing with the fields present in the body."""
    drawing = store.update(drawing_id, data)
    if not drawing:
        raise HTTPException(status_code=404, detail="Drawing not found")
    return DrawingRead.from_record(drawing)


@router.delete("/{drawing_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_drawing(drawing_id: str, store: DrawingStore = Depends(get_store)):
    """Delete a drawing."""
    if not store.delete(drawing_id):
        raise HTTPException(status_code=404, detail="Drawing not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

from fastapi import APIRouter, Depends, Query, Response, Request, status
from typing import List, Optional
from io import BytesIO
from segno import make_qr
from starlette.responses import StreamingResponse
from . import schemas, links
from .auth import current_user_id
from .config import PUBLIC_BASE_URL
from .store import LinkStore, get_store

router = APIRouter(prefix="/api/qr-links", tags=["qr-links"])


@router.get("", response_model=List[schemas.QRLinkWithScans])
def list_qr_links(user_id: Optional[int] = Depends(current_user_id), store: LinkStore = Depends(get_store)):
    """List the caller's QR links, newest first, with their scan totals."""
    return links.list_links(store, user_id)


@router.post("", response_model=schemas.QRLink, status_code=status.HTTP_201_CREATED)
def create_qr_link(data: schemas.QRLinkCreate, user_id: Optional[int] = Depends(current_user_id),
                   store: LinkStore = Depends(get_store)):
    return links.create_link(store, user_id, data)


@router.get("/summary", response_model=schemas.UserStats)
def user_summary(user_id: Optional[int] = Depends(current_user_id), store: LinkStore = Depends(get_store)):
    return links.get_user_stats(store, user_id)


@router.get("/{link_id}", response_model=schemas.QRLink)
def get_qr_link(link_id: int, user_id: Optional[int] = Depends(current_user_id),
                store: LinkStore = Depends(get_store)):
    return links.get_link(store, user_id, link_id)


@router.patch("/{link_id}", response_model=schemas.QRLink)
def update_qr_link(link_id: int, data: schemas.QRLinkUpdate, user_id: Optional[int] = Depends(current_user_id),
                   store: LinkStore = Depends(get_store)):
    return links.update_link(store, user_id, link_id, data)


@router.delete("/{link_id}")
def delete_qr_link(link_id: int, user_id: Optional[int] = Depends(current_user_id),
                   store: LinkStore = Depends(get_store)):
    """Delete a QR link together with its scan history."""
    links.delete_link(store, user_id, link_id)
    return {"message": "QR code deleted successfully"}


@router.get("/{link_id}/stats", response_model=schemas.QRCodeStats)
def qr_link_stats(link_id: int, user_id: Optional[int] = Depends(current_user_id),
                  store: LinkStore = Depends(get_store)):
    """Totals, 30-day daily histogram, device breakdown and top countries."""
    return links.get_qr_code_stats(store, user_id, link_id)


@router.get("/{link_id}/scans", response_model=schemas.ScanPage)
def qr_link_scans(
    link_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    user_id: Optional[int] = Depends(current_user_id),
    store: LinkStore = Depends(get_store),
):
    """Return detailed scan history for a QR link with pagination."""
    return links.list_scans(store, user_id, link_id, page=page, limit=limit)


@router.get("/{link_id}/image")
def get_image(
    link_id: int,
    request: Request,
    format: str = Query("png", pattern="^(png|svg)$"),
    size: int = Query(300, ge=50, le=2000),
    user_id: Optional[int] = Depends(current_user_id),
    store: LinkStore = Depends(get_store),
):
    link = links.get_link(store, user_id, link_id)
    # The code always encodes the tracking redirect, never the target itself
    base_url = PUBLIC_BASE_URL or str(request.base_url).rstrip('/')
    qr = make_qr(f"{base_url}/r/{link.slug}")
    colors = {"dark": link.color, "light": link.background_color}
    if format == "svg":
        svg_io = BytesIO()
        qr.save(svg_io, kind="svg", **colors)
        svg_io.seek(0)
        return Response(content=svg_io.read(), media_type="image/svg+xml")
    png_io = BytesIO()
    # scale = pixels per module, so the PNG is roughly `size` pixels wide
    modules_x, modules_y = qr.symbol_size()
    scale = max(1, int(size // max(modules_x, modules_y)))
    qr.save(png_io, kind="png", scale=scale, **colors)
    png_io.seek(0)
    return StreamingResponse(png_io, media_type="image/png")

from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import (
    CountrySelectionModel,
    DisciplineSelectionModel,
    PanModel,
    SelectionModel,
    TransformModel,
    WindowModel,
    ZoomModel,
)
from medals.coordinator import VIEWS, Coordinator
from medals.selection import SelectionState, normalize_selection
from medals.settings import normalize_settings
from medals.transform import ViewTransform
from medals.view_debug import compute_debug

logger = logging.getLogger(__name__)
router = APIRouter()


def get_coordinator(request: Request) -> Coordinator:
    return request.app.state.coordinator


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _selection_from_model(model: SelectionModel, coord: Coordinator) -> SelectionState:
    raw = model.model_dump()
    return normalize_selection(raw, countries=coord.countries(), settings=coord.settings)


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _timeline_frame(coord: Coordinator) -> dict:
    rendered = coord.flush()
    return rendered.get("timeline") or coord.render("timeline")


@router.get("/views")
def views(coord: Coordinator = Depends(get_coordinator)):
    try:
        coord.flush()
        return _json(coord.render_all())
    except Exception as exc:
        logger.exception("views failed")
        return _error(exc)


@router.get("/views/{view}")
def view(view: str, coord: Coordinator = Depends(get_coordinator)):
    if view not in VIEWS:
        return _error(KeyError(f"Unknown view: {view}"), 404)
    try:
        coord.flush()
        return _json(coord.render(view))
    except Exception as exc:
        logger.exception("view %s failed", view)
        return _error(exc)


@router.get("/selection")
def selection(coord: Coordinator = Depends(get_coordinator)):
    return _json({"selection": coord.selection, "transform": coord.transform})


@router.post("/selection")
def restore_selection(body: SelectionModel, coord: Coordinator = Depends(get_coordinator)):
    try:
        coord.restore_selection(_selection_from_model(body, coord))
        return _json({"selection": coord.selection, "views": coord.render_all()})
    except Exception as exc:
        logger.exception("restore_selection failed")
        return _error(exc)


@router.post("/selection/country")
def select_country(body: CountrySelectionModel, coord: Coordinator = Depends(get_coordinator)):
    try:
        coord.overview.activate(body.country_code, body.country_name)
        return _json({"selection": coord.selection, "views": coord.render_all()})
    except ValueError as exc:
        return _error(exc, 422)
    except Exception as exc:
        logger.exception("select_country failed")
        return _error(exc)


@router.post("/selection/discipline")
def select_discipline(body: DisciplineSelectionModel, coord: Coordinator = Depends(get_coordinator)):
    try:
        coord.select_discipline(body.discipline)
        return _json({"selection": coord.selection, "views": coord.render_all()})
    except Exception as exc:
        logger.exception("select_discipline failed")
        return _error(exc)


@router.post("/timeline/zoom")
def timeline_zoom(body: ZoomModel, coord: Coordinator = Depends(get_coordinator)):
    try:
        coord.zoom(body.factor, body.anchor)
        return _json(_timeline_frame(coord))
    except Exception as exc:
        logger.exception("timeline_zoom failed")
        return _error(exc)


@router.post("/timeline/pan")
def timeline_pan(body: PanModel, coord: Coordinator = Depends(get_coordinator)):
    try:
        coord.pan(body.dx)
        return _json(_timeline_frame(coord))
    except Exception as exc:
        logger.exception("timeline_pan failed")
        return _error(exc)


@router.post("/timeline/transform")
def timeline_transform(body: TransformModel, coord: Coordinator = Depends(get_coordinator)):
    try:
        coord.set_transform(ViewTransform(k=body.k, x=body.x))
        return _json(_timeline_frame(coord))
    except Exception as exc:
        logger.exception("timeline_transform failed")
        return _error(exc)


@router.post("/timeline/window")
def timeline_window(body: WindowModel, coord: Coordinator = Depends(get_coordinator)):
    try:
        coord.set_window(body.k, body.start)
        return _json(_timeline_frame(coord))
    except Exception as exc:
        logger.exception("timeline_window failed")
        return _error(exc)


@router.get("/timeline/readout")
def timeline_readout(position: float = Query(ge=0.0, le=1.0), coord: Coordinator = Depends(get_coordinator)):
    try:
        return _json({"readout": coord.timeline_readout(position)})
    except Exception as exc:
        logger.exception("timeline_readout failed")
        return _error(exc)


@router.get("/meta/countries")
def meta_countries(coord: Coordinator = Depends(get_coordinator)):
    countries = coord.countries()
    return _json({"countries": [{"country_code": code, "country": name} for code, name in sorted(countries.items())]})


@router.get("/meta/disciplines")
def meta_disciplines(coord: Coordinator = Depends(get_coordinator)):
    return _json({"country_code": coord.selection.country_code, "disciplines": coord.country_disciplines()})


@router.post("/reload")
async def reload(coord: Coordinator = Depends(get_coordinator)):
    try:
        applied = await coord.reload()
        data = coord.data
        return _json(
            {
                "applied": applied,
                "error": data.error if data is not None else None,
                "row_counts": {
                    "medal_rows": int(len(coord.medals)),
                    "country_rows": int(len(coord.totals)),
                },
            }
        )
    except Exception as exc:
        logger.exception("reload failed")
        return _error(exc)


@router.get("/debug")
def debug(coord: Coordinator = Depends(get_coordinator)):
    if coord.data is None:
        return _json({"view": "debug", "status": "loading"})
    return _json(compute_debug(coord.data))


@router.get("/export/{view}")
def export_view(view: str, coord: Coordinator = Depends(get_coordinator)):
    if view == "overview":
        export_df = pd.DataFrame(coord.render("overview").get("leaves", []))
    elif view == "timeline":
        export_df = coord.timeline_series()
    elif view == "detail":
        export_df = coord.discipline_slice()[1]
    else:
        return _error(KeyError(f"Unknown view: {view}"), 404)
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    filename = f"{view}_{coord.selection.country_code}.csv"
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})


def create_app(coordinator: Optional[Coordinator] = None, settings: Optional[dict] = None) -> FastAPI:
    """Build the API around one shared coordinator.

    ``settings`` is a raw config mapping (see ``normalize_settings``); it is
    ignored when a ready coordinator is passed in.
    """
    coord = coordinator or Coordinator(settings=normalize_settings(settings))

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        if coord.data is None:
            await coord.reload(force=False)
        yield

    application = FastAPI(title="Paris 2024 Medals API", version="0.1.0", lifespan=lifespan)
    application.state.coordinator = coord
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(router)
    return application


app = create_app()

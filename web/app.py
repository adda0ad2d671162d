from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
import logging
import os
import sys
from typing import List, Optional

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from jnetstats.config import DIFF_PERIODS, HISTOGRAM_PERIODS, load_settings
from jnetstats.dashboard import HistoryDashboard
from jnetstats.models import EntityFilter, GameFilters
from jnetstats.parser import FormatError, parse_and_normalize
from jnetstats.periods import parse_timestamp
from jnetstats.profile import combine_uploads, parse_upload
from jnetstats.reference import (
    CORP_FACTIONS,
    RUNNER_FACTIONS,
    faction_label,
    get_known_ranges,
    load_reference,
)

logger = logging.getLogger(__name__)

static_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "static")

settings = load_settings()
reference = load_reference(settings.reference_path)

app = FastAPI(title="jnet-stats")
app.mount("/static", StaticFiles(directory=static_dir), name="static")


def _parse_date_param(name: str, raw: Optional[str]):
    if not raw:
        return None
    parsed = parse_timestamp(raw)
    if parsed is None:
        raise HTTPException(status_code=400, detail=f"{name} is not an ISO date: {raw}")
    return parsed


def _parse_entity_params(name: str, values: Optional[List[str]]) -> tuple:
    entities = []
    for raw in values or []:
        kind, sep, target = raw.partition(":")
        if not sep or not target:
            raise HTTPException(
                status_code=400,
                detail=f"{name} must look like side:runner, faction:anarch or identity:<name>",
            )
        try:
            entities.append(EntityFilter(type=kind, value=target, label=target))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return tuple(entities)


@app.get("/")
async def root() -> HTMLResponse:
    with open(os.path.join(static_dir, "index.html"), encoding="utf-8") as f:
        return HTMLResponse(
            content=f.read(),
            headers={"Cache-Control": "no-store, no-cache, must-revalidate, max-age=0"},
        )


@app.post("/api/history")
async def analyze_history(
    files: List[UploadFile] = File(...),
    period: str = Query(settings.diff_period),
    window: int = Query(settings.rolling_window),
    games_period: str = Query(settings.games_played_period),
    format: Optional[str] = Query(None),
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    entity: Optional[List[str]] = Query(None),
    opponent: Optional[List[str]] = Query(None),
) -> dict:
    if period not in DIFF_PERIODS:
        raise HTTPException(status_code=400, detail=f"period must be one of {', '.join(DIFF_PERIODS)}")
    if games_period not in HISTOGRAM_PERIODS:
        raise HTTPException(
            status_code=400, detail=f"games_period must be one of {', '.join(HISTOGRAM_PERIODS)}"
        )

    filters = GameFilters(
        format=format,
        range_start=_parse_date_param("start", start),
        range_end=_parse_date_param("end", end),
        entity_filters=_parse_entity_params("entity", entity),
        opponent_filters=_parse_entity_params("opponent", opponent),
    )

    uploads = []
    for upload in files:
        content = await upload.read()
        file_name = upload.filename or "game_history.json"
        try:
            games = parse_and_normalize(content)
        except FormatError as e:
            raise HTTPException(status_code=400, detail=f"{file_name}: {e}")
        uploads.append(parse_upload(file_name, games))

    history = combine_uploads(uploads)
    logger.info(
        "Analyzing %d games from %d files for %s",
        len(history.games),
        len(uploads),
        history.profile.username if history.profile else "unknown player",
    )

    try:
        return HistoryDashboard(
            history,
            settings=settings,
            reference=reference,
            filters=filters,
            diff_period=period,
            rolling_window=window,
            games_played_period=games_period,
        ).analyze()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/api/known-ranges")
async def known_ranges(format: str = "") -> dict:
    return {
        "format": format.strip().lower(),
        "ranges": [row.to_dict() for row in get_known_ranges(format, reference)],
    }


@app.get("/api/reference/factions")
async def factions() -> dict:
    def rows(names):
        return [
            {
                "faction": name,
                "label": faction_label(name),
                "colour": reference.faction_colours.get(name, "neutral"),
            }
            for name in names
        ]

    return {"runner": rows(RUNNER_FACTIONS), "corp": rows(CORP_FACTIONS)}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=settings.log_level)
    print("Starting jnet-stats web server...")
    print(f"Open http://{settings.host}:{settings.port} in your browser")
    uvicorn.run(app, host=settings.host, port=settings.port)

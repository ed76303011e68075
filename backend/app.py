from functools import lru_cache
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from core.engine import InvalidArgument
from core.featured import analyze, at_least, curve_only, exactly, level_breakdown

SERIES_CACHE_SIZE = 512

app = FastAPI(title="Featured Drop Probability API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class PullRequest(BaseModel):
    pity: int = Field(ge=0)
    guaranteed: bool = False
    draws: int = Field(ge=0)


class TargetRequest(PullRequest):
    target: int


class ExactlyRequest(TargetRequest):
    per_step: bool = False


class LevelRequest(PullRequest):
    current_level: int
    target_level: int


@app.exception_handler(InvalidArgument)
def invalid_argument_handler(request: Request, exc: InvalidArgument):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@lru_cache(maxsize=SERIES_CACHE_SIZE)
def _cached_curve(pity: int, guaranteed: bool, draws: int, target: int):
    # Fast path for chart rendering
    return curve_only(draws, pity, guaranteed, target)


@app.post("/exactly")
def api_exactly(req: ExactlyRequest):
    out = exactly(req.pity, req.guaranteed, req.draws, req.target, per_step=req.per_step)
    if req.per_step:
        return {"per_step": out}
    return {"probability": out}


@app.post("/at-least")
def api_at_least(req: TargetRequest):
    return {"probability": at_least(req.pity, req.guaranteed, req.draws, req.target)}


@app.post("/levels")
def api_levels(req: LevelRequest):
    return {"levels": level_breakdown(req.pity, req.guaranteed, req.draws, req.current_level, req.target_level)}


@app.post("/simulate")
def api_simulate(req: TargetRequest):
    out = analyze(req.pity, req.guaranteed, req.draws, req.target)
    out.pop("curve", None)  # keep response small
    return out


@app.post("/series")
def api_series(req: TargetRequest):
    return {"featured": _cached_curve(req.pity, req.guaranteed, req.draws, req.target)}

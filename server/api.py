"""FastAPI server exposing the recommendation orchestrator."""

import contextlib
from typing import AsyncIterator, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from logic.errors import StylistError
from memory.session_registry import SessionNotFoundError, StylistSession
from models.outfit import WeatherSnapshot
from models.wardrobe_item import ClothingItem
from stylist_app.app import StylistApp
from stylist_app.logging_config import correlation_context

_default_app: FastAPI | None = None


class ItemPayload(BaseModel):
    """Clothing item as sent by clients."""

    model_config = ConfigDict(populate_by_name=True)

    item_id: str = Field(..., alias="id")
    category: str
    name: str = ""
    color: str = ""
    brand: str = ""
    image_url: Optional[str] = Field(None, alias="imageUrl")
    seasons: List[str] = Field(default_factory=list)

    def to_item(self) -> ClothingItem:
        return ClothingItem(
            item_id=self.item_id,
            category=self.category,
            name=self.name,
            color=self.color,
            brand=self.brand,
            image_url=self.image_url,
            seasons=tuple(self.seasons),
        )


class SessionRequest(BaseModel):
    owner_id: str = Field(..., description="Owner of the wardrobe and saved outfits")
    metadata: dict | None = Field(None, description="Optional session metadata for tracing")


class RecommendationRequest(BaseModel):
    """Selected items plus optional context.

    When ``wardrobe`` is given the selection is completed from it first.
    """

    items: List[ItemPayload]
    style: Optional[str] = None
    temperature: Optional[float] = None
    wardrobe: Optional[List[ItemPayload]] = None


class PurchaseSuggestionRequest(BaseModel):
    wardrobe: List[ItemPayload]
    style: Optional[str] = None
    temperature: Optional[float] = None


class WeatherPayload(BaseModel):
    temperature: float
    feels_like: Optional[float] = None
    humidity: Optional[float] = None
    condition: str = ""
    wind_speed: Optional[float] = None
    description: str = ""


class SaveOutfitRequest(BaseModel):
    session_id: str
    fingerprint: str
    preferred_style: Optional[str] = None
    weather: Optional[WeatherPayload] = None


def _to_items(payloads: List[ItemPayload]) -> List[ClothingItem]:
    try:
        return [payload.to_item() for payload in payloads]
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def create_app(stylist: StylistApp | None = None) -> FastAPI:
    """Build the ASGI app around ``stylist`` (configured from the environment by default)."""

    stylist = stylist or StylistApp()

    @contextlib.asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        stylist.shutdown()

    app = FastAPI(title="Wardrobe Stylist", version="0.1.0", lifespan=lifespan)
    app.state.stylist = stylist

    def session_for(session_id: str) -> StylistSession:
        try:
            return stylist.sessions.get(session_id)
        except SessionNotFoundError as exc:
            raise HTTPException(status_code=404, detail="session not found") from exc

    @app.exception_handler(StylistError)
    async def stylist_error_handler(request: Request, exc: StylistError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.get("/healthz")
    async def healthcheck() -> dict:
        """Lightweight readiness check."""

        return {
            "status": "ok",
            "service": "wardrobe-stylist",
            "environment": stylist.config.environment or "local",
            "models": stylist.config.gemini_models,
            "sessions": len(stylist.sessions),
        }

    @app.post("/sessions", status_code=201)
    def create_session(request: SessionRequest) -> dict:
        session = stylist.sessions.create(request.owner_id, metadata=request.metadata)
        return {"session_id": session.session_id}

    @app.delete("/sessions/{session_id}", status_code=204)
    def close_session(session_id: str) -> Response:
        if not stylist.sessions.close(session_id):
            raise HTTPException(status_code=404, detail="session not found")
        return Response(status_code=204)

    @app.post("/sessions/{session_id}/recommendations")
    def recommend(session_id: str, request: RecommendationRequest) -> dict:
        """Analyse the selection; blocking provider calls run in the threadpool."""

        session = session_for(session_id)
        items = _to_items(request.items)
        with correlation_context():
            if request.wardrobe is not None:
                result = session.orchestrator.recommend_smart_outfit(
                    items,
                    _to_items(request.wardrobe),
                    style=request.style,
                    temperature=request.temperature,
                )
            else:
                result = session.orchestrator.get_recommendation(
                    items, style=request.style, temperature=request.temperature
                )
        return result.to_dict()

    @app.post("/sessions/{session_id}/item-insights")
    def item_insight(session_id: str, request: ItemPayload) -> dict:
        session = session_for(session_id)
        (item,) = _to_items([request])
        with correlation_context():
            insight = session.orchestrator.analyze_single_item(item)
        return insight.to_dict()

    @app.post("/sessions/{session_id}/purchase-suggestions")
    def purchase_suggestions(session_id: str, request: PurchaseSuggestionRequest) -> dict:
        session = session_for(session_id)
        wardrobe = _to_items(request.wardrobe)
        with correlation_context():
            suggestions = session.orchestrator.recommend_new_items(
                wardrobe, style=request.style, temperature=request.temperature
            )
        return {"recommendations": [suggestion.to_dict() for suggestion in suggestions]}

    @app.get("/sessions/{session_id}/cooldown")
    def cooldown(session_id: str) -> dict:
        session = session_for(session_id)
        return {"seconds_remaining": session.orchestrator.remaining_cooldown_seconds()}

    @app.post("/owners/{owner_id}/outfits", status_code=201)
    def save_outfit(owner_id: str, request: SaveOutfitRequest) -> dict:
        session = session_for(request.session_id)
        if session.owner_id != owner_id:
            raise HTTPException(status_code=403, detail="session belongs to another owner")
        analysis = session.orchestrator.cached_analysis(request.fingerprint)
        if analysis is None:
            raise HTTPException(status_code=404, detail="no recommendation for this fingerprint")
        weather = WeatherSnapshot(**request.weather.model_dump()) if request.weather else None
        with correlation_context():
            record = session.orchestrator.save_outfit(
                owner_id, analysis, weather=weather, preferred_style=request.preferred_style
            )
        return record.to_dict()

    @app.get("/owners/{owner_id}/outfits")
    def list_outfits(owner_id: str, limit: Optional[int] = Query(None, ge=1)) -> dict:
        records = stylist.saved_outfits.list(owner_id, limit=limit)
        return {"outfits": [record.to_dict() for record in records]}

    @app.get("/owners/{owner_id}/outfits/lookup")
    def lookup_outfit(owner_id: str, item_ids: List[str] = Query(...)) -> dict:
        record = stylist.saved_outfits.find_by_item_set(owner_id, item_ids)
        if record is None:
            raise HTTPException(status_code=404, detail="outfit not saved")
        return record.to_dict()

    @app.delete("/owners/{owner_id}/outfits/{record_id}")
    def delete_outfit(owner_id: str, record_id: str) -> dict:
        if not stylist.saved_outfits.delete(owner_id, record_id):
            raise HTTPException(status_code=404, detail="outfit not found")
        return {"deleted": True, "id": record_id}

    return app


def get_app() -> FastAPI:
    """Expose the FastAPI instance for ASGI servers."""

    global _default_app
    if _default_app is None:
        _default_app = create_app()
    return _default_app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:get_app", factory=True, host="0.0.0.0", port=8080, reload=False)

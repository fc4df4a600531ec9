import os
from functools import lru_cache
from typing import Optional, Any

from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from archdoc.backend import Backend
from archdoc.db_connection import DBConnection
from archdoc.document_store import DocumentStore

load_dotenv()

app = FastAPI()

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS_CODES = {
    "DocumentNotFoundError": 404,
    "ItemNotFoundError": 404,
    "MalformedPayloadError": 400,
    "UnsupportedSectionError": 400,
    "SectionHandledElsewhereError": 400,
    "ValidationError": 422,
    "StaleDocumentError": 409,
}


class Event(BaseModel):
    type: str
    project_id: str
    user_id: Optional[str] = None
    payload: Optional[Any] = None
    timestamp: Optional[str] = None


@lru_cache(maxsize=1)
def get_backend() -> Backend:
    connection = DBConnection()
    connection.create_schema()
    return Backend(DocumentStore(connection))


@app.post("/events")
def send_event(event: Event, backend: Backend = Depends(get_backend)):
    response_data = backend._process_request_data(event.model_dump())
    if response_data.get("status") == "error":
        status_code = ERROR_STATUS_CODES.get(response_data.get("error_type"), 400)
        return JSONResponse(status_code=status_code, content=response_data)
    return response_data


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))

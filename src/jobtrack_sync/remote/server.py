"""
server.py - Reference remote document server.

FastAPI application exposing per-user document collections over
REST, persisted in SQLite. Run with:

    uvicorn --factory jobtrack_sync.remote.server:create_app

or `jobtrack serve`.
"""

import json
import logging
import sqlite3
import threading
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from jobtrack_sync.config import COLLECTIONS, load_settings
from jobtrack_sync.db.connection import create_connection
from jobtrack_sync.errors import RemoteStoreError
from jobtrack_sync.remote.base import document_id, document_timestamp
from jobtrack_sync.security import TokenManager, hash_password, verify_password
from jobtrack_sync.utils.uuid7 import uuid7_str

logger = logging.getLogger("jobtrack_sync.server")

SERVER_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    user_id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS documents (
    user_id TEXT NOT NULL,
    collection TEXT NOT NULL,
    doc_id TEXT NOT NULL,
    timestamp INTEGER NOT NULL,
    body TEXT NOT NULL,
    PRIMARY KEY (user_id, collection, doc_id)
);
CREATE INDEX IF NOT EXISTS idx_documents_since
    ON documents(user_id, collection, timestamp);
"""


class Credentials(BaseModel):
    email: str
    password: str


class Session(BaseModel):
    user_id: str
    token: str


class DocumentList(BaseModel):
    documents: List[Dict[str, Any]]


class DocumentStore:
    """
    SQLite persistence for users and documents.

    One connection guarded by a lock; FastAPI runs the sync route
    handlers on its worker threads.
    """

    def __init__(self, db_path: str):
        self._conn = create_connection(db_path)
        self._lock = threading.Lock()
        self._conn.executescript(SERVER_SCHEMA)

    def close(self) -> None:
        self._conn.close()

    def create_user(self, email: str, password: str) -> Optional[str]:
        """Register a user. Returns None if the email is taken."""
        user_id = uuid7_str()
        with self._lock:
            try:
                self._conn.execute(
                    "INSERT INTO users (user_id, email, password_hash) VALUES (?, ?, ?)",
                    (user_id, email.lower(), hash_password(password)),
                )
            except sqlite3.IntegrityError:
                return None
        return user_id

    def authenticate(self, email: str, password: str) -> Optional[str]:
        with self._lock:
            row = self._conn.execute(
                "SELECT user_id, password_hash FROM users WHERE email = ?",
                (email.lower(),),
            ).fetchone()
        if row is None or not verify_password(password, row["password_hash"]):
            return None
        return row["user_id"]

    def put(self, user_id: str, collection: str, doc_id: str, document: Dict[str, Any]) -> None:
        timestamp = document_timestamp(collection, document)
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO documents (user_id, collection, doc_id, timestamp, body) "
                "VALUES (?, ?, ?, ?, ?)",
                (user_id, collection, doc_id, timestamp, json.dumps(document)),
            )

    def delete(self, user_id: str, collection: str, doc_id: str) -> None:
        with self._lock:
            self._conn.execute(
                "DELETE FROM documents WHERE user_id = ? AND collection = ? AND doc_id = ?",
                (user_id, collection, doc_id),
            )

    def since(self, user_id: str, collection: str, since_ms: int) -> List[Dict[str, Any]]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT body FROM documents WHERE user_id = ? AND collection = ? "
                "AND timestamp > ? ORDER BY timestamp ASC",
                (user_id, collection, since_ms),
            ).fetchall()
        return [json.loads(row["body"]) for row in rows]


def create_app(db_path: Optional[str] = None, secret: Optional[str] = None) -> FastAPI:
    """
    Build the document server.

    Args:
        db_path: SQLite file for users and documents
                 (default: JOBTRACK_SERVER_DB_PATH)
        secret: Token signing secret (default: JOBTRACK_SERVER_SECRET)
    """
    settings = load_settings()
    store = DocumentStore(db_path or settings.server_db_path)
    tokens = TokenManager((secret or settings.server_secret).encode())

    app = FastAPI(title="Jobtrack Document Server")
    app.state.store = store
    app.state.tokens = tokens

    def get_store() -> DocumentStore:
        return store

    def authorize(user_id: str, authorization: Optional[str] = Header(None)) -> str:
        """Require a bearer token issued to the user owning the path."""
        if not authorization or not authorization.startswith("Bearer "):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
        subject = tokens.verify_token(authorization[len("Bearer "):])
        if subject is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
        if subject != user_id:
            logger.warning(f"User {subject} denied access to namespace {user_id}")
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")
        return user_id

    def check_collection(collection: str) -> str:
        if collection not in COLLECTIONS:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown collection {collection}")
        return collection

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal Server Error"},
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        store.close()

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": "jobtrack-sync"}

    @app.post("/auth/signup", response_model=Session)
    def sign_up(credentials: Credentials, store: DocumentStore = Depends(get_store)):
        if not credentials.email or not credentials.password:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email and password required")
        user_id = store.create_user(credentials.email, credentials.password)
        if user_id is None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
        logger.info(f"Registered user {user_id}")
        return Session(user_id=user_id, token=tokens.create_token(user_id))

    @app.post("/auth/signin", response_model=Session)
    def sign_in(credentials: Credentials, store: DocumentStore = Depends(get_store)):
        user_id = store.authenticate(credentials.email, credentials.password)
        if user_id is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
        return Session(user_id=user_id, token=tokens.create_token(user_id))

    @app.put("/users/{user_id}/{collection}/{doc_id}")
    def put_document(
        doc_id: str,
        document: Dict[str, Any],
        user_id: str = Depends(authorize),
        collection: str = Depends(check_collection),
        store: DocumentStore = Depends(get_store),
    ):
        try:
            body_id = document_id(collection, document)
            document_timestamp(collection, document)
        except RemoteStoreError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
        if body_id != doc_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Document id does not match path")
        store.put(user_id, collection, doc_id, document)
        return {"status": "ok"}

    @app.delete("/users/{user_id}/{collection}/{doc_id}")
    def delete_document(
        doc_id: str,
        user_id: str = Depends(authorize),
        collection: str = Depends(check_collection),
        store: DocumentStore = Depends(get_store),
    ):
        store.delete(user_id, collection, doc_id)
        return {"status": "ok"}

    @app.get("/users/{user_id}/{collection}", response_model=DocumentList)
    def list_documents(
        since: int = Query(0),
        user_id: str = Depends(authorize),
        collection: str = Depends(check_collection),
        store: DocumentStore = Depends(get_store),
    ):
        return DocumentList(documents=store.since(user_id, collection, since))

    return app

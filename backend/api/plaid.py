"""Plaid Link API endpoints.

Provides the server-side endpoints for the Plaid Link browser-based
authentication flow: creating link tokens, exchanging public tokens,
and managing linked connections.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from api.helpers import get_current_user_id, get_plaid_client, to_http_exception
from database import get_db
from integrations.exceptions import ProviderError, ProviderRejectedError
from integrations.plaid_client import PlaidClient
from services.connection_service import ConnectionService
from services.exceptions import NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/plaid", tags=["plaid"])


# ------------------------------------------------------------------
# Request / Response schemas
# ------------------------------------------------------------------


class LinkTokenResponse(BaseModel):
    link_token: str


class ExchangeTokenRequest(BaseModel):
    public_token: str
    institution_id: str | None = None
    institution_name: str | None = None


class ExchangeTokenResponse(BaseModel):
    connection_id: str
    item_id: str
    institution_name: str | None = None
    account_count: int


class LinkedConnectionResponse(BaseModel):
    id: str
    item_id: str
    institution_id: str | None = None
    institution_name: str | None = None
    account_count: int = 0
    last_synced_at: datetime | None = None
    created_at: datetime | None = None


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------


@router.post("/link-token", response_model=LinkTokenResponse)
def create_link_token(
    client: PlaidClient = Depends(get_plaid_client),
    user_id: str = Depends(get_current_user_id),
):
    """Create a Plaid Link token for the frontend."""
    if not client.is_configured():
        raise HTTPException(status_code=400, detail="Plaid is not configured")

    try:
        link_token = client.create_link_token(user_id)
        return LinkTokenResponse(link_token=link_token)
    except ProviderRejectedError as e:
        # Surface actionable hint for the most common error
        if e.error_code == "INVALID_API_KEYS":
            hint = (
                "Plaid rejected the credentials. Check that PLAID_ENVIRONMENT "
                "matches your keys (sandbox or production). "
                "Each environment has different secrets."
            )
            logger.error("Plaid INVALID_API_KEYS: %s", hint)
            raise HTTPException(status_code=400, detail=hint)
        raise to_http_exception(e, "create a link token")
    except ProviderError as e:
        raise to_http_exception(e, "create a link token")


@router.post("/exchange-token", response_model=ExchangeTokenResponse)
def exchange_token(
    body: ExchangeTokenRequest,
    db: Session = Depends(get_db),
    client: PlaidClient = Depends(get_plaid_client),
    user_id: str = Depends(get_current_user_id),
):
    """Exchange a Plaid Link public_token and store the connection with its accounts."""
    if not client.is_configured():
        raise HTTPException(status_code=400, detail="Plaid is not configured")

    try:
        connection, account_count = ConnectionService.link_connection(
            db,
            client,
            user_id,
            body.public_token,
            institution_id=body.institution_id,
            institution_name=body.institution_name,
        )
    except ProviderError as e:
        db.rollback()
        raise to_http_exception(e, "exchange the public token")

    db.commit()

    return ExchangeTokenResponse(
        connection_id=connection.id,
        item_id=connection.item_id,
        institution_name=connection.institution_name,
        account_count=account_count,
    )


@router.get("/items", response_model=list[LinkedConnectionResponse])
def list_items(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """List the principal's linked connections."""
    connections = ConnectionService.list_connections(db, user_id)
    counts = ConnectionService.account_counts(db, user_id)
    return [
        LinkedConnectionResponse(
            id=connection.id,
            item_id=connection.item_id,
            institution_id=connection.institution_id,
            institution_name=connection.institution_name,
            account_count=counts.get(connection.id, 0),
            last_synced_at=connection.last_synced_at,
            created_at=connection.created_at,
        )
        for connection in connections
    ]


@router.delete("/items/{connection_id}")
def remove_item(
    connection_id: str,
    db: Session = Depends(get_db),
    client: PlaidClient = Depends(get_plaid_client),
    user_id: str = Depends(get_current_user_id),
):
    """Remove a linked connection (revokes with Plaid, then deletes locally)."""
    try:
        ConnectionService.revoke_connection(db, client, user_id, connection_id)
    except NotFoundError as e:
        raise to_http_exception(e, "remove the connection")

    db.commit()
    return {"status": "ok", "connection_id": connection_id}

"""
Hosted Database Store

Talks to the project's hosted Postgres through its PostgREST interface
(`/rest/v1/<table>`), the same tables the web app reads.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

import requests

from .base import (
    ActionItem,
    ActionItemNote,
    ActionItemStatus,
    ActionItemStore,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)

ACTION_ITEMS_TABLE = "action_items"
NOTES_TABLE = "action_item_notes"

# Postgres "invalid text representation", e.g. a non-uuid value in a uuid column
INVALID_TEXT_REPRESENTATION = "22P02"

SEARCH_COLUMNS = ("title", "description")


class InvalidIdentifierError(StoreUnavailableError):
    """Raised when the database rejects an identifier the column type cannot hold."""


class PostgrestActionItemStore(ActionItemStore):
    """
    Action item store backed by the hosted database's REST API.

    Every request carries the project key as both `apikey` and bearer token.
    Transport errors, timeouts and non-2xx responses surface as
    StoreUnavailableError; the caller decides how to report them.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the REST store.

        Args:
            base_url: Project URL (e.g. https://<ref>.supabase.co)
            api_key: Project API key
            timeout: Per-request timeout in seconds
            session: Optional requests session (shared connection pool)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'apikey': api_key,
            'Authorization': f"Bearer {api_key}",
            'Content-Type': 'application/json',
            'Accept': 'application/json'
        })
        logger.info(f"PostgrestActionItemStore initialized for {self.base_url}")

    def _table_url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    def _request(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, str]] = None,
        json_body: Optional[Any] = None,
        prefer: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Send one request and return the decoded row list.

        Args:
            method: HTTP method
            table: Table name
            params: PostgREST query parameters (filters, order, select)
            json_body: Optional JSON body for inserts and updates
            prefer: Optional `Prefer` header value

        Returns:
            List of rows

        Raises:
            StoreUnavailableError: On timeout, connection error or error status
            InvalidIdentifierError: When Postgres rejects a value as malformed (22P02)
        """
        headers = {'Prefer': prefer} if prefer else None

        try:
            response = self.session.request(
                method,
                self._table_url(table),
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout
            )
            if response.status_code == 400 and \
                    self._error_code(response) == INVALID_TEXT_REPRESENTATION:
                raise InvalidIdentifierError(f"{method} {table} rejected a malformed value")
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            logger.error(f"{method} {table} timed out after {self.timeout}s")
            raise StoreUnavailableError(f"Store request timed out: {e}") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {table} failed: {e}")
            raise StoreUnavailableError(f"Store request failed: {e}") from e

        if not response.content:
            return []

        try:
            rows = response.json()
        except ValueError as e:
            logger.error(f"{method} {table} returned invalid JSON: {e}")
            raise StoreUnavailableError(f"Invalid store response: {e}") from e

        if isinstance(rows, dict):
            return [rows]
        return rows

    @staticmethod
    def _error_code(response: requests.Response) -> Optional[str]:
        """Postgres error code from a PostgREST error body, if there is one."""
        try:
            body = response.json()
        except ValueError:
            return None
        return body.get('code') if isinstance(body, dict) else None

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    @staticmethod
    def _quote(value: str) -> str:
        """Quote a filter value so commas and parentheses stay literal."""
        escaped = value.replace('\\', '\\\\').replace('"', '\\"')
        return f'"{escaped}"'

    def get_action_item(self, item_id: str) -> Optional[ActionItem]:
        try:
            rows = self._request(
                'GET',
                ACTION_ITEMS_TABLE,
                params={'id': f"eq.{item_id}", 'select': '*', 'limit': '1'}
            )
        except InvalidIdentifierError:
            # Not a valid uuid, so no row can match
            logger.warning(f"Malformed action item id: {item_id}")
            return None
        if not rows:
            return None
        return ActionItem(**rows[0])

    def list_action_items(
        self,
        status: Optional[ActionItemStatus] = None
    ) -> List[ActionItem]:
        params = {'select': '*', 'order': 'created_at.desc'}
        if status is not None:
            params['status'] = f"eq.{ActionItemStatus(status).value}"

        rows = self._request('GET', ACTION_ITEMS_TABLE, params=params)
        return [ActionItem(**row) for row in rows]

    def search_action_items(self, query: str, limit: int = 10) -> List[ActionItem]:
        pattern = self._quote(f"*{query}*")
        params = {
            'select': '*',
            'or': f"({','.join(f'{col}.ilike.{pattern}' for col in SEARCH_COLUMNS)})",
            'order': 'created_at.desc',
            'limit': str(limit)
        }

        rows = self._request('GET', ACTION_ITEMS_TABLE, params=params)
        logger.info(f"Search '{query}' matched {len(rows)} action items")
        return [ActionItem(**row) for row in rows]

    def list_notes(self, action_item_id: Optional[str] = None) -> List[ActionItemNote]:
        params = {'select': '*', 'order': 'created_at.desc'}
        if action_item_id is not None:
            params['action_item_id'] = f"eq.{action_item_id}"

        rows = self._request('GET', NOTES_TABLE, params=params)
        return [ActionItemNote(**row) for row in rows]

    def update_action_item(
        self,
        item_id: str,
        fields: Dict[str, Any]
    ) -> Optional[ActionItem]:
        logger.info(f"Updating action item {item_id}: {sorted(fields)}")

        body = dict(fields)
        body['updated_at'] = self._now()

        try:
            rows = self._request(
                'PATCH',
                ACTION_ITEMS_TABLE,
                params={'id': f"eq.{item_id}"},
                json_body=body,
                prefer='return=representation'
            )
        except InvalidIdentifierError:
            logger.warning(f"Malformed action item id: {item_id}")
            return None
        if not rows:
            logger.error(f"Action item not found: {item_id}")
            return None
        return ActionItem(**rows[0])

    def insert_note(
        self,
        action_item_id: str,
        note: str,
        created_by: str
    ) -> ActionItemNote:
        logger.info(f"Adding note to action item {action_item_id} by {created_by}")

        rows = self._request(
            'POST',
            NOTES_TABLE,
            json_body=[{
                'action_item_id': action_item_id,
                'note': note,
                'created_by': created_by,
                'created_at': self._now()
            }],
            prefer='return=representation'
        )
        if not rows:
            raise StoreUnavailableError("Note insert returned no row")
        return ActionItemNote(**rows[0])

    def insert_action_item(self, fields: Dict[str, Any]) -> ActionItem:
        logger.info(f"Creating action item: {fields.get('title')}")

        now = self._now()
        body = dict(fields)
        body.setdefault('created_at', now)
        body.setdefault('updated_at', now)

        rows = self._request(
            'POST',
            ACTION_ITEMS_TABLE,
            json_body=[body],
            prefer='return=representation'
        )
        if not rows:
            raise StoreUnavailableError("Action item insert returned no row")
        return ActionItem(**rows[0])

    def health_check(self) -> bool:
        try:
            self._request(
                'GET',
                ACTION_ITEMS_TABLE,
                params={'select': 'id', 'limit': '1'}
            )
            return True
        except StoreUnavailableError as e:
            logger.error(f"Health check failed: {e}")
            return False

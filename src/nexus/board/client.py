from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from ..schemas.state import BoardConfig
from .errors import BoardAuthError, BoardConfigError, BoardNotFoundError, BoardRequestError
from .models import ExternalCard, ExternalList, ExternalMember

DEFAULT_BASE_URL = "https://api.trello.com/1"
CARD_FIELDS = "name,desc,idList,url,idMembers"

M = TypeVar("M", bound=BaseModel)


def _response_text(resp: requests.Response) -> str:
    try:
        return resp.text or resp.reason or ""
    except Exception:  # undecodable body
        return resp.reason or ""


def raise_for_board_status(resp: requests.Response, operation: str) -> None:
    if resp.ok:
        return
    detail = _response_text(resp)
    if resp.status_code == 401:
        raise BoardAuthError(f"Unauthorized: check the API key and token. ({detail})")
    if resp.status_code == 404:
        raise BoardNotFoundError(f"Not found: check the board id. ({detail})")
    raise BoardRequestError(operation, resp.status_code, detail)


@dataclass
class BoardClient:
    config: BoardConfig
    base_url: str = DEFAULT_BASE_URL
    timeout_s: int = 30

    def credentials(self) -> BoardConfig:
        cfg = self.config.cleaned()
        if not (cfg.api_key and cfg.token and cfg.board_id):
            raise BoardConfigError("Missing board configuration: api key, token and board id are required")
        return cfg

    def _get(self, path: str, operation: str, extra: Optional[Dict[str, str]] = None) -> Tuple[int, Any]:
        cfg = self.credentials()
        params: Dict[str, str] = {"key": cfg.api_key, "token": cfg.token}
        if extra:
            params.update(extra)
        url = f"{self.base_url}/boards/{cfg.board_id}{path}"
        try:
            resp = requests.get(url, params=params, headers={"Accept": "application/json"}, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise BoardRequestError(operation, None, str(e)) from e
        raise_for_board_status(resp, operation)
        try:
            return resp.status_code, resp.json()
        except ValueError as e:
            raise BoardRequestError(operation, resp.status_code, _response_text(resp)) from e

    def _get_items(
        self, path: str, operation: str, model: Type[M], extra: Optional[Dict[str, str]] = None
    ) -> List[M]:
        status_code, data = self._get(path, operation, extra)
        if data is None:
            return []
        if not isinstance(data, list):
            raise BoardRequestError(operation, status_code, f"expected a JSON array, got {type(data).__name__}")
        try:
            return [model.model_validate(item) for item in data]
        except ValidationError as e:
            raise BoardRequestError(operation, status_code, str(e)) from e

    def verify_connection(self) -> bool:
        self._get("", "Connection test")
        return True

    def lists(self) -> List[ExternalList]:
        return self._get_items("/lists", "Fetching lists", ExternalList, {"filter": "open"})

    def cards(self) -> List[ExternalCard]:
        return self._get_items("/cards", "Fetching cards", ExternalCard, {"fields": CARD_FIELDS, "filter": "visible"})

    def members(self) -> List[ExternalMember]:
        return self._get_items("/members", "Fetching members", ExternalMember)

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import find_dotenv, load_dotenv
from rich.console import Console

from .board.client import BoardClient
from .board.errors import BoardConfigError
from .config import default_config, load_config
from .llm.client import TextGenerator, build_text_generator
from .pipeline.session import ReconciliationSession
from .store.state_store import StateStore, get_state_path

console = Console(stderr=True)


@dataclass
class Workspace:
    """
    Owns configuration and the state store, and builds the board client and
    text generator from the current snapshot for callers to pass along.
    """

    config: Dict[str, Any]
    store: StateStore

    def board_client(self) -> BoardClient:
        board_config = self.store.snapshot.board_config
        if board_config is None:
            raise BoardConfigError("Board is not configured")
        board_cfg = self.config.get("board", {})
        return BoardClient(
            config=board_config,
            base_url=str(board_cfg.get("base_url", "https://api.trello.com/1")),
            timeout_s=int(board_cfg.get("timeout_s", 30)),
        )

    def text_generator(self) -> TextGenerator:
        return build_text_generator(self.store.snapshot.ai_config, self.config.get("llm", {}))

    def new_session(self, generator: Optional[TextGenerator] = None) -> ReconciliationSession:
        return ReconciliationSession(
            self.store.snapshot,
            generator=generator,
            concurrency=int(self.config.get("session", {}).get("concurrency", 4)),
        )


def open_workspace(config_path: Optional[Path] = None) -> Workspace:
    load_dotenv(find_dotenv(usecwd=True))
    config = load_config(config_path) if config_path else default_config()
    state_path = get_state_path(config.get("storage", {}).get("path"))
    store = StateStore(state_path)
    store.load()
    console.print(f"[bold]State file:[/bold] {state_path}")
    return Workspace(config=config, store=store)

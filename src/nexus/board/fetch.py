from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List

from rich.console import Console

from .client import BoardClient
from .errors import BoardError, BoardFetchError
from .models import BoardData

console = Console(stderr=True)


def fetch_board(client: BoardClient, max_workers: int = 3) -> BoardData:
    """
    Fetch lists, cards and members concurrently and wait for all three.
    Any failure fails the whole fetch with a single BoardFetchError.
    """
    try:
        client.credentials()
    except BoardError as e:
        raise BoardFetchError(e) from e

    calls: Dict[str, Callable[[], List]] = {
        "lists": client.lists,
        "cards": client.cards,
        "members": client.members,
    }
    results: Dict[str, List] = {}
    first_error: BoardError | None = None
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = {name: pool.submit(call) for name, call in calls.items()}
        for name, fut in futures.items():
            try:
                results[name] = fut.result()
            except BoardError as e:
                console.print(f"[red]Board {name} fetch failed:[/red] {e}")
                if first_error is None:
                    first_error = e
    if first_error is not None:
        raise BoardFetchError(first_error) from first_error

    console.print(
        f"[cyan]Board[/cyan]: lists={len(results['lists'])} cards={len(results['cards'])} "
        f"members={len(results['members'])}"
    )
    return BoardData(**results)

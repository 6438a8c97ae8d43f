import asyncio

from photos import PhotoLoader


def test_newer_request_wins_over_stale_one() -> None:
    async def scenario() -> tuple[list, dict]:
        gates = [asyncio.Event(), asyncio.Event()]
        calls: list[str] = []

        async def fetch(person_id: str) -> str:
            n = len(calls)
            calls.append(person_id)
            await gates[n].wait()
            return f"url-{n}"

        loaded: list[tuple[str, str | None]] = []
        loader = PhotoLoader(fetch)
        first = loader.request("a", lambda pid, url: loaded.append((pid, url)))
        second = loader.request("a", lambda pid, url: loaded.append((pid, url)))
        await asyncio.sleep(0)

        gates[1].set()
        await second
        gates[0].set()
        await first
        return loaded, loader.photos

    loaded, photos = asyncio.run(scenario())
    assert loaded == [("a", "url-1")]
    assert photos == {"a": "url-1"}


def test_released_card_ignores_result() -> None:
    async def scenario() -> tuple[list, PhotoLoader]:
        gate = asyncio.Event()

        async def fetch(person_id: str) -> str:
            await gate.wait()
            return "late"

        loaded: list = []
        loader = PhotoLoader(fetch)
        task = loader.request("a", lambda pid, url: loaded.append(url))
        await asyncio.sleep(0)
        loader.release("a")
        gate.set()
        await task
        return loaded, loader

    loaded, loader = asyncio.run(scenario())
    assert loaded == []
    assert loader.photos == {}
    assert not loader.is_pending("a")


def test_fetch_error_yields_no_photo() -> None:
    async def fetch(person_id: str) -> str:
        raise OSError("network down")

    async def scenario() -> list:
        loaded: list = []
        loader = PhotoLoader(fetch)
        await loader.request("a", lambda pid, url: loaded.append((pid, url)))
        return loaded

    assert asyncio.run(scenario()) == [("a", None)]

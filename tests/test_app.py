"""Startup and shutdown of the assembled application."""

import pytest
from httpx import ASGITransport, AsyncClient

from app import lifespan
from config import Config
from shortener.storage import FileStorage
from web_app import create_app


@pytest.mark.asyncio
async def test_lifespan_with_file_storage(tmp_path, logger):
    """Records written through the API survive a restart of the service."""
    config = Config(
        _env_file=None,
        base_url="http://testserver",
        auth_secret_key="test-secret",
        file_storage_path=str(tmp_path / "urls.jsonl"),
        delete_workers=2,
    )

    app = create_app(service_instance=None, config=config, logger=logger)
    async with lifespan(app):
        assert isinstance(app.state.service.store, FileStorage)
        assert app.state.service.deleter.num_workers == 2

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            created = await client.post("/api/shorten", json={"url": "https://example.com/kept"})
            assert created.status_code == 201
            short_id = created.json()["result"].rsplit("/", 1)[-1]

    restarted = create_app(service_instance=None, config=config, logger=logger)
    async with lifespan(restarted):
        transport = ASGITransport(app=restarted)
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            response = await client.get(f"/{short_id}")

    assert response.status_code == 307
    assert response.headers["location"] == "https://example.com/kept"

"""Integration tests for import endpoints."""

import csv
import io
from unittest.mock import patch

import pytest
from httpx import AsyncClient
from openpyxl import Workbook, load_workbook

from communitrack.storage import InMemoryStore

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _make_csv(headers: list[str], rows: list[list[str]]) -> bytes:
    """Helper to create CSV bytes."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(headers)
    for row in rows:
        writer.writerow(row)
    return output.getvalue().encode("utf-8")


def _make_xlsx(headers: list[str], rows: list[list]) -> bytes:
    """Helper to create XLSX bytes."""
    wb = Workbook()
    ws = wb.active
    ws.append(headers)
    for row in rows:
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


async def _upload(client: AsyncClient, filename: str, content: bytes, media_type: str = "text/csv"):
    files = {"file": (filename, io.BytesIO(content), media_type)}
    return await client.post("/api/import/upload", files=files)


@pytest.mark.asyncio
async def test_upload_csv_preview(client: AsyncClient) -> None:
    """Test uploading a CSV file returns a preview without creating entries."""
    csv_data = _make_csv(
        ["Datum", "Titel", "Beschreibung", "Kategorie"],
        [
            ["15.03.2024", "Anruf", "Kurz", "Gespräch"],
            ["16.03.2024", "Treffen", "Lang", "konflikt"],
            ["17.03.2024", "Mail", "Kurz", ""],
            ["18.03.2024", "Brief", "Kurz", "beweis"],
        ],
    )
    response = await _upload(client, "eintraege.csv", csv_data)
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "previewed"
    assert data["valid_rows"] == 4
    assert data["invalid_rows"] == 0
    assert data["errors"] == []
    assert data["headers"] == ["datum", "titel", "beschreibung", "kategorie"]
    assert len(data["preview_rows"]) == 3
    assert data["preview_rows"][0]["titel"] == "Anruf"

    assert (await client.get("/api/entries")).json() == []


@pytest.mark.asyncio
async def test_upload_and_commit_end_to_end(client: AsyncClient) -> None:
    """German headers, one valid row, one row with an impossible date."""
    xlsx_data = _make_xlsx(
        ["Datum", "Titel", "Beschreibung", "Kategorie", "Schlagworte", "Wichtig"],
        [
            ["15.03.2024", "Streit am Telefon", "Laut geworden", "Konflikt", "telefon, streit", "ja"],
            ["31/02/2024", "Ungültig", "Falsches Datum", "konflikt", "", ""],
        ],
    )
    response = await _upload(client, "import.xlsx", xlsx_data, XLSX_MEDIA_TYPE)
    assert response.status_code == 200
    preview = response.json()
    assert preview["valid_rows"] == 1
    assert preview["invalid_rows"] == 1
    assert preview["errors"] == ["Row 3: invalid date format (31/02/2024)."]

    response = await client.post(f"/api/import/{preview['batch_id']}/commit")
    assert response.status_code == 200
    result = response.json()
    assert result["success"] == 1
    assert result["failed"] == 0
    assert result["status"] == "completed"

    entries = (await client.get("/api/entries")).json()
    assert len(entries) == 1
    entry = entries[0]
    assert entry["title"] == "Streit am Telefon"
    assert entry["category"] == "konflikt"
    assert entry["tags"] == ["telefon", "streit"]
    assert entry["is_important"] is True
    assert entry["date"].startswith("2024-03-15T00:00:00")


@pytest.mark.asyncio
async def test_commit_twice_conflict(client: AsyncClient) -> None:
    csv_data = _make_csv(["title", "description"], [["Call", "Short"]])
    batch_id = (await _upload(client, "a.csv", csv_data)).json()["batch_id"]

    assert (await client.post(f"/api/import/{batch_id}/commit")).status_code == 200
    response = await client.post(f"/api/import/{batch_id}/commit")
    assert response.status_code == 409

    assert len((await client.get("/api/entries")).json()) == 1


@pytest.mark.asyncio
async def test_commit_reports_row_failures(client: AsyncClient, store: InMemoryStore) -> None:
    csv_data = _make_csv(["title", "description"], [["First", "Row"], ["Second", "Row"]])
    batch_id = (await _upload(client, "a.csv", csv_data)).json()["batch_id"]

    original_create = store.create_entry

    async def flaky_create(owner_id, data):
        if data["title"] == "First":
            raise RuntimeError("write failed")
        return await original_create(owner_id, data)

    with patch.object(store, "create_entry", side_effect=flaky_create):
        response = await client.post(f"/api/import/{batch_id}/commit")

    assert response.status_code == 200
    result = response.json()
    assert result["success"] == 1
    assert result["failed"] == 1
    assert result["errors"] == ["Error saving entry: First (write failed)"]


@pytest.mark.asyncio
async def test_upload_unparseable_file(client: AsyncClient) -> None:
    response = await _upload(client, "broken.xlsx", b"not really a workbook", XLSX_MEDIA_TYPE)
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "failed"
    assert data["valid_rows"] == 0
    assert data["invalid_rows"] == 0
    assert data["errors"] == ["Error processing file."]

    response = await client.post(f"/api/import/{data['batch_id']}/commit")
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_upload_invalid_type(client: AsyncClient) -> None:
    response = await _upload(client, "notes.txt", b"hello", "text/plain")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_upload_too_large(client: AsyncClient) -> None:
    with patch("communitrack.routers.import_router.settings") as mock_settings:
        mock_settings.storage.max_upload_bytes = 10
        response = await _upload(client, "big.csv", b"title,description\n" + b"a,b\n" * 10)
    assert response.status_code == 413


@pytest.mark.asyncio
async def test_upload_requires_auth(unauthenticated_client: AsyncClient) -> None:
    csv_data = _make_csv(["title", "description"], [["Call", "Short"]])
    response = await _upload(unauthenticated_client, "a.csv", csv_data)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_download_template(client: AsyncClient) -> None:
    response = await client.get("/api/import/template")
    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_MEDIA_TYPE
    assert "CommuniTrack_Import_Vorlage.xlsx" in response.headers["content-disposition"]

    wb = load_workbook(io.BytesIO(response.content))
    assert wb.sheetnames == ["Vorlage Deutsch", "Template English"]
    assert wb.active.title == "Vorlage Deutsch"


@pytest.mark.asyncio
async def test_download_template_follows_user_language(client: AsyncClient) -> None:
    await client.patch("/api/auth/me", json={"language": "en"})

    response = await client.get("/api/import/template")
    wb = load_workbook(io.BytesIO(response.content))
    assert wb.active.title == "Template English"


# =============================================================================
# Batch Management Tests
# =============================================================================


@pytest.mark.asyncio
async def test_list_and_get_batches(client: AsyncClient) -> None:
    csv_data = _make_csv(["title", "description"], [["Call", "Short"], ["", "No title"]])
    batch_id = (await _upload(client, "a.csv", csv_data)).json()["batch_id"]

    response = await client.get("/api/import/batches")
    assert response.status_code == 200
    batches = response.json()
    assert len(batches) == 1
    assert batches[0]["id"] == batch_id
    assert batches[0]["filename"] == "a.csv"
    assert batches[0]["valid_rows"] == 1
    assert batches[0]["invalid_rows"] == 1

    await client.post(f"/api/import/{batch_id}/commit")
    response = await client.get(f"/api/import/batches/{batch_id}")
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert response.json()["success_count"] == 1


@pytest.mark.asyncio
async def test_delete_batch_keeps_entries(client: AsyncClient) -> None:
    csv_data = _make_csv(["title", "description"], [["Call", "Short"]])
    batch_id = (await _upload(client, "a.csv", csv_data)).json()["batch_id"]
    await client.post(f"/api/import/{batch_id}/commit")

    response = await client.delete(f"/api/import/batches/{batch_id}")
    assert response.status_code == 204
    assert (await client.get(f"/api/import/batches/{batch_id}")).status_code == 404
    assert (await client.delete(f"/api/import/batches/{batch_id}")).status_code == 404

    assert len((await client.get("/api/entries")).json()) == 1


@pytest.mark.asyncio
async def test_batches_of_other_users_are_hidden(client: AsyncClient, store: InMemoryStore) -> None:
    other = await store.create_user(
        {"email": "other@example.com", "username": "other", "hashed_password": "hash"}
    )
    batch = await store.create_batch(other.id, {"filename": "theirs.csv", "file_type": "csv"})

    assert (await client.get("/api/import/batches")).json() == []
    assert (await client.get(f"/api/import/batches/{batch.id}")).status_code == 404
    assert (await client.post(f"/api/import/{batch.id}/commit")).status_code == 404

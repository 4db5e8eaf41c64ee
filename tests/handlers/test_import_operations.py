import base64
import json

import pytest

from hoa_import.handlers import import_operations
from hoa_import.handlers.import_operations import batch_import_handler, handler, load_uploaded_files
from hoa_import.models.import_result import BatchImportResult, HOAImportResult, UploadedFile
from hoa_import.utils.import_config import ImportConfig
from tests.fixtures.legacy_files import hoa_export_files


def _files_body(files, **extra):
    body = {"files": [
        {"name": f.name, "content": base64.b64encode(f.content).decode("ascii")} for f in files
    ]}
    body.update(extra)
    return body


@pytest.fixture
def fake_import(mocker):
    calls = []

    async def _run(files, config, clean_import=False, create_schema=False):
        calls.append({"files": files, "clean_import": clean_import, "create_schema": create_schema})
        return BatchImportResult(success=True, results=[HOAImportResult(hoa_id="HOA1")])

    mocker.patch.object(import_operations, "run_batch_import", _run)
    return calls


def test_inline_files_are_imported(fake_import):
    event = {"body": json.dumps(_files_body(hoa_export_files(), cleanImport=True))}

    response = batch_import_handler(event, None)

    assert response["statusCode"] == 200
    assert json.loads(response["body"]) == {
        "success": True,
        "results": [{"hoaId": "HOA1", "apartments": {"created": 0, "updated": 0, "skipped": 0, "deleted": 0,
                                                     "total": 0}, "errors": []}],
        "errors": [],
    }
    assert len(fake_import[0]["files"]) == 5
    assert fake_import[0]["clean_import"] is True
    assert fake_import[0]["create_schema"] is False


def test_s3_prefix_is_loaded(fake_import, mocker):
    listed = [UploadedFile(name="HOA1/lok.txt", content=b"x")]
    list_files = mocker.patch.object(import_operations, "list_upload_files", return_value=listed)
    mocker.patch.dict("os.environ", {"IMPORT_BUCKET": "uploads", "AWS_REGION": "eu-west-1"})

    response = batch_import_handler({"prefix": "imports/b1"}, None)

    assert response["statusCode"] == 200
    list_files.assert_called_once_with("imports/b1", bucket="uploads", region_name="eu-west-1")
    assert fake_import[0]["files"] == listed


def test_explicit_bucket_wins(mocker):
    list_files = mocker.patch.object(import_operations, "list_upload_files", return_value=[])

    load_uploaded_files({"prefix": "p", "bucket": "other"}, ImportConfig(import_bucket="default-bucket"))

    list_files.assert_called_once_with("p", bucket="other", region_name="eu-central-1")


@pytest.mark.parametrize("event", [
    {"body": json.dumps({})},
    {"body": json.dumps({"files": []})},
    {"body": json.dumps({"files": [{"name": "HOA1/lok.txt", "content": "%%%"}]})},
    {"body": json.dumps({"files": [{"content": "eA=="}]})},
    {"body": "[]"},
])
def test_bad_requests_return_400(fake_import, event):
    response = batch_import_handler(event, None)

    assert response["statusCode"] == 400
    assert "message" in json.loads(response["body"])
    assert fake_import == []


def test_unexpected_failure_returns_500(mocker):
    mocker.patch.object(import_operations, "run_batch_import", side_effect=RuntimeError("db down"))

    response = batch_import_handler({"body": json.dumps(_files_body(hoa_export_files()))}, None)

    assert response["statusCode"] == 500
    assert json.loads(response["body"]) == {"message": "Error in batch_import"}


@pytest.mark.integration
def test_end_to_end_against_sqlite(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'handler.db'}")
    event = {"body": json.dumps(_files_body(hoa_export_files("HOA1") + hoa_export_files("HOA2"),
                                            createSchema=True))}

    response = handler(event, None)

    body = json.loads(response["body"])
    assert response["statusCode"] == 200
    assert body["success"] is True
    assert [r["hoaId"] for r in body["results"]] == ["HOA1", "HOA2"]
    assert body["results"][0]["charges"]["created"] == 4
    assert body["results"][1]["payments"]["created"] == 2

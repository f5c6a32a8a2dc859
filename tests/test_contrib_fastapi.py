import json
import uuid
from unittest.mock import MagicMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from memento.contrib.fastapi import (
    StandardResult,
    created_result,
    error_result,
    init_memento,
    ok_result,
    parse_uuid,
    validation_result,
)
from memento.contrib.pydantic import EntityContract
from memento.exceptions import StandardException, StandardExceptionType


class ShelfContract(EntityContract):
    shelf_label: str


def body(response):
    return json.loads(response.body)


def test_parse_uuid():
    value = uuid.uuid4()

    assert parse_uuid(str(value)) == value
    assert parse_uuid(None) is None
    assert parse_uuid("") is None
    assert parse_uuid("shelf") is None


def test_ok_result_without_data_omits_it():
    response = ok_result("Done.")

    assert response.status_code == 200
    assert body(response) == {"success": True, "statusCode": 200, "message": "Done.", "errors": []}


def test_ok_result_encodes_models_by_alias():
    contract = ShelfContract(id=uuid.uuid4(), shelf_label="A")

    response = ok_result("Done.", contract)

    assert body(response)["data"] == {"id": str(contract.id), "shelfLabel": "A"}


def test_created_result_sets_location():
    contract = ShelfContract(id=uuid.uuid4(), shelf_label="A")
    request = MagicMock()
    request.url = "http://testserver/api/shelves/"

    response = created_result(request, "Created.", contract)

    assert response.status_code == 201
    assert response.headers["location"] == f"http://testserver/api/shelves/{contract.id}"
    assert body(response)["data"]["shelfLabel"] == "A"


def test_validation_result():
    response = validation_result(["The field 'Name' is invalid."])

    assert response.status_code == 400
    assert body(response) == {
        "success": False,
        "statusCode": 400,
        "message": "The request is invalid.",
        "errors": ["The field 'Name' is invalid."],
    }


def test_error_result_for_each_type():
    bad_request = error_result(StandardException(["a", "b"], StandardExceptionType.BAD_REQUEST))
    not_found = error_result(StandardException("The shelf does not exist.", StandardExceptionType.NOT_FOUND))
    forbidden = error_result(StandardException("secret", StandardExceptionType.FORBIDDEN))
    missing = error_result(None)

    assert body(bad_request)["errors"] == ["a", "b"]
    assert not_found.status_code == 404
    assert body(not_found)["message"] == "The shelf does not exist."
    assert forbidden.status_code == missing.status_code == 500
    assert body(forbidden) == body(missing)
    assert body(missing)["errors"] == ["An unexpected error has occurred."]


def test_standard_result_accepts_camel_case():
    result = StandardResult.model_validate({"success": True, "statusCode": 200, "message": "ok"})

    assert result.status_code == 200
    assert result.errors == []


def test_init_memento_attaches_state_and_handlers():
    app = FastAPI()
    bus = MagicMock()
    cache = MagicMock()
    init_memento(app, bus, cache)

    @app.get("/boom")
    async def boom():
        raise StandardException("The shelf does not exist.", StandardExceptionType.NOT_FOUND)

    response = TestClient(app).get("/boom")

    assert app.state.message_bus is bus
    assert app.state.cache is cache
    assert response.status_code == 404
    assert response.json()["message"] == "The shelf does not exist."


def test_init_memento_without_exception_handlers():
    app = FastAPI()
    init_memento(app, MagicMock(), MagicMock(), enable_exception_handlers=False)

    assert StandardException not in app.exception_handlers

from datetime import date
from typing import Optional
import uuid

import pytest
from pydantic import ValidationError

from memento.contrib.pydantic import Contract, EntityContract, MessageResult, QueryResult, page_of
from memento.exceptions import StandardException, StandardExceptionType
from memento.message_registry import MessageTypeRegistry
from memento.pagination import Page


class ShelfSummaryContract(EntityContract):
    label: str
    installed_on: date


class ListShelvesQueryResult(QueryResult):
    shelves: Optional[page_of(ShelfSummaryContract)] = None


def shelf(label):
    return ShelfSummaryContract(id=uuid.uuid4(), label=label, installed_on=date(2020, 5, 1))


def test_contract_uses_camel_case_aliases():
    contract = ShelfSummaryContract.model_validate(
        {"id": str(uuid.uuid4()), "label": "A", "installedOn": "2020-05-01"}
    )

    assert contract.installed_on == date(2020, 5, 1)
    assert "installedOn" in contract.model_dump(by_alias=True)


def test_contract_reads_attributes():
    class Row:
        id = uuid.uuid4()
        label = "B"
        installed_on = date(2021, 1, 1)

    assert ShelfSummaryContract.model_validate(Row()).label == "B"


def test_page_is_serialized_with_page_layout():
    page = Page.create_unmodified([shelf("A"), shelf("B")], 12, 2, 2, "Label", "Ascending")

    payload = ListShelvesQueryResult(shelves=page).to_dict()["shelves"]

    assert payload["pageNumber"] == 2
    assert payload["totalPages"] == 6
    assert payload["orderBy"] == "Label"
    assert payload["items"][0]["installedOn"] == "2020-05-01"


def test_result_with_page_survives_the_registry():
    page = Page.create_unmodified([shelf("A")], 1, 1, 10)
    result = ListShelvesQueryResult(shelves=page)

    hydrated = MessageTypeRegistry.hydrate("ListShelvesQueryResult", result.model_dump_json())

    assert isinstance(hydrated.shelves, Page)
    assert hydrated.shelves == page
    assert isinstance(hydrated.shelves.items[0], ShelfSummaryContract)


def test_invalid_page_document_is_rejected():
    with pytest.raises(ValidationError):
        ListShelvesQueryResult.model_validate({"shelves": {"pageNumber": "one"}})


def test_exception_travels_as_dict():
    result = MessageResult(
        success=False,
        exception=StandardException(["a", "b"], StandardExceptionType.NOT_FOUND, source="ShelfRepository"),
    )

    payload = result.to_dict()
    assert payload["exception"] == {"messages": ["a", "b"], "type": "NotFound", "source": "ShelfRepository"}

    restored = MessageResult.model_validate(payload)
    assert restored.exception == result.exception
    assert restored.exception.source == "ShelfRepository"


def test_events_are_not_serialized():
    result = MessageResult(events=["something happened"])

    assert "events" not in result.to_dict()


def test_messages_carry_ids():
    result = MessageResult(user_id="carol")

    assert isinstance(result.message_id, uuid.UUID)
    assert isinstance(result.correlation_id, uuid.UUID)
    assert result.message_type == "MessageResult"


def test_plain_contract_has_no_id():
    class NoteContract(Contract):
        text_body: str

    assert NoteContract(text_body="x").model_dump(by_alias=True) == {"textBody": "x"}

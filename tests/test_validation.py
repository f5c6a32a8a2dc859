from datetime import date
from typing import Optional
import uuid

import pytest

from memento.contrib.pydantic import Contract
from memento.domain.contracts import AuthorFormContract, BookFormContract, GenreFormContract
from memento.domain.validators import AuthorFormValidator, BookFormValidator, GenreFormValidator
from memento.validation import ValidationResult, Validator


class ShelfForm(Contract):
    label: Optional[str] = None
    room: Optional[str] = None


class ShelfFormValidator(Validator[ShelfForm]):
    display_names = {"label": "Label", "room": "Room"}

    def validate_label(self, value):
        self.required("label", value)

    async def validate_room(self, value):
        if value == "garage":
            raise ValueError("Shelves do not belong in the garage.")


def test_validation_result_helpers():
    assert ValidationResult.success().is_valid()

    result = ValidationResult.failure({"name": ["a", "b"], "date": ["c"]})

    assert result.has_errors()
    assert not result.is_valid()
    assert result.messages == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_sync_and_async_rules_are_collected():
    result = await ShelfFormValidator().validate(ShelfForm(room="garage"))

    assert result.errors == {
        "label": ["The field 'Label' is required."],
        "room": ["Shelves do not belong in the garage."],
    }


@pytest.mark.asyncio
async def test_validator_is_reusable():
    validator = ShelfFormValidator()

    assert (await validator.validate(ShelfForm())).has_errors()
    assert (await validator.validate(ShelfForm(label="A"))).is_valid()


def test_display_name_falls_back_to_field_name():
    assert ShelfFormValidator().display_name("label") == "Label"
    assert ShelfFormValidator().display_name("depth") == "depth"


@pytest.mark.asyncio
async def test_author_form_validator():
    validator = AuthorFormValidator()

    assert (await validator.validate(AuthorFormContract(name="Ursula", birth_date=date(1929, 10, 21)))).is_valid()

    result = await validator.validate(AuthorFormContract(name="x" * 201))
    assert result.messages == [
        "The field 'BirthDate' is required.",
        "The field 'Name' must have at most 200 characters.",
    ]


@pytest.mark.asyncio
async def test_author_name_at_limit_is_valid():
    form = AuthorFormContract(name="x" * 200, birth_date=date(1929, 10, 21))

    assert (await AuthorFormValidator().validate(form)).is_valid()


@pytest.mark.asyncio
async def test_book_form_validator():
    validator = BookFormValidator()
    valid = BookFormContract(
        name="Earthsea",
        release_date=date(1968, 1, 1),
        author_id=uuid.uuid4(),
        genre_id=uuid.uuid4(),
    )

    assert (await validator.validate(valid)).is_valid()

    result = await validator.validate(BookFormContract())
    assert set(result.errors) == {"release_date", "author_id", "genre_id"}
    assert "The field 'AuthorId' is required." in result.messages
    assert "The field 'GenreId' is required." in result.messages
    assert "The field 'ReleaseDate' is required." in result.messages


@pytest.mark.asyncio
async def test_genre_form_validator():
    validator = GenreFormValidator()

    assert (await validator.validate(GenreFormContract(name="Poetry"))).is_valid()
    assert (await validator.validate(GenreFormContract())).is_valid()

    result = await validator.validate(GenreFormContract(name="p" * 201))
    assert result.messages == ["The field 'Name' must have at most 200 characters."]
